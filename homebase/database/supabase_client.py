from supabase import create_client, Client
from homebase.config.settings import settings
from typing import Optional


class SupabaseClients:
    """
    Process-wide Supabase clients.

    `anon` carries the public key and is used to verify caller tokens. `service`
    carries the service-role key, which bypasses row-level security; the Store
    writes through it because invite consumption adds a membership row for a
    caller who is not yet a member.
    """

    _anon: Optional[Client] = None
    _service: Optional[Client] = None

    @classmethod
    def anon(cls) -> Client:
        if cls._anon is None:
            cls._anon = create_client(settings.supabase_url, settings.supabase_key)
        return cls._anon

    @classmethod
    def service(cls) -> Client:
        if cls._service is None:
            if not settings.supabase_service_role_key:
                # Startup already warned about this
                return cls.anon()
            cls._service = create_client(settings.supabase_url, settings.supabase_service_role_key)
        return cls._service

    @classmethod
    def reset(cls):
        cls._anon = None
        cls._service = None


def get_supabase() -> Client:
    return SupabaseClients.anon()


def get_service_supabase() -> Client:
    return SupabaseClients.service()
