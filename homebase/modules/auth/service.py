import hashlib
import logging
import time
from supabase import Client
from homebase.config.settings import settings
from homebase.core.exceptions import Unauthorized
from homebase.modules.auth.schemas import Identity
from typing import Dict, Tuple

logger = logging.getLogger(__name__)

# In-memory cache for get_identity to reduce Supabase auth calls (e.g. many parallel requests with same token)
_AUTH_IDENTITY_CACHE: Dict[str, Tuple[Identity, float]] = {}


class AuthService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_identity(self, token: str) -> Identity:
        """Resolve an access token to an Identity. Uses short TTL cache to reduce auth API calls."""
        if not token:
            raise Unauthorized("Missing access token")
        cache_key = hashlib.sha256(token.encode()).hexdigest()
        now = time.monotonic()
        if cache_key in _AUTH_IDENTITY_CACHE:
            identity, expiry = _AUTH_IDENTITY_CACHE[cache_key]
            if now < expiry:
                return identity
            del _AUTH_IDENTITY_CACHE[cache_key]
        try:
            user_response = self.supabase.auth.get_user(jwt=token)
        except Exception as e:
            logger.warning(f"Token verification failed: {e}")
            raise Unauthorized("Invalid or expired token") from e
        if not user_response or not user_response.user:
            raise Unauthorized("Invalid or expired token")
        user = user_response.user
        identity = Identity(id=user.id, email=user.email, access_token=token)
        if len(_AUTH_IDENTITY_CACHE) >= settings.auth_cache_max_size:
            _prune_expired(now)
        if len(_AUTH_IDENTITY_CACHE) < settings.auth_cache_max_size:
            _AUTH_IDENTITY_CACHE[cache_key] = (identity, now + settings.auth_cache_ttl_seconds)
        return identity


def _prune_expired(now: float) -> None:
    for key in [k for k, (_, expiry) in _AUTH_IDENTITY_CACHE.items() if expiry <= now]:
        del _AUTH_IDENTITY_CACHE[key]


def clear_identity_cache() -> None:
    _AUTH_IDENTITY_CACHE.clear()
