"""
Core dependencies for route protection and membership checks
"""

from fastapi import Depends, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from homebase.core.exceptions import Unauthorized
from homebase.database.store import Store, SupabaseStore
from homebase.database.supabase_client import get_supabase, get_service_supabase
from homebase.modules.auth.schemas import Identity
from homebase.modules.auth.service import AuthService
from homebase.modules.families.schemas import Membership, Profile
from homebase.modules.families.service import MembershipRegistrar
from supabase import Client
from typing import Optional
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_store(supabase: Client = Depends(get_service_supabase)) -> Store:
    """Request-scoped store; nothing is cached across requests."""
    return SupabaseStore(supabase)


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_registrar(store: Store = Depends(get_store)) -> MembershipRegistrar:
    return MembershipRegistrar(store)


def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Identity:
    """Extract the caller's identity from the bearer token"""
    if credentials is None or not credentials.credentials:
        raise Unauthorized("Missing Authorization header")
    return auth_service.get_identity(credentials.credentials)


def get_current_profile(
    identity: Identity = Depends(get_current_identity),
    registrar: MembershipRegistrar = Depends(get_registrar)
) -> Profile:
    """Profile for the caller, created on first authenticated access"""
    return registrar.ensure_profile(identity.id, identity.fallback_display_name)


def check_family_member(family_id: str, profile: Profile, registrar: MembershipRegistrar) -> Membership:
    """Check the profile belongs to an existing family"""
    registrar.require_family(family_id)
    return registrar.require_member(profile.id, family_id)


def check_family_owner(family_id: str, profile: Profile, registrar: MembershipRegistrar) -> Membership:
    """Check the profile is an owner of an existing family"""
    registrar.require_family(family_id)
    return registrar.require_owner(profile.id, family_id)
