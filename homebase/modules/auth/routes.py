from fastapi import APIRouter, Depends
from homebase.core.dependencies import get_current_identity, get_current_profile, get_registrar
from homebase.modules.auth.schemas import Identity, MeResponse
from homebase.modules.families.schemas import Profile
from homebase.modules.families.service import MembershipRegistrar

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/me", response_model=MeResponse)
async def get_me(
    identity: Identity = Depends(get_current_identity),
    profile: Profile = Depends(get_current_profile),
    registrar: MembershipRegistrar = Depends(get_registrar)
):
    """Current identity, its profile and the families it belongs to"""
    return MeResponse(
        id=identity.id,
        email=identity.email,
        profile=profile,
        families=registrar.list_user_families(profile.id),
    )
