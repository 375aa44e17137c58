from fastapi import APIRouter, Depends
from homebase.modules.families.schemas import FamilyMembersResponse, FamilySummary, Profile, ProfileUpdate
from homebase.modules.families.service import MembershipRegistrar
from homebase.core.dependencies import get_current_profile, get_registrar, check_family_member
from typing import List

router = APIRouter(tags=["families"])


@router.get("/families", response_model=List[FamilySummary])
async def list_families(
    profile: Profile = Depends(get_current_profile),
    registrar: MembershipRegistrar = Depends(get_registrar)
):
    """Families the caller belongs to, with their role and default flag"""
    return registrar.list_user_families(profile.id)


@router.get("/families/{family_id}/members", response_model=FamilyMembersResponse)
async def list_family_members(
    family_id: str,
    profile: Profile = Depends(get_current_profile),
    registrar: MembershipRegistrar = Depends(get_registrar)
):
    """List members of a family (only if the caller is a member)"""
    check_family_member(family_id, profile, registrar)
    return FamilyMembersResponse(family_id=family_id, items=registrar.list_member_display(family_id))


@router.patch("/me/profile", response_model=Profile)
async def update_profile(
    payload: ProfileUpdate,
    profile: Profile = Depends(get_current_profile),
    registrar: MembershipRegistrar = Depends(get_registrar)
):
    """Update the caller's display name"""
    return registrar.update_display_name(profile.id, payload.full_name)
