from fastapi import APIRouter, Depends
from homebase.core.dependencies import get_current_profile, get_registrar, get_store, check_family_member, check_family_owner
from homebase.database.store import Store
from homebase.modules.families.schemas import Profile
from homebase.modules.families.service import MembershipRegistrar
from homebase.modules.invites.schemas import FamilyInvitesResponse, Invite, InviteCreate, InviteResponse
from homebase.modules.invites.service import InviteLedger, build_invite_url

router = APIRouter(tags=["invites"])


def get_invite_ledger(
    store: Store = Depends(get_store),
    registrar: MembershipRegistrar = Depends(get_registrar)
) -> InviteLedger:
    return InviteLedger(store, registrar)


@router.post("/families/{family_id}/invites", response_model=InviteResponse, status_code=201)
async def create_invite(
    family_id: str,
    payload: InviteCreate,
    profile: Profile = Depends(get_current_profile),
    registrar: MembershipRegistrar = Depends(get_registrar),
    ledger: InviteLedger = Depends(get_invite_ledger)
):
    """Create an invite link for a family (owner only)"""
    check_family_owner(family_id, profile, registrar)
    invite = ledger.create(family_id, str(payload.email), payload.role, profile.id)
    return InviteResponse(**invite.model_dump(), invite_url=build_invite_url(invite.token))


@router.get("/families/{family_id}/invites", response_model=FamilyInvitesResponse)
async def list_invites(
    family_id: str,
    profile: Profile = Depends(get_current_profile),
    registrar: MembershipRegistrar = Depends(get_registrar),
    ledger: InviteLedger = Depends(get_invite_ledger)
):
    """List a family's invites (only if the caller is a member)"""
    check_family_member(family_id, profile, registrar)
    invites = ledger.list_for_family(family_id)
    return FamilyInvitesResponse(family_id=family_id, items=ledger.display(invites, profile.id))


@router.delete("/invites/{invite_id}", status_code=204)
async def revoke_invite(
    invite_id: str,
    profile: Profile = Depends(get_current_profile),
    registrar: MembershipRegistrar = Depends(get_registrar),
    ledger: InviteLedger = Depends(get_invite_ledger),
    store: Store = Depends(get_store)
):
    """Revoke an invite (owner only). Revoking an invite that is already gone succeeds."""
    invite = store.get_by_key(Invite, invite_id)
    if invite is None:
        return None
    check_family_owner(invite.family_id, profile, registrar)
    ledger.revoke(invite_id)
    return None
