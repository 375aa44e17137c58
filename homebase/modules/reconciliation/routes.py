from fastapi import APIRouter, Depends, Query
from homebase.core.dependencies import get_current_identity, get_current_profile, get_registrar, get_store
from homebase.database.store import Store
from homebase.modules.auth.schemas import Identity
from homebase.modules.families.schemas import Profile
from homebase.modules.families.service import MembershipRegistrar
from homebase.modules.invites.schemas import InviteAcceptResponse, InvitePreviewResponse, InviteTokenRequest
from homebase.modules.reconciliation.schemas import BootstrapResponse
from homebase.modules.reconciliation.service import ReconciliationCoordinator
from homebase.modules.tasks.schemas import CompleteItemResponse
from typing import Optional

router = APIRouter(tags=["reconciliation"])


def get_coordinator(
    store: Store = Depends(get_store),
    registrar: MembershipRegistrar = Depends(get_registrar)
) -> ReconciliationCoordinator:
    return ReconciliationCoordinator(store, registrar=registrar)


@router.get("/me/bootstrap", response_model=BootstrapResponse)
async def bootstrap(
    active_family_id: Optional[str] = Query(None),
    identity: Identity = Depends(get_current_identity),
    coordinator: ReconciliationCoordinator = Depends(get_coordinator)
):
    """
    Dashboard bootstrap for the caller.

    Creates the caller's profile, default family, calendar and task list on
    first use, then returns the active family with its members and invites.
    """
    return coordinator.bootstrap_family_for_identity(identity, active_family_id)


@router.post("/invites/preview", response_model=InvitePreviewResponse)
async def preview_invite(
    payload: InviteTokenRequest,
    identity: Identity = Depends(get_current_identity),
    coordinator: ReconciliationCoordinator = Depends(get_coordinator)
):
    """Show who invited the caller and to which family, without accepting"""
    return coordinator.preview_invite(identity, payload.token)


@router.post("/invites/accept", response_model=InviteAcceptResponse)
async def accept_invite(
    payload: InviteTokenRequest,
    identity: Identity = Depends(get_current_identity),
    coordinator: ReconciliationCoordinator = Depends(get_coordinator)
):
    """
    Accept an invite token.

    already_member and already_used are successful outcomes, reported with 200
    so the client can tell them apart from a fresh acceptance.
    """
    return coordinator.accept_invite(identity, payload.token)


@router.post("/items/{item_id}/complete", response_model=CompleteItemResponse)
async def complete_item(
    item_id: str,
    profile: Profile = Depends(get_current_profile),
    coordinator: ReconciliationCoordinator = Depends(get_coordinator)
):
    """Mark an item done; recurring items get their next occurrence"""
    return coordinator.complete_task_item(item_id, actor_profile_id=profile.id)
