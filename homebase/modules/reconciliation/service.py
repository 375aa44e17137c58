import logging
from typing import List, Optional

from homebase.core.exceptions import HomebaseError, InternalError, NotFound, Unauthorized, ValidationError
from homebase.database.store import Store
from homebase.modules.auth.schemas import Identity
from homebase.modules.calendars.service import CalendarService
from homebase.modules.families.schemas import MemberRole, Membership, Profile
from homebase.modules.families.service import MembershipRegistrar
from homebase.modules.invites.schemas import (
    AcceptStatus, Invite, InviteAcceptResponse, InvitePreviewResponse
)
from homebase.modules.invites.service import InviteLedger
from homebase.modules.reconciliation.schemas import BootstrapResponse, PlanInfo
from homebase.modules.tasks.schemas import CompleteItemResponse
from homebase.modules.tasks.service import TaskListService, TaskRolloverEngine

logger = logging.getLogger(__name__)


def select_active_membership(memberships: List[Membership], requested_family_id: Optional[str] = None) -> Membership:
    """The requested family if the profile belongs to it, else the default, else the oldest."""
    if requested_family_id:
        for membership in memberships:
            if membership.family_id == requested_family_id:
                return membership
    for membership in memberships:
        if membership.is_default:
            return membership
    return memberships[0]


class ReconciliationCoordinator:
    """
    Entry point for the multi-step flows: invite acceptance, first-login
    bootstrap and task completion.

    Primary side effects (a membership grant, a done transition) are never undone
    because a later step failed. Secondary lookups that only decorate a response
    are logged and left empty.
    """

    def __init__(
        self,
        store: Store,
        registrar: Optional[MembershipRegistrar] = None,
        ledger: Optional[InviteLedger] = None,
        engine: Optional[TaskRolloverEngine] = None,
        calendars: Optional[CalendarService] = None,
        task_lists: Optional[TaskListService] = None,
    ):
        self.store = store
        self.registrar = registrar or MembershipRegistrar(store)
        self.ledger = ledger or InviteLedger(store, self.registrar)
        self.engine = engine or TaskRolloverEngine(store)
        self.calendars = calendars or CalendarService(store)
        self.task_lists = task_lists or TaskListService(store)

    def _require_profile(self, identity: Optional[Identity]) -> Profile:
        if identity is None or not identity.id:
            raise Unauthorized("Missing identity")
        try:
            return self.registrar.ensure_profile(identity.id, identity.fallback_display_name)
        except InternalError as e:
            logger.error(f"Could not load profile for identity {identity.id}: {e.message}")
            raise ValidationError("Could not load your profile") from e

    def _family_name(self, family_id: str) -> Optional[str]:
        try:
            family = self.registrar.get_family(family_id)
        except HomebaseError as e:
            logger.error(f"Failed to load family {family_id}: {e.message}")
            return None
        if family is None:
            logger.warning(f"Family {family_id} not found while describing invite")
            return None
        return family.name

    def _inviter_name(self, invite: Invite) -> Optional[str]:
        if not invite.created_by_profile_id:
            return None
        try:
            inviter = self.registrar.get_profile(invite.created_by_profile_id)
        except HomebaseError as e:
            logger.error(f"Failed to load inviter {invite.created_by_profile_id}: {e.message}")
            return None
        return inviter.full_name if inviter else None

    # Invites

    def accept_invite(self, identity: Optional[Identity], token: Optional[str]) -> InviteAcceptResponse:
        if identity is None or not identity.id:
            raise Unauthorized("Missing identity")
        if not token:
            raise ValidationError("Missing invite token")
        profile = self._require_profile(identity)

        result = self.ledger.consume(token, profile.id)
        if result.status == AcceptStatus.already_used:
            logger.info(f"Invite {result.invite.id} already used; profile {profile.id} turned away")
            return InviteAcceptResponse(status=result.status)

        family_id = result.invite.family_id
        logger.info(f"Invite {result.invite.id} resolved as {result.status.value} for profile {profile.id}")
        return InviteAcceptResponse(
            status=result.status,
            family_id=family_id,
            family_name=self._family_name(family_id),
            inviter_name=self._inviter_name(result.invite),
        )

    def preview_invite(self, identity: Optional[Identity], token: Optional[str]) -> InvitePreviewResponse:
        """Describe an invite without consuming it."""
        if identity is None or not identity.id:
            raise Unauthorized("Missing identity")
        invite = self.ledger.lookup(token)
        return InvitePreviewResponse(
            family_id=invite.family_id,
            family_name=self._family_name(invite.family_id),
            inviter_name=self._inviter_name(invite),
            already_used=invite.accepted_at is not None,
        )

    # Bootstrap

    def bootstrap_family_for_identity(
        self,
        identity: Optional[Identity],
        active_family_id: Optional[str] = None,
    ) -> BootstrapResponse:
        profile = self._require_profile(identity)

        memberships = self.registrar.list_memberships(profile.id)
        if not memberships:
            self.registrar.bootstrap_default_family(profile)
            memberships = self.registrar.list_memberships(profile.id)
        if not memberships:
            raise InternalError(f"Profile {profile.id} has no membership after bootstrap")

        active = select_active_membership(memberships, active_family_id)
        families = self.registrar.get_families([m.family_id for m in memberships])
        family = families.get(active.family_id)
        if family is None:
            raise NotFound("Family not found")

        user_families = self.registrar.list_user_families(profile.id)
        return BootstrapResponse(
            profile=profile,
            family=family,
            plan=PlanInfo.for_tier(family.plan_tier.value),
            membership=active,
            is_family_owner=active.role == MemberRole.owner,
            user_families=user_families,
            calendars=self.calendars.ensure_calendars(family.id),
            task_lists=self.task_lists.ensure_lists(family.id),
            members=self.registrar.list_member_display(family.id),
            invites=self.ledger.display(self.ledger.list_for_family(family.id), profile.id),
        )

    # Tasks

    def complete_task_item(self, item_id: str, actor_profile_id: Optional[str] = None) -> CompleteItemResponse:
        """
        Complete an item and return it with the list as it now stands, so the
        caller sees any successor. When `actor_profile_id` is given the actor
        must belong to the family owning the list.
        """
        item = self.task_lists.get_item(item_id)
        if actor_profile_id is not None:
            task_list = self.task_lists.get_list(item.list_id)
            self.registrar.require_member(actor_profile_id, task_list.family_id)

        result = self.engine.complete(item)
        return CompleteItemResponse(
            item=result.item,
            successor=result.successor,
            items=self.task_lists.list_items(item.list_id),
        )
