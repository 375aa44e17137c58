import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional
from urllib.parse import quote

from homebase.config.settings import settings
from homebase.core.exceptions import HomebaseError, InternalError, NotFound, UniqueViolation, ValidationError
from homebase.database.store import Store
from homebase.modules.families.schemas import MemberRole, Membership
from homebase.modules.families.service import MembershipRegistrar
from homebase.modules.invites.schemas import AcceptStatus, Invite, InviteDisplay

logger = logging.getLogger(__name__)

# Attempts at drawing a fresh token when the store reports a token collision.
_TOKEN_ATTEMPTS = 3


@dataclass(frozen=True)
class ConsumeResult:
    status: AcceptStatus
    invite: Invite
    membership: Optional[Membership] = None


def build_invite_url(token: str) -> str:
    return f"{settings.app_base_url.rstrip('/')}/invite?token={quote(token, safe='')}"


class InviteLedger:
    """
    Issues and consumes family invite tokens.

    accepted_at is the single-writer gate: it is only ever set through a conditional
    update (where accepted_at is null), and the request that sets it is the only one
    allowed to grant a membership. It is cleared again only when that grant fails.
    """

    def __init__(self, store: Store, registrar: MembershipRegistrar, token_bytes: Optional[int] = None):
        self.store = store
        self.registrar = registrar
        self.token_bytes = token_bytes or settings.invite_token_bytes

    def create(
        self,
        family_id: str,
        email: str,
        role: MemberRole = MemberRole.member,
        created_by_profile_id: Optional[str] = None,
    ) -> Invite:
        if not family_id:
            raise ValidationError("family_id is required")
        if not email or not email.strip():
            raise ValidationError("email is required")

        for _ in range(_TOKEN_ATTEMPTS):
            try:
                invite = self.store.insert(Invite, {
                    "family_id": family_id,
                    "email": email.strip(),
                    "role": MemberRole(role).value,
                    "token": secrets.token_urlsafe(self.token_bytes),
                    "created_by_profile_id": created_by_profile_id,
                })
            except UniqueViolation:
                logger.warning(f"Invite token collision for family {family_id}; drawing a new token")
                continue
            logger.info(f"Created invite {invite.id} for family {family_id}")
            return invite
        raise InternalError("Could not generate a unique invite token")

    def lookup(self, token: str) -> Invite:
        if not token:
            raise ValidationError("Missing invite token")
        invites = self.store.get_by_filter(Invite, token=token)
        if not invites:
            raise NotFound("Invite not found")
        return invites[0]

    def list_for_family(self, family_id: str) -> List[Invite]:
        return self.store.get_by_filter(Invite, order_by=[("created_at", False)], family_id=family_id)

    def revoke(self, invite_id: str) -> bool:
        """Delete an invite. Returns False when it was already gone."""
        removed = self.store.delete(Invite, invite_id)
        if removed:
            logger.info(f"Revoked invite {invite_id}")
        return removed

    def consume(self, token: str, profile_id: str) -> ConsumeResult:
        invite = self.lookup(token)
        if invite.accepted_at is not None:
            return ConsumeResult(AcceptStatus.already_used, invite)

        existing = self.registrar.get_membership(profile_id, invite.family_id)
        if existing is not None:
            self._retire(invite)
            return ConsumeResult(AcceptStatus.already_member, invite, existing)

        # Only the request that claims the token may grant
        claimed = self.store.update(
            Invite, invite.id, {"accepted_at": datetime.now(timezone.utc)}, expect={"accepted_at": None}
        )
        if claimed is None:
            logger.info(f"Invite {invite.id} was consumed concurrently")
            membership = self.registrar.get_membership(profile_id, invite.family_id)
            if membership is not None:
                return ConsumeResult(AcceptStatus.already_member, invite, membership)
            return ConsumeResult(AcceptStatus.already_used, invite)

        try:
            membership = self.registrar.grant_membership(profile_id, invite.family_id, invite.role)
        except HomebaseError:
            self._release(claimed)
            raise
        return ConsumeResult(AcceptStatus.accepted, claimed, membership)

    def _release(self, invite: Invite) -> None:
        """Undo a claim whose membership grant failed, so the token can be used again."""
        try:
            self.store.update(Invite, invite.id, {"accepted_at": None}, expect={"accepted_at": invite.accepted_at})
        except HomebaseError as e:
            logger.error(f"Failed to release invite {invite.id} after a failed grant: {e.message}")
            return
        logger.warning(f"Released invite {invite.id} after a failed membership grant")

    def _retire(self, invite: Invite) -> Optional[bool]:
        """
        Mark the invite accepted if nobody has yet.

        True when this call performed the transition, False when another request got
        there first, None when the store failed. A failure here is logged only; the
        membership grant is what counts.
        """
        try:
            updated = self.store.update(
                Invite,
                invite.id,
                {"accepted_at": datetime.now(timezone.utc)},
                expect={"accepted_at": None},
            )
        except InternalError as e:
            logger.error(f"Failed to mark invite {invite.id} accepted: {e.message}")
            return None
        return updated is not None

    def display(self, invites: List[Invite], viewer_profile_id: Optional[str] = None) -> List[InviteDisplay]:
        inviters = self.registrar.get_profiles(
            [i.created_by_profile_id for i in invites if i.created_by_profile_id]
        )
        items = []
        for invite in invites:
            if viewer_profile_id and invite.created_by_profile_id == viewer_profile_id:
                invited_by = "You"
            else:
                inviter = inviters.get(invite.created_by_profile_id) if invite.created_by_profile_id else None
                invited_by = (inviter.full_name if inviter else None) or "Unknown"
            items.append(InviteDisplay(
                id=invite.id,
                email=invite.email,
                invited_by=invited_by,
                created_at=invite.created_at,
                accepted_at=invite.accepted_at,
                token=invite.token,
            ))
        return items
