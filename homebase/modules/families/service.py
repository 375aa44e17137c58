import logging
from typing import Dict, List, Optional

from homebase.config.settings import settings
from homebase.core.exceptions import ConflictError, Forbidden, HomebaseError, InternalError, NotFound, UniqueViolation
from homebase.database.store import Store
from homebase.modules.families.schemas import (
    Family, FamilySummary, MemberDisplay, MemberRole, Membership, PlanTier, Profile
)

logger = logging.getLogger(__name__)


class MembershipRegistrar:
    """
    Profiles and family memberships.

    Two invariants are kept here: one profile per identity, and exactly one default
    membership per profile once it has any. The database backs both with unique
    indexes (profiles.user_id, and a partial index on family_members.profile_id
    where is_default), so a concurrent loser is re-read or downgraded instead of
    failing the request.
    """

    def __init__(self, store: Store):
        self.store = store

    # Profiles

    def get_profile(self, profile_id: str) -> Optional[Profile]:
        return self.store.get_by_key(Profile, profile_id)

    def get_profile_by_identity(self, identity_ref: str) -> Optional[Profile]:
        profiles = self.store.get_by_filter(Profile, user_id=identity_ref)
        return profiles[0] if profiles else None

    def ensure_profile(self, identity_ref: str, fallback_display_name: Optional[str] = None) -> Profile:
        """Get-or-create the profile for an identity."""
        existing = self.get_profile_by_identity(identity_ref)
        if existing is not None:
            return existing
        try:
            profile = self.store.insert(Profile, {
                "user_id": identity_ref,
                "full_name": fallback_display_name,
            })
            logger.info(f"Created profile {profile.id} for identity {identity_ref}")
            return profile
        except UniqueViolation:
            # A concurrent request created it first.
            profile = self.get_profile_by_identity(identity_ref)
            if profile is None:
                raise InternalError(f"Profile for identity {identity_ref} vanished after insert conflict")
            return profile

    def update_display_name(self, profile_id: str, full_name: str) -> Profile:
        profile = self.store.update(Profile, profile_id, {"full_name": full_name.strip()})
        if profile is None:
            raise NotFound("Profile not found")
        return profile

    def get_profiles(self, profile_ids: List[str]) -> Dict[str, Profile]:
        if not profile_ids:
            return {}
        profiles = self.store.get_by_filter(Profile, id=sorted(set(profile_ids)))
        return {p.id: p for p in profiles}

    # Memberships

    def get_membership(self, profile_id: str, family_id: str) -> Optional[Membership]:
        memberships = self.store.get_by_filter(Membership, family_id=family_id, profile_id=profile_id)
        return memberships[0] if memberships else None

    def list_memberships(self, profile_id: str) -> List[Membership]:
        return self.store.get_by_filter(Membership, order_by=[("created_at", False)], profile_id=profile_id)

    def list_family_members(self, family_id: str) -> List[Membership]:
        return self.store.get_by_filter(Membership, order_by=[("created_at", False)], family_id=family_id)

    def grant_membership(self, profile_id: str, family_id: str, role: MemberRole = MemberRole.member) -> Membership:
        """
        Idempotently grant `profile_id` a membership in `family_id`.

        The first membership a profile receives becomes its default. If a concurrent
        grant for another family claimed the default first, this membership is
        inserted again as non-default.
        """
        existing = self.get_membership(profile_id, family_id)
        if existing is not None:
            return existing

        is_default = len(self.list_memberships(profile_id)) == 0
        while True:
            try:
                membership = self.store.insert(Membership, {
                    "family_id": family_id,
                    "profile_id": profile_id,
                    "role": MemberRole(role).value,
                    "is_default": is_default,
                })
                logger.info(
                    f"Granted {membership.role.value} membership in family {family_id} "
                    f"to profile {profile_id} (default={membership.is_default})"
                )
                return membership
            except UniqueViolation:
                existing = self.get_membership(profile_id, family_id)
                if existing is not None:
                    return existing
                if not is_default:
                    raise ConflictError(f"Could not grant membership in family {family_id}")
                logger.warning(
                    f"Profile {profile_id} gained a default membership concurrently; "
                    f"granting family {family_id} as non-default"
                )
                is_default = False

    def get_default_membership(self, profile_id: str) -> Optional[Membership]:
        memberships = self.list_memberships(profile_id)
        for membership in memberships:
            if membership.is_default:
                return membership
        return memberships[0] if memberships else None

    def require_member(self, profile_id: str, family_id: str) -> Membership:
        membership = self.get_membership(profile_id, family_id)
        if membership is None:
            raise Forbidden("You must be a member of this family")
        return membership

    def require_owner(self, profile_id: str, family_id: str) -> Membership:
        membership = self.require_member(profile_id, family_id)
        if membership.role != MemberRole.owner:
            raise Forbidden("Only the family owner can perform this action")
        return membership

    # Families

    def get_family(self, family_id: str) -> Optional[Family]:
        return self.store.get_by_key(Family, family_id)

    def require_family(self, family_id: str) -> Family:
        family = self.get_family(family_id)
        if family is None:
            raise NotFound("Family not found")
        return family

    def get_families(self, family_ids: List[str]) -> Dict[str, Family]:
        if not family_ids:
            return {}
        families = self.store.get_by_filter(Family, id=sorted(set(family_ids)))
        return {f.id: f for f in families}

    def bootstrap_default_family(self, profile: Profile) -> Family:
        """
        Give a profile with no memberships its own family, owned by it.

        A profile that already belongs somewhere gets its default family back instead.
        """
        current = self.get_default_membership(profile.id)
        if current is not None:
            return self.require_family(current.family_id)

        family = self.store.insert(Family, {
            "name": settings.default_family_name,
            "plan_tier": PlanTier.free.value,
            "created_by": profile.user_id,
        })
        membership = self.grant_membership(profile.id, family.id, MemberRole.owner)
        if membership.is_default:
            logger.info(f"Bootstrapped family {family.id} for profile {profile.id}")
            return family

        # A concurrent first login seeded another family first; drop ours and converge on it.
        logger.warning(
            f"Profile {profile.id} was bootstrapped concurrently; discarding duplicate family {family.id}"
        )
        # The membership goes with the family (on delete cascade)
        try:
            self.store.delete(Family, family.id)
        except HomebaseError as e:
            logger.error(f"Could not discard duplicate family {family.id}: {e.message}")
        winner = self.get_default_membership(profile.id)
        if winner is None:
            raise InternalError(f"Profile {profile.id} has no default membership after bootstrap")
        return self.require_family(winner.family_id)

    def list_user_families(self, profile_id: str) -> List[FamilySummary]:
        memberships = self.list_memberships(profile_id)
        families = self.get_families([m.family_id for m in memberships])
        summaries = []
        for membership in memberships:
            family = families.get(membership.family_id)
            if family is None:
                continue
            summaries.append(FamilySummary(
                id=family.id,
                name=family.name,
                role=membership.role,
                is_default=membership.is_default,
            ))
        return summaries

    def list_member_display(self, family_id: str) -> List[MemberDisplay]:
        members = self.list_family_members(family_id)
        profiles = self.get_profiles([m.profile_id for m in members])
        items = []
        for member in members:
            profile = profiles.get(member.profile_id)
            items.append(MemberDisplay(
                id=member.id,
                profile_id=member.profile_id,
                full_name=profile.full_name if profile else None,
                avatar_url=profile.avatar_url if profile else None,
                role=member.role,
                is_default=member.is_default,
            ))
        return items
