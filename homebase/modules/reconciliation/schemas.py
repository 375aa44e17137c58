from pydantic import BaseModel
from typing import List

from homebase.config.plans_config import PLAN_METADATA, is_billable
from homebase.modules.calendars.schemas import Calendar
from homebase.modules.families.schemas import Family, FamilySummary, MemberDisplay, Membership, Profile
from homebase.modules.invites.schemas import InviteDisplay
from homebase.modules.tasks.schemas import TaskList


class PlanInfo(BaseModel):
    tier: str
    label: str
    description: str
    billable: bool

    @classmethod
    def for_tier(cls, tier: str) -> "PlanInfo":
        meta = PLAN_METADATA.get(tier, PLAN_METADATA["free"])
        return cls(tier=tier, label=meta["label"], description=meta["description"], billable=is_billable(tier))


class BootstrapResponse(BaseModel):
    """Everything the dashboard needs for the active family, in one read."""

    profile: Profile
    family: Family
    plan: PlanInfo
    membership: Membership
    is_family_owner: bool
    user_families: List[FamilySummary]
    calendars: List[Calendar]
    task_lists: List[TaskList]
    members: List[MemberDisplay]
    invites: List[InviteDisplay]
