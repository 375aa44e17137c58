from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from homebase.database.store import Row


class PlanTier(str, Enum):
    free = "free"
    basic = "basic"
    plus = "plus"
    pro = "pro"
    internal = "internal"


class MemberRole(str, Enum):
    owner = "owner"
    member = "member"


class Profile(Row):
    table_name = "profiles"

    id: str
    user_id: str  # identity reference (auth.users.id)
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None


class Family(Row):
    table_name = "families"

    id: str
    name: str
    plan_tier: PlanTier = PlanTier.free
    billing_status: Optional[str] = None
    billing_customer_id: Optional[str] = None
    current_period_end: Optional[datetime] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None


class Membership(Row):
    table_name = "family_members"

    id: str
    family_id: str
    profile_id: str
    role: MemberRole = MemberRole.member
    is_default: bool = False
    created_at: Optional[datetime] = None


class FamilySummary(BaseModel):
    id: str
    name: str
    role: MemberRole
    is_default: bool


class MemberDisplay(BaseModel):
    id: str
    profile_id: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    role: MemberRole
    is_default: bool


class FamilyMembersResponse(BaseModel):
    family_id: str
    items: List[MemberDisplay]


class ProfileUpdate(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=255)
