from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, EmailStr

from homebase.database.store import Row
from homebase.modules.families.schemas import MemberRole


class Invite(Row):
    table_name = "family_invites"

    id: str
    family_id: str
    email: str
    role: MemberRole = MemberRole.member
    token: str
    created_by_profile_id: Optional[str] = None
    created_at: Optional[datetime] = None
    accepted_at: Optional[datetime] = None


class AcceptStatus(str, Enum):
    accepted = "accepted"
    already_member = "already_member"
    already_used = "already_used"


class InviteCreate(BaseModel):
    email: EmailStr
    role: MemberRole = MemberRole.member


class InviteResponse(BaseModel):
    id: str
    family_id: str
    email: str
    role: MemberRole
    token: str
    created_by_profile_id: Optional[str] = None
    created_at: Optional[datetime] = None
    accepted_at: Optional[datetime] = None
    invite_url: str


class InviteDisplay(BaseModel):
    id: str
    email: str
    invited_by: str
    created_at: Optional[datetime] = None
    accepted_at: Optional[datetime] = None
    token: str


class FamilyInvitesResponse(BaseModel):
    family_id: str
    items: List[InviteDisplay]


class InviteTokenRequest(BaseModel):
    token: Optional[str] = None


class InvitePreviewResponse(BaseModel):
    family_id: str
    family_name: Optional[str] = None
    inviter_name: Optional[str] = None
    already_used: bool


class InviteAcceptResponse(BaseModel):
    status: AcceptStatus
    family_id: Optional[str] = None
    family_name: Optional[str] = None
    inviter_name: Optional[str] = None
