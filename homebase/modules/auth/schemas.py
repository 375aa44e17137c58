from pydantic import BaseModel
from typing import List, Optional

from homebase.modules.families.schemas import FamilySummary, Profile


class Identity(BaseModel):
    """Authenticated caller, as resolved from a Supabase Auth access token."""

    id: str
    email: Optional[str] = None
    access_token: Optional[str] = None

    @property
    def fallback_display_name(self) -> Optional[str]:
        return self.email


class MeResponse(BaseModel):
    id: str
    email: Optional[str] = None
    profile: Profile
    families: List[FamilySummary]
