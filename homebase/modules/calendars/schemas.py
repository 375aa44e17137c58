from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime

from homebase.database.store import Row


class Calendar(Row):
    table_name = "calendars"

    id: str
    family_id: str
    name: str
    color: Optional[str] = None
    is_primary: bool = False
    timezone: Optional[str] = None
    created_at: Optional[datetime] = None


class CalendarListResponse(BaseModel):
    family_id: str
    items: List[Calendar]
