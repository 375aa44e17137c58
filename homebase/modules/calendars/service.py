import logging
from typing import List

from homebase.config.settings import settings
from homebase.database.store import Store
from homebase.modules.calendars.schemas import Calendar

logger = logging.getLogger(__name__)


class CalendarService:
    def __init__(self, store: Store):
        self.store = store

    def list_calendars(self, family_id: str) -> List[Calendar]:
        return self.store.get_by_filter(Calendar, order_by=[("created_at", False)], family_id=family_id)

    def ensure_calendars(self, family_id: str) -> List[Calendar]:
        """Ensure-or-seed: a family always has a primary calendar."""
        calendars = self.list_calendars(family_id)
        if calendars:
            return calendars
        seeded = self.store.insert(Calendar, {
            "family_id": family_id,
            "name": settings.default_calendar_name,
            "color": settings.default_calendar_color,
            "is_primary": True,
        })
        logger.info(f"Seeded default calendar {seeded.id} for family {family_id}")
        return [seeded]
