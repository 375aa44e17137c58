from fastapi import APIRouter, Depends
from homebase.core.dependencies import get_current_profile, get_registrar, get_store, check_family_member
from homebase.database.store import Store
from homebase.modules.calendars.schemas import CalendarListResponse
from homebase.modules.calendars.service import CalendarService
from homebase.modules.families.schemas import Profile
from homebase.modules.families.service import MembershipRegistrar

router = APIRouter(tags=["calendars"])


def get_calendar_service(store: Store = Depends(get_store)) -> CalendarService:
    return CalendarService(store)


@router.get("/families/{family_id}/calendars", response_model=CalendarListResponse)
async def list_calendars(
    family_id: str,
    profile: Profile = Depends(get_current_profile),
    registrar: MembershipRegistrar = Depends(get_registrar),
    service: CalendarService = Depends(get_calendar_service)
):
    """Calendars of a family; a primary calendar is created when the family has none"""
    check_family_member(family_id, profile, registrar)
    return CalendarListResponse(family_id=family_id, items=service.ensure_calendars(family_id))
