from fastapi import APIRouter, HTTPException

from ..google_calendar import get_calendar_service_and_target, sync_lesson_plans_to_google
from ..models import CalendarSyncRequest, CalendarSyncResponse

router = APIRouter(prefix="/api/calendar", tags=["calendar"])


@router.post("/sync-google", response_model=CalendarSyncResponse)
def sync_google(req: CalendarSyncRequest):
    try:
        service, calendar_id = get_calendar_service_and_target()
    except Exception as e:
        raise HTTPException(status_code=401, detail=f"Google auth failed: {e}")

    results = sync_lesson_plans_to_google(
        req.lesson_plans, service=service, calendar_id=calendar_id
    )
    return CalendarSyncResponse(synced=results)
