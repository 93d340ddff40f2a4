import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Tuple

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from . import config
from .models import CalendarSyncResult, LessonPlan

logger = logging.getLogger(__name__)

EVENT_SOURCE = "lesson-planner"


def get_calendar_service_and_target() -> Tuple[Any, str]:
    """Calendar API client and target calendar for the connected Google account."""
    service = build(
        "calendar", "v3", credentials=config.get_google_creds_single_user()
    )
    return service, config.GLOBAL_CALENDAR_ID or config.CALENDAR_ID


# ========= LESSON PLAN MAPPING HELPERS =========


def app_event_id_for(date_key: str) -> str:
    return f"lesson-{date_key}"


def lesson_day(date_key: str, plan: LessonPlan) -> date:
    # The mapping key is the lesson's day; plan.date only when the key is not a date
    try:
        return date.fromisoformat(date_key)
    except ValueError:
        return plan.date


def lesson_plan_description(plan: LessonPlan) -> str:
    lines: List[str] = []
    if plan.chapter:
        lines.append(plan.chapter)
    if plan.duration:
        lines.append(f"Duration: {plan.duration}")

    if plan.notes:
        lines.append("")
        lines.append("Notes:")
        lines.extend(f"- {note}" for note in plan.notes)

    if plan.review_questions:
        lines.append("")
        lines.append("Review questions:")
        lines.extend(f"{i}. {q}" for i, q in enumerate(plan.review_questions, 1))

    if plan.standards:
        lines.append("")
        lines.append("Standards: " + ", ".join(plan.standards))

    return "\n".join(lines)


def lesson_plan_to_google_body(date_key: str, plan: LessonPlan) -> dict:
    """Map one day's LessonPlan → all-day Google Calendar event JSON."""
    start = lesson_day(date_key, plan)
    end = start + timedelta(days=1)

    body: Dict[str, Any] = {
        "summary": plan.title,
        "description": lesson_plan_description(plan) or None,
        "start": {"date": start.isoformat()},
        "end": {"date": end.isoformat()},
        "extendedProperties": {
            "private": {
                "source": EVENT_SOURCE,
                "app_event_id": app_event_id_for(date_key),
            }
        },
    }

    return {k: v for k, v in body.items() if v is not None}


def find_lesson_event(service, calendar_id: str, app_event_id: str) -> Optional[dict]:
    """Event previously created for this lesson day, looked up by its private tag."""
    try:
        found = (
            service.events()
            .list(
                calendarId=calendar_id,
                privateExtendedProperty=f"app_event_id={app_event_id}",
                maxResults=1,
                singleEvents=True,
            )
            .execute()
        )
    except HttpError as he:
        logger.warning("⚠️ Lookup of %s failed, creating a new event: %s", app_event_id, he)
        return None
    return next(iter(found.get("items") or []), None)


# ========= SYNC LESSON PLANS → CALENDAR =========


def upsert_lesson_plan(
    service, calendar_id: str, date_key: str, plan: LessonPlan
) -> CalendarSyncResult:
    app_event_id = app_event_id_for(date_key)
    body = lesson_plan_to_google_body(date_key, plan)

    try:
        existing = find_lesson_event(service, calendar_id, app_event_id)
        if existing:
            updated = (
                service.events()
                .update(calendarId=calendar_id, eventId=existing["id"], body=body)
                .execute()
            )
            return CalendarSyncResult(
                date=date_key, status="updated", gcal_id=updated.get("id")
            )

        created = (
            service.events()
            .insert(calendarId=calendar_id, body=body)
            .execute()
        )
        return CalendarSyncResult(
            date=date_key, status="created", gcal_id=created.get("id")
        )
    except HttpError as he:
        logger.warning("⚠️ Google Calendar rejected %s: %s", date_key, he)
        return CalendarSyncResult(date=date_key, status="error", error=str(he))


def sync_lesson_plans_to_google(
    plans: Dict[str, LessonPlan],
    service=None,
    calendar_id: Optional[str] = None,
) -> List[CalendarSyncResult]:
    """Create or update one all-day event per lesson plan date."""
    if service is None:
        service, calendar_id = get_calendar_service_and_target()
    calendar_id = calendar_id or config.CALENDAR_ID

    results = [
        upsert_lesson_plan(service, calendar_id, date_key, plans[date_key])
        for date_key in sorted(plans)
    ]
    logger.info(
        "📅 Synced %d lesson plans to Google Calendar %s", len(results), calendar_id
    )
    return results
