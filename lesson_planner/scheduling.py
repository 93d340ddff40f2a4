from datetime import date, timedelta
from typing import List, Optional

SATURDAY = 5
SUNDAY = 6


def is_weekend(day: date) -> bool:
    return day.weekday() in (SATURDAY, SUNDAY)


def next_weekday_start(today: Optional[date] = None) -> date:
    """First teaching day: tomorrow, pushed past Saturday/Sunday."""
    day = (today or date.today()) + timedelta(days=1)
    while is_weekend(day):
        day += timedelta(days=1)
    return day


def weekday_dates(start: date, count: int) -> List[date]:
    """`count` consecutive weekdays beginning at `start` (or the next weekday)."""
    days: List[date] = []
    day = start
    while len(days) < count:
        if not is_weekend(day):
            days.append(day)
        day += timedelta(days=1)
    return days
