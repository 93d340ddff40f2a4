from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional


class Phase(str, Enum):
    COLLECTING_INPUT = "collecting-input"
    SHOWING_RESULTS = "showing-results"


def date_key(day: date) -> str:
    # Calendar-local date as YYYY-MM-DD; no timezone conversion.
    return day.isoformat()


class LessonPlanStore:
    """
    Holds the most recent LessonPlanSet for one client session.

    Created empty; `load` fills it and switches to the results phase,
    `clear` drops everything and goes back to collecting input.
    """

    def __init__(self):
        self.phase = Phase.COLLECTING_INPUT
        self._plans: Dict[str, Dict[str, Any]] = {}

    def load(self, plans: Dict[str, Dict[str, Any]]) -> None:
        self._plans = dict(plans)
        self.phase = Phase.SHOWING_RESULTS

    def clear(self) -> None:
        self._plans = {}
        self.phase = Phase.COLLECTING_INPUT

    @property
    def plans(self) -> Dict[str, Dict[str, Any]]:
        return dict(self._plans)

    def has_plan(self, day: date) -> bool:
        return date_key(day) in self._plans

    def plan_for(self, day: date) -> Optional[Dict[str, Any]]:
        return self._plans.get(date_key(day))

    def dates(self) -> List[date]:
        """Keys that parse as ISO dates, in calendar order."""
        days = []
        for key in self._plans:
            try:
                days.append(date.fromisoformat(key))
            except ValueError:
                continue
        return sorted(days)

    def __len__(self) -> int:
        return len(self._plans)
