import datetime as dt
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class QuizQuestion(BaseModel):
    # correctAnswer is not bounds-checked; the quiz grades a bad index as wrong
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    question: str
    options: List[str] = Field(default_factory=list)
    correct_answer: int = Field(alias="correctAnswer")
    explanation: Optional[str] = None


class LessonPlan(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    title: str
    date: dt.date
    duration: str = ""
    notes: List[str] = Field(default_factory=list)
    review_questions: List[str] = Field(default_factory=list, alias="reviewQuestions")
    mini_quiz: List[QuizQuestion] = Field(default_factory=list, alias="miniQuiz")
    standards: List[str] = Field(default_factory=list)
    chapter: str = ""
    day_number: Optional[int] = Field(default=None, alias="dayNumber")


class LessonPlanSetResponse(BaseModel):
    """Body of a successful generation: the date-keyed plans, untouched."""

    model_config = ConfigDict(populate_by_name=True)

    lesson_plans: Dict[str, Any] = Field(alias="lessonPlans")


class CalendarSyncRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    lesson_plans: Dict[str, LessonPlan] = Field(alias="lessonPlans")


class CalendarSyncResult(BaseModel):
    date: str
    status: str = Field(description="created, updated or error")
    gcal_id: Optional[str] = None
    error: Optional[str] = None


class CalendarSyncResponse(BaseModel):
    synced: List[CalendarSyncResult] = Field(default_factory=list)


class AuthStatus(BaseModel):
    connected: bool
    email: Optional[str] = None
