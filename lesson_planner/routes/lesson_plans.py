import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from ..config import get_openai_client
from ..errors import InvalidDuration, LessonPlanError, MissingInput, classify_upstream_error
from ..models import LessonPlanSetResponse
from ..openai_generation import generate_lesson_plans

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["lesson-plans"])


def parse_duration(raw: Optional[str]) -> int:
    try:
        days = int(str(raw).strip())
    except (TypeError, ValueError):
        raise InvalidDuration(details=raw)
    if days < 1:
        raise InvalidDuration(details=raw)
    return days


def _require_pdf(pdf: Optional[UploadFile] = File(None)) -> UploadFile:
    if pdf is None or not pdf.filename:
        logger.error("❌ No PDF file provided")
        raise MissingInput()
    return pdf


@router.post("/generate-lesson-plan", response_model=LessonPlanSetResponse)
def generate_lesson_plan(
    pdf: UploadFile = Depends(_require_pdf),
    duration: str = Form("7"),
    teacherPrompt: str = Form(""),
    client=Depends(get_openai_client),
):
    # Sync handler: runs in the threadpool, polling blocks only this request
    days = parse_duration(duration)

    pdf_bytes = pdf.file.read()
    if not pdf_bytes:
        raise MissingInput()

    logger.info("📚 Starting lesson plan generation: %s, %d days", pdf.filename, days)

    try:
        plans = generate_lesson_plans(
            client,
            pdf_bytes,
            days,
            teacherPrompt or "",
            filename=pdf.filename,
        )
    except LessonPlanError:
        raise
    except Exception as e:
        logger.exception("❌ Error generating lesson plan")
        raise classify_upstream_error(e) from e

    return {"lessonPlans": plans}


@router.get("/generate-lesson-plan")
def lesson_plan_api_info():
    return {"message": "Lesson Plan Generator API"}
