import logging
import os
from typing import Any, Dict, Optional

import requests

from .. import config

logger = logging.getLogger(__name__)

NO_PLANS_MESSAGE = "No lesson plans were generated. Please try again."


class GenerationFailed(Exception):
    """Carries the server's error text so the UI can show it verbatim."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def _error_message(resp: requests.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return f"Server error: {resp.status_code}"
    if isinstance(data, dict):
        for key in ("error", "detail"):
            # FastAPI validation errors put a list under "detail"
            if isinstance(data.get(key), str) and data[key]:
                return data[key]
    return f"Server error: {resp.status_code}"


class LessonPlanApi:
    """HTTP client for the lesson plan backend."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 300,   # plenty of time for OpenAI
    ):
        self.base_url = (base_url or config.LESSON_PLANNER_API).rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def health(self) -> Dict[str, Any]:
        resp = self.session.get(
            f"{self.base_url}/api/generate-lesson-plan", timeout=10
        )
        resp.raise_for_status()
        return resp.json()

    def generate(
        self,
        pdf_path: str,
        duration: int,
        teacher_prompt: str = "",
    ) -> Dict[str, Dict[str, Any]]:
        """Upload a PDF and return the non-empty lessonPlans mapping."""
        logger.info("📤 Sending request to generate lesson plan...")

        with open(pdf_path, "rb") as f:
            files = {"pdf": (os.path.basename(pdf_path), f, "application/pdf")}
            data = {"duration": str(duration), "teacherPrompt": teacher_prompt or ""}
            try:
                resp = self.session.post(
                    f"{self.base_url}/api/generate-lesson-plan",
                    files=files,
                    data=data,
                    timeout=self.timeout,
                )
            except requests.RequestException as e:
                raise GenerationFailed(str(e)) from e

        logger.info("📥 Response status: %s", resp.status_code)

        if not resp.ok:
            raise GenerationFailed(_error_message(resp), resp.status_code)

        try:
            body = resp.json()
        except ValueError as e:
            raise GenerationFailed(f"Server error: {resp.status_code}") from e

        plans = body.get("lessonPlans") if isinstance(body, dict) else None
        if not plans:
            raise GenerationFailed(NO_PLANS_MESSAGE)
        return plans

    def sync_to_google(self, plans: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
        resp = self.session.post(
            f"{self.base_url}/api/calendar/sync-google",
            json={"lessonPlans": plans},
            timeout=60,
        )
        if not resp.ok:
            raise GenerationFailed(_error_message(resp), resp.status_code)
        return resp.json()
