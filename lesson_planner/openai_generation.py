import json
import logging
import re
import time
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, List, Optional

from pydantic import TypeAdapter, ValidationError

from . import config
from .errors import (
    EmptyUpstreamResponse,
    InvalidResponseShape,
    InvalidUpstreamPayload,
    LessonPlanError,
    UpstreamRunFailed,
    UpstreamTimeout,
    UpstreamUploadFailed,
    classify_upstream_error,
)
from .models import LessonPlan
from .prompts import ASSISTANT_NAME, build_assistant_instructions, build_user_prompt
from .scheduling import next_weekday_start

logger = logging.getLogger(__name__)

FILE_SEARCH_TOOL = {"type": "file_search"}
FAILED_RUN_STATUSES = {"failed", "cancelled", "expired"}
RAW_TEXT_DETAIL_LIMIT = 500

_JSON_FENCE = re.compile(r"```json\s*(.*?)\s*```", re.DOTALL)
_ANY_FENCE = re.compile(r"```\s*(.*?)\s*```", re.DOTALL)

_lesson_plans_adapter = TypeAdapter(Dict[str, LessonPlan])


@dataclass
class UpstreamResources:
    """Ids of everything one request created on the OpenAI side."""

    file_id: Optional[str] = None
    assistant_id: Optional[str] = None
    thread_id: Optional[str] = None
    run_id: Optional[str] = None


# ========= RESPONSE HELPERS =========


def strip_code_fence(raw_text: str) -> str:
    text = raw_text.strip()
    if "```json" in text:
        match = _JSON_FENCE.search(text)
        if match:
            return match.group(1).strip()
    elif "```" in text:
        match = _ANY_FENCE.search(text)
        if match:
            return match.group(1).strip()
    return text


def extract_json_payload(raw_text: str) -> Any:
    """Parse the assistant's reply, tolerating one ```json fence around it."""
    cleaned = strip_code_fence(raw_text)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.error("❌ Failed to parse OpenAI response as JSON: %s", e)
        logger.debug("📄 Full response text: %s", raw_text)
        raise InvalidUpstreamPayload(
            details=raw_text[:RAW_TEXT_DETAIL_LIMIT] + "..."
        ) from e


def _format_violation(error: Dict[str, Any]) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()))
    return f"{location}: {error.get('msg')}" if location else str(error.get("msg"))


def validate_lesson_plans(payload: Any, strict: bool = False) -> Dict[str, Any]:
    """
    Return payload["lessonPlans"] if it is a JSON object.

    With strict=True every entry must also parse as a LessonPlan; all violations
    are reported together in one InvalidResponseShape.
    """
    plans = payload.get("lessonPlans") if isinstance(payload, dict) else None
    if not isinstance(plans, dict):
        logger.error("❌ Invalid lesson plan structure: %r", payload)
        raise InvalidResponseShape()

    if strict:
        try:
            _lesson_plans_adapter.validate_python(plans)
        except ValidationError as e:
            violations = [_format_violation(err) for err in e.errors()]
            logger.error("❌ Lesson plans failed validation: %s", violations)
            raise InvalidResponseShape(details=violations) from e

    return plans


def collect_assistant_text(messages: List[Any]) -> str:
    """Join the text parts of the newest assistant message."""
    message = next((m for m in messages if m.role == "assistant"), None)
    if message is None:
        return ""

    parts: List[str] = []
    for part in message.content or []:
        if getattr(part, "type", None) != "text":
            continue
        value = getattr(getattr(part, "text", None), "value", None)
        if value:
            parts.append(value)
    return "".join(parts)


# ========= RUN POLLING =========


def wait_for_run(
    client,
    thread_id: str,
    run_id: str,
    *,
    poll_interval: float,
    timeout: float,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
):
    """Poll a run until it completes; raise on failure or after `timeout` seconds."""
    started = clock()
    while True:
        run = client.beta.threads.runs.retrieve(run_id, thread_id=thread_id)
        logger.debug("Run %s status: %s", run_id, run.status)

        if run.status == "completed":
            return run
        if run.status in FAILED_RUN_STATUSES:
            last_error = getattr(run, "last_error", None)
            logger.error("❌ Run failed with status: %s %s", run.status, last_error)
            raise UpstreamRunFailed(run.status, _describe_last_error(last_error))
        if clock() - started > timeout:
            logger.error("⏱️ Run %s timed out after %.0fs", run_id, timeout)
            raise UpstreamTimeout()

        sleep(poll_interval)


def _describe_last_error(last_error: Any) -> Any:
    if last_error is None:
        return None
    if hasattr(last_error, "model_dump"):
        return last_error.model_dump()
    if isinstance(last_error, dict):
        return last_error
    return str(last_error)


# ========= CLEANUP =========


def release_upstream_resources(client, resources: UpstreamResources) -> None:
    """Delete the thread, assistant and file created for one request."""
    deletions = [
        (resources.thread_id, client.beta.threads.delete, "thread"),
        (resources.assistant_id, client.beta.assistants.delete, "assistant"),
        (resources.file_id, client.files.delete, "file"),
    ]
    for resource_id, delete, kind in deletions:
        if not resource_id:
            continue
        try:
            delete(resource_id)
        except Exception as e:
            logger.warning("⚠️ Could not delete %s %s: %s", kind, resource_id, e)


# ========= MAIN WORKFLOW =========


def generate_lesson_plans(
    client,
    pdf_bytes: bytes,
    duration_days: int,
    teacher_prompt: str = "",
    *,
    filename: str = "textbook.pdf",
    today: Optional[date] = None,
    model: Optional[str] = None,
    poll_interval: Optional[float] = None,
    timeout: Optional[float] = None,
    cleanup: Optional[bool] = None,
    strict: Optional[bool] = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> Dict[str, Any]:
    """
    Send a textbook PDF to an OpenAI assistant and return the validated
    date-keyed lessonPlans mapping.
    """
    model = model or config.OPENAI_MODEL
    poll_interval = config.POLL_INTERVAL_SECONDS if poll_interval is None else poll_interval
    timeout = config.RUN_TIMEOUT_SECONDS if timeout is None else timeout
    cleanup = config.CLEANUP_UPSTREAM_RESOURCES if cleanup is None else cleanup
    strict = config.STRICT_PLAN_VALIDATION if strict is None else strict

    start = next_weekday_start(today)
    resources = UpstreamResources()

    try:
        # 1) Upload file
        logger.info("🔍 Uploading PDF to OpenAI Files for analysis...")
        try:
            uploaded = client.files.create(
                file=(filename, pdf_bytes),
                purpose="assistants",
            )
        except Exception as e:
            raise classify_upstream_error(e, UpstreamUploadFailed) from e
        resources.file_id = uploaded.id
        logger.info("📤 Uploaded to OpenAI Files: %s", uploaded.id)

        try:
            # 2) Assistant with file_search and strict JSON instructions
            assistant = client.beta.assistants.create(
                model=model,
                name=ASSISTANT_NAME,
                tools=[FILE_SEARCH_TOOL],
                instructions=build_assistant_instructions(start),
            )
            resources.assistant_id = assistant.id

            # 3) Thread + user message with the file attached
            thread = client.beta.threads.create()
            resources.thread_id = thread.id

            client.beta.threads.messages.create(
                thread.id,
                role="user",
                content=build_user_prompt(duration_days, teacher_prompt, start),
                attachments=[
                    {"file_id": uploaded.id, "tools": [FILE_SEARCH_TOOL]}
                ],
            )

            # 4) Run and poll
            logger.info("🤖 Starting assistant run (%s, %s days from %s)", model, duration_days, start)
            run = client.beta.threads.runs.create(
                thread_id=thread.id,
                assistant_id=assistant.id,
            )
            resources.run_id = run.id

            wait_for_run(
                client,
                thread.id,
                run.id,
                poll_interval=poll_interval,
                timeout=timeout,
                sleep=sleep,
                clock=clock,
            )

            # 5) Latest assistant message
            messages = client.beta.threads.messages.list(
                thread_id=thread.id, limit=10, order="desc"
            )
            response_text = collect_assistant_text(list(messages.data))
        except LessonPlanError:
            raise
        except Exception as e:
            logger.error("❌ Error generating lesson plan: %s", e)
            raise classify_upstream_error(e) from e

        if not response_text:
            logger.error("❌ No response content from OpenAI")
            raise EmptyUpstreamResponse()

        logger.info("✅ Received response from OpenAI (%d chars)", len(response_text))
        logger.info("🔍 First 200 chars of response: %s", response_text[:200])

        payload = extract_json_payload(response_text)
        plans = validate_lesson_plans(payload, strict=strict)
        logger.info("🎉 Lesson plan generation completed with %d days", len(plans))
        return plans
    finally:
        if cleanup:
            release_upstream_resources(client, resources)
