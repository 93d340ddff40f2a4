from typing import Any, Dict, Optional, Type

import openai


class LessonPlanError(Exception):
    """Base class for every failure that ends a generation request."""

    status_code = 500
    message = "Failed to generate lesson plan. Please try again."

    def __init__(self, message: Optional[str] = None, details: Any = None):
        self.message = message or self.message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class MissingInput(LessonPlanError):
    status_code = 400
    message = "No PDF file provided"


class InvalidDuration(LessonPlanError):
    status_code = 400
    message = "Duration must be a positive number of days"


class MisconfiguredService(LessonPlanError):
    status_code = 500
    message = "OpenAI API key not configured"


class UpstreamCredentialRejected(LessonPlanError):
    status_code = 401
    message = "OpenAI API key is invalid or missing. Please check your configuration."


class UpstreamQuotaExceeded(LessonPlanError):
    status_code = 429
    message = "OpenAI API quota exceeded. Please check your billing settings."


class UpstreamRateLimited(LessonPlanError):
    status_code = 429
    message = "API rate limit exceeded. Please try again in a moment."


class UpstreamUploadFailed(LessonPlanError):
    status_code = 500
    message = "Failed to upload PDF to OpenAI"


class UpstreamRunFailed(LessonPlanError):
    status_code = 500
    message = "Assistant run failed"

    def __init__(self, status: str, last_error: Any = None):
        self.status = status
        self.last_error = last_error
        super().__init__(details=last_error or status)


class UpstreamTimeout(LessonPlanError):
    status_code = 504
    message = "Timed out while generating lesson plan"


class EmptyUpstreamResponse(LessonPlanError):
    status_code = 500
    message = "No assistant message found"


class InvalidUpstreamPayload(LessonPlanError):
    status_code = 500
    message = "Failed to parse AI response. The AI may have returned invalid JSON."


class InvalidResponseShape(LessonPlanError):
    status_code = 500
    message = "Invalid lesson plan structure returned from AI"


def classify_upstream_error(
    exc: Exception,
    fallback: Type[LessonPlanError] = LessonPlanError,
) -> LessonPlanError:
    """
    Map an exception raised while talking to OpenAI onto the error taxonomy.
    Credential and quota problems are recognised by type first, then by
    matching the message text.
    """
    if isinstance(exc, LessonPlanError):
        return exc

    text = str(exc)
    lowered = text.lower()

    if isinstance(exc, openai.AuthenticationError) or "api key" in lowered:
        return UpstreamCredentialRejected(details=text)
    if "quota" in lowered:
        return UpstreamQuotaExceeded(details=text)
    if isinstance(exc, openai.RateLimitError) or "rate limit" in lowered:
        return UpstreamRateLimited(details=text)

    return fallback(details=text or type(exc).__name__)
