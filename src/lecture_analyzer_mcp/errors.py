"""Error taxonomy, classification, and the serialisable tool error model.

Every failure the service layer raises is a :class:`LectureError`. The
MCP tools turn them into :class:`ToolError` dicts; the HTTP routes turn
them into a status code plus a user-facing message.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel

RAW_EXCERPT_LIMIT = 500

GENERIC_FAILURE_MESSAGE = "Failed to process the request. Please try again."


class LectureError(Exception):
    """Base class for all expected lecture-analyzer failures."""


class InvalidInput(LectureError):
    """Malformed URL or missing required field; rejected before any network call."""


class InvalidUrl(InvalidInput):
    """No 11-character YouTube video identifier could be found in the URL."""

    def __init__(self, url: str) -> None:
        super().__init__(f"Invalid YouTube URL: {url}")
        self.url = url


class NoTranscriptAvailable(LectureError):
    """The video has no accessible transcript; we refuse to fabricate one."""

    def __init__(self, video_id: str, reason: str = "") -> None:
        message = (
            "No transcript is available for this video, so it cannot be analyzed "
            "without inventing content. Try a video with captions enabled or paste "
            "the transcript text instead."
        )
        super().__init__(message)
        self.video_id = video_id
        self.reason = reason


class ProviderError(LectureError):
    """An external service (Gemini or the caption service) failed."""


class GenerationFailed(ProviderError):
    """A single Gemini call failed; the provider message is attached unchanged."""


class TranscriptFetchFailed(ProviderError):
    """The caption service failed for a reason other than a missing transcript."""


class MalformedResponse(LectureError):
    """Model output could not be recovered as the expected JSON shape."""

    def __init__(self, message: str, raw: str = "", issues: list[str] | None = None) -> None:
        super().__init__(message)
        self.raw_excerpt = raw[:RAW_EXCERPT_LIMIT]
        self.issues = issues or []


class DashboardNotFound(LectureError):
    """No stored analysis has the requested identifier."""

    def __init__(self, analysis_id: str) -> None:
        super().__init__(f"No saved analysis with id {analysis_id!r}")
        self.analysis_id = analysis_id


class ErrorCategory(str, Enum):
    """Categories of errors for diagnostics."""

    INVALID_INPUT = "INVALID_INPUT"
    URL_INVALID = "URL_INVALID"
    NO_TRANSCRIPT = "NO_TRANSCRIPT"
    NOT_FOUND = "NOT_FOUND"
    API_PERMISSION_DENIED = "API_PERMISSION_DENIED"
    API_QUOTA_EXCEEDED = "API_QUOTA_EXCEEDED"
    API_INVALID_ARGUMENT = "API_INVALID_ARGUMENT"
    NETWORK_ERROR = "NETWORK_ERROR"
    PROVIDER_ERROR = "PROVIDER_ERROR"
    MALFORMED_RESPONSE = "MALFORMED_RESPONSE"
    UNKNOWN = "UNKNOWN"


class ToolError(BaseModel):
    """Structured error returned from any tool."""

    error: str
    category: str
    hint: str
    retryable: bool = False
    retry_after_seconds: int | None = None


def _categorize_provider_message(message: str) -> tuple[ErrorCategory, str]:
    s = message.lower()
    if "403" in s or "permission" in s or "api key" in s or "api_key" in s:
        return (
            ErrorCategory.API_PERMISSION_DENIED,
            "The Gemini API key is missing, invalid, or lacks permission",
        )
    if "429" in s or "quota" in s or "resource_exhausted" in s:
        return (
            ErrorCategory.API_QUOTA_EXCEEDED,
            "Rate limit hit — wait before trying again",
        )
    if "400" in s or "invalid_argument" in s:
        return (
            ErrorCategory.API_INVALID_ARGUMENT,
            "The provider rejected the request — check the input size and format",
        )
    if "timeout" in s or "timed out" in s or "connect" in s:
        return (
            ErrorCategory.NETWORK_ERROR,
            "Request timed out or could not connect — check connectivity and try again",
        )
    return (ErrorCategory.PROVIDER_ERROR, "The external service failed — try again later")


def categorize_error(error: Exception) -> tuple[ErrorCategory, str]:
    """Map an exception to an ErrorCategory + human-readable hint."""
    if isinstance(error, InvalidUrl):
        return (
            ErrorCategory.URL_INVALID,
            "Use a YouTube watch, youtu.be, embed, or /v/ link with an 11-character video id",
        )
    if isinstance(error, InvalidInput):
        return (ErrorCategory.INVALID_INPUT, "Fill in every required field and try again")
    if isinstance(error, NoTranscriptAvailable):
        return (
            ErrorCategory.NO_TRANSCRIPT,
            "Pick a video with captions or paste the transcript text",
        )
    if isinstance(error, DashboardNotFound):
        return (ErrorCategory.NOT_FOUND, "List saved analyses to find a valid id")
    if isinstance(error, MalformedResponse):
        return (
            ErrorCategory.MALFORMED_RESPONSE,
            "The model returned output that could not be parsed — run the request again",
        )
    if isinstance(error, TimeoutError):
        return (
            ErrorCategory.NETWORK_ERROR,
            "Request timed out — try again or check connectivity",
        )
    if isinstance(error, ProviderError):
        return _categorize_provider_message(str(error))
    if isinstance(error, ValueError):
        return (ErrorCategory.INVALID_INPUT, str(error))
    return (ErrorCategory.UNKNOWN, str(error))


def make_tool_error(error: Exception) -> dict:
    """Create a serialisable ToolError dict from an exception."""
    cat, hint = categorize_error(error)
    retryable = cat in {
        ErrorCategory.API_QUOTA_EXCEEDED,
        ErrorCategory.NETWORK_ERROR,
        ErrorCategory.MALFORMED_RESPONSE,
    }
    return ToolError(
        error=user_message(error),
        category=cat.value,
        hint=hint,
        retryable=retryable,
        retry_after_seconds=60 if cat == ErrorCategory.API_QUOTA_EXCEEDED else None,
    ).model_dump(mode="json")


def user_message(error: Exception) -> str:
    """Return the message safe to show an end user.

    Input problems, missing transcripts and unknown ids are actionable and
    shown verbatim. Provider and parse failures collapse to a generic
    message; their detail belongs in the log.
    """
    if isinstance(error, (InvalidInput, NoTranscriptAvailable, DashboardNotFound)):
        return str(error)
    return GENERIC_FAILURE_MESSAGE


def http_status(error: Exception) -> int:
    """HTTP status code for an exception raised by the service layer."""
    if isinstance(error, InvalidInput):
        return 400
    if isinstance(error, DashboardNotFound):
        return 404
    if isinstance(error, NoTranscriptAvailable):
        return 422
    return 500
