"""Error taxonomy for generation and structured extraction."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel


class ErrorKind(str, Enum):
    """Machine-readable error kinds surfaced to HTTP callers."""

    PROVIDER_UNAVAILABLE = "provider_unavailable"
    MALFORMED_STRUCTURED_RESPONSE = "malformed_structured_response"
    PROVIDER_ERROR = "provider_error"
    INVALID_TASK = "invalid_task"


class ErrorResponse(BaseModel):
    """Body returned with every non-2xx pipeline response."""

    error_kind: ErrorKind
    detail: str
    raw_prompt: str = ""
    raw_response: str = ""


class SourceLensError(Exception):
    """Base class for all pipeline errors."""

    kind: ErrorKind = ErrorKind.PROVIDER_ERROR


# Status codes worth retrying against the same provider
_RETRYABLE_STATUS = {408, 409, 429, 500, 502, 503, 504, 529}


class ProviderError(SourceLensError):
    """A single provider call failed (transport, HTTP status, or bad envelope)."""

    kind = ErrorKind.PROVIDER_ERROR

    def __init__(
        self,
        provider: str,
        message: str,
        *,
        status_code: int | None = None,
        retryable: bool | None = None,
    ) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.status_code = status_code
        if retryable is None:
            retryable = status_code in _RETRYABLE_STATUS
        self.retryable = retryable


class InvalidTask(SourceLensError):
    """Task parameters were rejected before anything was dispatched."""

    kind = ErrorKind.INVALID_TASK


@dataclass(frozen=True)
class FailedAttempt:
    """One failed provider attempt, kept for diagnostics."""

    model_id: str
    provider: str
    error: str


class ProviderUnavailable(SourceLensError):
    """Both the primary and the fallback provider failed."""

    kind = ErrorKind.PROVIDER_UNAVAILABLE

    def __init__(self, raw_prompt: str, attempts: list[FailedAttempt]) -> None:
        tried = ", ".join(a.model_id for a in attempts) or "none"
        super().__init__(f"All providers failed (tried: {tried})")
        self.raw_prompt = raw_prompt
        self.attempts = attempts


class MalformedStructuredResponse(SourceLensError):
    """A JSON-mode task returned unparseable or schema-violating output."""

    kind = ErrorKind.MALFORMED_STRUCTURED_RESPONSE

    def __init__(self, message: str, raw_response: str = "", raw_prompt: str = "") -> None:
        super().__init__(message)
        self.raw_response = raw_response
        self.raw_prompt = raw_prompt


def to_error_response(error: SourceLensError) -> ErrorResponse:
    """Serialise a pipeline error for the HTTP layer."""
    return ErrorResponse(
        error_kind=error.kind,
        detail=str(error),
        raw_prompt=getattr(error, "raw_prompt", ""),
        raw_response=getattr(error, "raw_response", ""),
    )
