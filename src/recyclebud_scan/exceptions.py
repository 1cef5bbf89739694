"""Exception hierarchy for the RecycleBud waste-scan service."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Closed set of failure kinds a scan can end in."""

    UNAUTHENTICATED = "unauthenticated"
    INVALID_INPUT = "invalid_input"
    MISCONFIGURED_SERVICE = "misconfigured_service"
    THROTTLED = "throttled"
    QUOTA_EXCEEDED = "quota_exceeded"
    UPSTREAM_FAILURE = "upstream_failure"


class RecycleBudError(Exception):
    """Base exception for all scan errors.

    ``message`` is safe to show to the caller. ``details`` carries diagnostics
    (upstream status, response body) and is only ever logged.
    """

    kind: ErrorKind = ErrorKind.UPSTREAM_FAILURE
    status_code: int = 500

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class UnauthenticatedError(RecycleBudError):
    """Raised when the bearer credential is missing or cannot be verified."""

    kind = ErrorKind.UNAUTHENTICATED
    status_code = 401

    def __init__(self, message: str = "Unauthorized", details: dict | None = None) -> None:
        super().__init__(message, details)


class InvalidInputError(RecycleBudError):
    """Raised when the request body or image payload is unusable."""

    kind = ErrorKind.INVALID_INPUT
    status_code = 400


class MisconfiguredServiceError(RecycleBudError):
    """Raised when required configuration is missing or invalid.

    Common causes: LOVABLE_API_KEY not set, Supabase URL or anon key missing.
    """

    kind = ErrorKind.MISCONFIGURED_SERVICE
    status_code = 500


class ThrottledError(RecycleBudError):
    """Raised when the AI gateway answers with a rate-limit signal (HTTP 429)."""

    kind = ErrorKind.THROTTLED
    status_code = 429

    def __init__(
        self,
        message: str = "Rate limit exceeded. Please try again later.",
        details: dict | None = None,
    ) -> None:
        super().__init__(message, details)


class QuotaExceededError(RecycleBudError):
    """Raised when the AI gateway reports exhausted credits (HTTP 402)."""

    kind = ErrorKind.QUOTA_EXCEEDED
    status_code = 402

    def __init__(
        self,
        message: str = "AI service quota exceeded.",
        details: dict | None = None,
    ) -> None:
        super().__init__(message, details)


class UpstreamFailureError(RecycleBudError):
    """Raised for any other gateway failure.

    Covers non-success HTTP statuses, transport errors, timeouts and a
    completion without content.
    """

    kind = ErrorKind.UPSTREAM_FAILURE
    status_code = 500

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict | None = None,
    ) -> None:
        super().__init__(message, details)
        self.upstream_status = status_code
