"""
Error Taxonomy - Consistent error codes across the application.

Usage:
    from rosterscan.config.errors import ErrorCode, RosterScanError

    raise RosterScanError(ErrorCode.DOCUMENT_UNREADABLE, "Cannot open roster.pdf")

Every classified error carries a remedy: a short runbook hint that a
non-technical user can follow without reading logs.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standardized error codes for machine-readable error responses."""

    # Credential errors
    AUTHENTICATION_MISSING = "AUTHENTICATION_MISSING"
    AUTHENTICATION_INVALID = "AUTHENTICATION_INVALID"
    AUTHORIZATION_DENIED = "AUTHORIZATION_DENIED"

    # Extraction service errors
    RATE_LIMITED = "RATE_LIMITED"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    UNKNOWN = "UNKNOWN"

    # Document errors
    DOCUMENT_UNREADABLE = "DOCUMENT_UNREADABLE"

    # Session errors
    RUN_IN_PROGRESS = "RUN_IN_PROGRESS"

    # General errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"


REMEDIES: dict[ErrorCode, str] = {
    ErrorCode.AUTHENTICATION_MISSING: (
        "No API key is configured. Set GEMINI_API_KEY in the deployment "
        "environment, redeploy, and start the run again."
    ),
    ErrorCode.AUTHENTICATION_INVALID: (
        "The API key was rejected or has expired (keys shared publicly are "
        "revoked automatically). Create a new key in AI Studio, update "
        "GEMINI_API_KEY, redeploy, and start the run again."
    ),
    ErrorCode.AUTHORIZATION_DENIED: (
        "The API key lacks permission for the Gemini API. Check that the API "
        "is enabled and billing is set up for the key's project, then redeploy."
    ),
    ErrorCode.RATE_LIMITED: (
        "Too many requests were sent. Wait about a minute and start the run "
        "again, or switch to a paid API key."
    ),
    ErrorCode.SERVICE_UNAVAILABLE: (
        "The extraction service is busy or temporarily down. Try again later."
    ),
    ErrorCode.DOCUMENT_UNREADABLE: (
        "The file could not be read. Re-save it as .docx or .pdf and upload it again."
    ),
    ErrorCode.UNKNOWN: "Unexpected error from the extraction service; see the message.",
    ErrorCode.RUN_IN_PROGRESS: "Wait for the current run to finish.",
}


class RosterScanError(Exception):
    """Base exception with error code support."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(f"[{code.value}] {message}")

    @property
    def remedy(self) -> str:
        """Runbook hint for the end user."""
        return REMEDIES.get(self.code, "")

    def to_dict(self) -> dict[str, Any]:
        """Convert to API-friendly dictionary."""
        return {
            "code": self.code.value,
            "message": self.message,
            "remedy": self.remedy,
            "details": self.details,
        }


class ExtractionServiceError(RosterScanError):
    """Classified failure of the external extraction service."""

    code_value = ErrorCode.UNKNOWN

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(self.code_value, message, details)


class AuthenticationMissingError(ExtractionServiceError):
    """No usable credential is configured."""

    code_value = ErrorCode.AUTHENTICATION_MISSING


class AuthenticationInvalidError(ExtractionServiceError):
    """Credential rejected, expired or revoked."""

    code_value = ErrorCode.AUTHENTICATION_INVALID


class AuthorizationDeniedError(ExtractionServiceError):
    """Credential valid but lacks permission."""

    code_value = ErrorCode.AUTHORIZATION_DENIED


class RateLimitedError(ExtractionServiceError):
    """Request throttled by the service."""

    code_value = ErrorCode.RATE_LIMITED


class ServiceUnavailableError(ExtractionServiceError):
    """Transient upstream failure."""

    code_value = ErrorCode.SERVICE_UNAVAILABLE


class UnknownServiceError(ExtractionServiceError):
    """Unclassified upstream failure; message is passed through verbatim."""

    code_value = ErrorCode.UNKNOWN


class DocumentUnreadableError(RosterScanError):
    """Input document could not be parsed."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.DOCUMENT_UNREADABLE, message, details)


class PipelineBusyError(RosterScanError):
    """A run is already active."""

    def __init__(self, message: str = "A run is already in progress") -> None:
        super().__init__(ErrorCode.RUN_IN_PROGRESS, message)


class ValidationError(RosterScanError):
    """Invalid input from the caller."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.VALIDATION_ERROR, message, details)


class NotFoundError(RosterScanError):
    """Requested resource does not exist."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.NOT_FOUND, message, details)
