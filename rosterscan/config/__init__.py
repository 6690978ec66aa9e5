"""
Configuration - Application settings and error taxonomy.
"""

from .errors import (
    AuthenticationInvalidError,
    AuthenticationMissingError,
    AuthorizationDeniedError,
    DocumentUnreadableError,
    ErrorCode,
    ExtractionServiceError,
    NotFoundError,
    PipelineBusyError,
    RateLimitedError,
    RosterScanError,
    ServiceUnavailableError,
    UnknownServiceError,
    ValidationError,
)
from .settings import Settings, credential_status, get_settings

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "credential_status",
    # Errors
    "ErrorCode",
    "RosterScanError",
    "ExtractionServiceError",
    "AuthenticationMissingError",
    "AuthenticationInvalidError",
    "AuthorizationDeniedError",
    "RateLimitedError",
    "ServiceUnavailableError",
    "UnknownServiceError",
    "DocumentUnreadableError",
    "PipelineBusyError",
    "ValidationError",
    "NotFoundError",
]
