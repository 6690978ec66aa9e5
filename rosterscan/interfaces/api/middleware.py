"""
API Middleware - Request context and taxonomy error responses.

Every response carries X-Request-ID and X-Response-Time-Ms. Classified
errors become JSON bodies with code, message and remedy, plus an
X-Error-Code header so access logs show the classification.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from rosterscan.config.errors import ErrorCode, RosterScanError

logger = logging.getLogger(__name__)

STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.DOCUMENT_UNREADABLE: 400,
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.AUTHENTICATION_MISSING: 401,
    ErrorCode.AUTHENTICATION_INVALID: 401,
    ErrorCode.AUTHORIZATION_DENIED: 403,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.RUN_IN_PROGRESS: 409,
    ErrorCode.RATE_LIMITED: 429,
    ErrorCode.SERVICE_UNAVAILABLE: 503,
}

# Seconds a client should wait before polling again while a run is active
BUSY_RETRY_AFTER = 5

# Operator-facing problems; everything else is the caller's input
OPERATOR_CODES = frozenset(
    {
        ErrorCode.AUTHENTICATION_MISSING,
        ErrorCode.AUTHENTICATION_INVALID,
        ErrorCode.AUTHORIZATION_DENIED,
        ErrorCode.SERVICE_UNAVAILABLE,
        ErrorCode.UNKNOWN,
        ErrorCode.INTERNAL_ERROR,
    }
)

CallNext = Callable[[Request], Awaitable[Response]]


def error_code_to_status(code: ErrorCode) -> int:
    """HTTP status for a taxonomy code; unclassified codes are 500."""
    return STATUS_BY_CODE.get(code, 500)


def error_response(error: RosterScanError, request_id: str) -> JSONResponse:
    """JSON body and headers for a classified error."""
    headers = {"X-Error-Code": error.code.value}
    if error.code == ErrorCode.RUN_IN_PROGRESS:
        headers["Retry-After"] = str(BUSY_RETRY_AFTER)
    return JSONResponse(
        status_code=error_code_to_status(error.code),
        content={"error": error.to_dict(), "request_id": request_id},
        headers=headers,
    )


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Assign a request id, time the request and write one access log line."""

    async def dispatch(self, request: Request, call_next: CallNext) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        request.state.request_id = request_id
        start_time = time.perf_counter()

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time-Ms"] = f"{duration_ms:.2f}"
        logger.info(
            "%s %s -> %d %s (%.1f ms) request_id=%s",
            request.method,
            request.url.path,
            response.status_code,
            response.headers.get("X-Error-Code", "ok"),
            duration_ms,
            request_id,
        )
        return response


class ErrorResponseMiddleware(BaseHTTPMiddleware):
    """Turn RosterScanError into taxonomy responses; hide unexpected errors."""

    async def dispatch(self, request: Request, call_next: CallNext) -> Response:
        request_id = getattr(request.state, "request_id", "-")
        try:
            return await call_next(request)
        except RosterScanError as e:
            level = logging.ERROR if e.code in OPERATOR_CODES else logging.INFO
            logger.log(
                level,
                "[%s] %s remedy=%r details=%s request_id=%s",
                e.code.value,
                e.message,
                e.remedy,
                e.details,
                request_id,
            )
            return error_response(e, request_id)
        except Exception:
            logger.exception("Unhandled error on %s request_id=%s", request.url.path, request_id)
            internal = RosterScanError(ErrorCode.INTERNAL_ERROR, "Internal server error")
            return error_response(internal, request_id)
