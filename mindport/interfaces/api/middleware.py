"""
API Middleware - Request/response processing.

Provides:
- Request and session ID tracing
- Response latency measurement
- Error handling with taxonomy codes
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from mindport.config.errors import ErrorCode, MindPortError

logger = logging.getLogger(__name__)

Handler = Callable[[Request], Awaitable[Response]]

_STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.INVALID_ARGUMENT: 400,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.CONFLICT: 409,
    ErrorCode.INVARIANT_VIOLATION: 500,
    ErrorCode.INTERNAL_ERROR: 500,
    ErrorCode.SEARCH_INDEX_FAILED: 503,
    ErrorCode.STORAGE_READ_FAILED: 503,
    ErrorCode.STORAGE_WRITE_FAILED: 503,
    ErrorCode.DEADLINE_EXCEEDED: 504,
}


def error_status(code: ErrorCode) -> int:
    """HTTP status for an error code; unknown codes are 500."""
    return _STATUS_BY_CODE.get(code, 500)


class TracingMiddleware(BaseHTTPMiddleware):
    """Attach request ID and echo the caller's session ID."""

    async def dispatch(self, request: Request, call_next: Handler) -> Response:
        request.state.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.session_id = request.headers.get("X-Session-ID")

        response = await call_next(request)
        response.headers["X-Request-ID"] = request.state.request_id
        if request.state.session_id and "X-Session-ID" not in response.headers:
            response.headers["X-Session-ID"] = request.state.session_id

        return response


class LatencyMiddleware(BaseHTTPMiddleware):
    """Track and log request latency."""

    async def dispatch(self, request: Request, call_next: Handler) -> Response:
        start_time = time.perf_counter()

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        response.headers["X-Response-Time-Ms"] = f"{duration_ms:.2f}"
        logger.info(
            "%s %s status=%d latency_ms=%.2f request_id=%s session=%s",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            getattr(request.state, "request_id", "unknown"),
            getattr(request.state, "session_id", None) or "-",
        )

        return response


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Convert MindPortError exceptions to structured JSON responses."""

    async def dispatch(self, request: Request, call_next: Handler) -> Response:
        request_id = getattr(request.state, "request_id", "unknown")
        try:
            return await call_next(request)
        except MindPortError as e:
            status = error_status(e.code)
            log = logger.error if status >= 500 else logger.warning
            log("%s: %s request_id=%s details=%s", e.code.value, e.message, request_id, e.details)
            return JSONResponse(
                status_code=status,
                content={"error": e.to_dict(), "request_id": request_id},
            )
        except Exception as e:
            logger.exception("Unhandled error: %s request_id=%s", e, request_id)
            return JSONResponse(
                status_code=500,
                content={
                    "error": {
                        "code": ErrorCode.INTERNAL_ERROR.value,
                        "message": "Internal server error",
                        "details": {},
                    },
                    "request_id": request_id,
                },
            )
