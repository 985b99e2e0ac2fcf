"""Global exception handlers for consistent error responses.

Public error bodies are fixed strings so no internal detail ever reaches
the client:

- RequestValidationError (pydantic body validation) → 400 ``{"error": "Invalid payload"}``
- RateLimitAppError → 429 ``{"error": "Too many requests", "retryAfter": n}``
  plus a ``Retry-After`` header
- StorageAppError, other AppError, unexpected Exception → 500
  ``{"error": "Server error"}``

Client faults (400, 429) are logged at info/warning; server faults at error.
"""

from __future__ import annotations

import logging
from typing import Mapping

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.errors import AppError, RateLimitAppError, StorageAppError
from app.core.logging import get_request_id

logger = logging.getLogger(__name__)

INVALID_PAYLOAD = "Invalid payload"
TOO_MANY_REQUESTS = "Too many requests"
SERVER_ERROR = "Server error"


def invalid_payload_response() -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": INVALID_PAYLOAD})


def server_error_response() -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": SERVER_ERROR})


def too_many_requests_response(
    retry_after: int,
    *,
    headers: Mapping[str, str] | None = None,
) -> JSONResponse:
    """Build the 429 response shared by the rate limiter and the cooldown.

    Args:
        retry_after: Seconds the client should wait.
        headers: Extra headers (e.g. X-RateLimit-*).

    Returns:
        JSONResponse with ``retryAfter`` in the body and a ``Retry-After`` header.
    """

    response_headers = dict(headers or {})
    response_headers["Retry-After"] = str(retry_after)
    return JSONResponse(
        status_code=429,
        content={"error": TOO_MANY_REQUESTS, "retryAfter": retry_after},
        headers=response_headers,
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Map domain errors to their fixed HTTP responses.

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with the status code for the error family.
    """

    if isinstance(exc, RateLimitAppError):
        logger.info(
            "rate_limit_error_handled",
            extra={
                "error_code": exc.code,
                "retry_after_s": exc.retry_after,
                "request_path": request.url.path,
            },
        )
        return too_many_requests_response(exc.retry_after)

    logger.error(
        "storage_error_handled" if isinstance(exc, StorageAppError) else "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "error_details": exc.details,
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        },
    )
    return server_error_response()


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 (not FastAPI's default 422) for malformed or invalid bodies."""

    logger.info(
        "request_validation_failed",
        extra={
            "request_path": request.url.path,
            "error_count": len(exc.errors()),
            "error_types": sorted({str(err.get("type")) for err in exc.errors()}),
        },
    )
    return invalid_payload_response()


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs detailed information for debugging while returning a generic message.
    Prevents information leakage (no stack traces to client).
    """

    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        },
    )
    return server_error_response()


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app.

    Args:
        app: FastAPI application instance.
    """

    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(RequestValidationError)(request_validation_handler)
    app.exception_handler(Exception)(general_exception_handler)
