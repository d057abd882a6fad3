"""Global exception handlers for consistent error responses.

This module provides FastAPI exception handlers that intercept all errors
(domain and unexpected) and return consistent JSON responses with proper
HTTP status codes and traceability.

Design:
- PostValidationError → 400 ``{"error": "Validation failed", "details": [...]}``
- RateLimitExceededError → 429 ``{"error": "Rate limit exceeded", "message", "resetTime"}``
- UpstreamUnavailableError → 500 with a generic message (detail logged only)
- Other AppError subclasses → 400/401/403/404
- Unexpected Exception → generic 500 (safety net)
"""

import logging
from datetime import timezone

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from wescollab.core.config import settings
from wescollab.core.errors import (
    AppError,
    AuthenticationAppError,
    AuthorizationAppError,
    NotFoundAppError,
    PostValidationError,
    RateLimitExceededError,
    UpstreamUnavailableError,
)
from wescollab.core.logging import get_request_id

logger = logging.getLogger(__name__)


def _status_for(exc: AppError) -> int:
    if isinstance(exc, AuthenticationAppError):
        return 401
    if isinstance(exc, AuthorizationAppError):
        return 403
    if isinstance(exc, NotFoundAppError):
        return 404
    if isinstance(exc, UpstreamUnavailableError):
        return 500
    return 400


async def post_validation_error_handler(request: Request, exc: PostValidationError) -> JSONResponse:
    """Return every violated field rule; user-correctable, so not logged as a fault."""
    logger.info(
        "post_validation_failed",
        extra={
            "error_count": len(exc.field_errors),
            "fields": sorted({e["field"] for e in exc.field_errors}),
            "request_path": request.url.path,
        },
    )
    return JSONResponse(
        status_code=400,
        content={"error": "Validation failed", "details": exc.field_errors},
    )


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed query/path parameters in the same shape as body errors."""
    details = [
        {
            "field": ".".join(str(part) for part in err["loc"] if part not in ("query", "path")),
            "message": err["msg"],
            "code": err["type"],
        }
        for err in exc.errors()
    ]
    return await post_validation_error_handler(request, PostValidationError(details))


async def rate_limit_error_handler(request: Request, exc: RateLimitExceededError) -> JSONResponse:
    """Translate a quota denial into a 429 with the window reset time."""
    headers: dict[str, str] = {}
    if settings.app.rate_limit_include_headers:
        if exc.retry_after_seconds is not None:
            headers["Retry-After"] = str(exc.retry_after_seconds)
        headers["X-RateLimit-Limit"] = str(exc.limit)
        headers["X-RateLimit-Remaining"] = "0"
        headers["X-RateLimit-Reset"] = str(int(exc.reset_at.timestamp()))

    reset_time = exc.reset_at.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
    return JSONResponse(
        status_code=429,
        content={
            "error": "Rate limit exceeded",
            "message": exc.message,
            "resetTime": reset_time,
        },
        headers=headers or None,
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    Routes domain errors to appropriate HTTP status codes:
    - AuthenticationAppError → 401 Unauthorized
    - AuthorizationAppError → 403 Forbidden
    - NotFoundAppError → 404 Not Found
    - UpstreamUnavailableError → 500 Internal Server Error (server fault)
    - anything else → 400 Bad Request (client fault)

    All responses include:
    - error: Human-readable message
    - code: Machine-readable error code
    - request_id: For distributed tracing

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with appropriate status code and error details.
    """
    status_code = _status_for(exc)

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "error_details": exc.details,
            "cause_type": type(exc.__cause__).__name__ if exc.__cause__ else None,
            "request_path": request.url.path,
            "request_id": get_request_id(),
        },
    )

    # Upstream detail stays in the logs
    return JSONResponse(
        status_code=status_code,
        content={
            "error": exc.message,
            "code": exc.code,
            "request_id": get_request_id(),
        },
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs detailed information for debugging while returning a generic message,
    so no stack traces or internal messages reach the client.

    Args:
        request: FastAPI request object.
        exc: Exception instance (unexpected).

    Returns:
        JSONResponse with generic error (no implementation details leaked).
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

    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "code": "internal_server_error",
            "request_id": get_request_id(),
        },
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with FastAPI app.

    Starlette picks the handler registered for the closest class in the
    exception's MRO, so specific AppError subclasses win over AppError.

    Args:
        app: FastAPI application instance.
    """
    app.exception_handler(PostValidationError)(post_validation_error_handler)
    app.exception_handler(RequestValidationError)(request_validation_error_handler)
    app.exception_handler(RateLimitExceededError)(rate_limit_error_handler)
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)
