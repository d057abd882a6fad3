"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep backward compatibility while encouraging
    consistent shapes across the codebase.
    """

    code: str
    message: str
    hint: str
    http_status: int
    retry_after: float
    post_id: str
    operation: str
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised for client faults that are not field-level validation failures."""


class AuthenticationAppError(AppError):
    """Raised when the caller has no valid session."""


class AuthorizationAppError(AppError):
    """Raised when an authenticated caller may not perform the action."""


class NotFoundAppError(AppError):
    """Raised when a posting does not exist (or is soft-deleted)."""


class UpstreamUnavailableError(AppError):
    """Raised when the hosted backend cannot be reached or answers with an error.

    ``message`` is safe to show to clients; the underlying cause stays in
    ``details`` and the exception chain, which are only logged.
    """


class PostValidationError(AppError):
    """Raised by request handlers when posting fields fail validation.

    Carries every violated rule as ``{field, message, code}`` entries.
    """

    def __init__(self, field_errors: list[dict[str, str]]) -> None:
        super().__init__(code="validation_failed", message="Validation failed")
        self.field_errors = field_errors


class RateLimitExceededError(AppError):
    """Raised when a user has used up their post quota for the current window."""

    def __init__(
        self,
        *,
        message: str,
        reset_at: datetime,
        limit: int,
        retry_after_seconds: int | None = None,
    ) -> None:
        super().__init__(code="rate_limit_exceeded", message=message)
        self.reset_at = reset_at
        self.limit = limit
        self.retry_after_seconds = retry_after_seconds
