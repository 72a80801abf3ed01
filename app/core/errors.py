"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
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
    limiter: str
    model: str
    service: str
    schema: str
    fields: dict[str, list[str]]
    max_bytes: int
    actual_bytes: int
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
    """Raised when request input fails validation."""


class ValidationConfigError(AppError):
    """Raised when a schema, pattern or rule is misconfigured.

    This is a programming error (unknown schema name, unknown pattern name),
    never a problem with the caller's input.
    """


class InferenceAppError(AppError):
    """Raised when the inference provider call fails."""


class AuthenticationAppError(AppError):
    """Raised when the caller cannot be authenticated."""


@dataclass
class RateLimitAppError(AppError):
    """Raised when a caller exceeds an admission quota.

    ``headers`` carries Retry-After and X-RateLimit-* values for the response.
    """

    headers: dict[str, str] = field(default_factory=dict)
