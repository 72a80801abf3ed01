"""Pydantic schemas for rate limit introspection."""

from __future__ import annotations

from pydantic import BaseModel, Field

from app.adapters.rate_limit.base import RateLimitResult


class RateLimitInfo(BaseModel):
    """Current quota for one limiter, as seen by the caller."""

    limit: int = Field(..., description="Maximum requests per window.")
    remaining: int = Field(..., ge=0, description="Requests left in the current window.")
    reset: int = Field(..., description="Epoch seconds when the oldest counted request expires.")
    window_ms: int = Field(..., description="Sliding window length in milliseconds.")
    total_requests: int = Field(..., description="Requests admitted for this caller since tracking began.")

    @classmethod
    def from_result(cls, result: RateLimitResult, *, window_ms: int) -> RateLimitInfo:
        return cls(
            limit=result.limit,
            remaining=result.remaining_requests,
            reset=result.reset_epoch_seconds,
            window_ms=window_ms,
            total_requests=result.total_requests,
        )


class LimitsResponse(BaseModel):
    """Quotas for every limiter that applies to the caller."""

    enabled: bool = Field(..., description="False when rate limiting is disabled.")
    limits: dict[str, RateLimitInfo] = Field(default_factory=dict)
