"""Rate limiter interfaces.

The API should depend on this abstraction (not the concrete implementation)
so we can swap storage backends later (e.g., Redis) with minimal changes.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class LimiterPolicy:
    """Sliding-window admission policy.

    Attributes:
        window_ms: Length of the sliding window in milliseconds.
        max_requests: Maximum admitted events per window.
    """

    window_ms: int = 60_000
    max_requests: int = 10

    def __post_init__(self) -> None:
        if self.window_ms < 1:
            raise ValueError("window_ms must be >= 1")
        if self.max_requests < 1:
            raise ValueError("max_requests must be >= 1")

    def merged(self, override: PolicyOverride | None) -> LimiterPolicy:
        """Return this policy with the override's set fields applied."""
        if override is None:
            return self
        return LimiterPolicy(
            window_ms=self.window_ms if override.window_ms is None else override.window_ms,
            max_requests=(
                self.max_requests if override.max_requests is None else override.max_requests
            ),
        )


@dataclass(frozen=True)
class PolicyOverride:
    """Per-call policy override. ``None`` fields inherit the limiter default."""

    window_ms: int | None = None
    max_requests: int | None = None


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit check.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per window under the effective policy.
        total_requests: Lifetime count when allowed, in-window count when blocked.
        remaining_requests: Remaining admissions in the current window.
        reset_time: Epoch milliseconds when the oldest counted event expires.
    """

    allowed: bool
    limit: int
    total_requests: int
    remaining_requests: int
    reset_time: int

    @property
    def reset_epoch_seconds(self) -> int:
        return int(math.ceil(self.reset_time / 1000))

    def retry_after_seconds(self, now_ms: int) -> int:
        """Suggested wait time in whole seconds, never negative."""
        return max(0, int(math.ceil((self.reset_time - now_ms) / 1000)))


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @property
    @abstractmethod
    def policy(self) -> LimiterPolicy:
        """Default policy applied when no override is passed."""
        raise NotImplementedError

    @abstractmethod
    def now(self) -> int:
        """Current time in epoch milliseconds according to the limiter clock."""
        raise NotImplementedError

    @abstractmethod
    def is_allowed(self, key: str, override: PolicyOverride | None = None) -> RateLimitResult:
        """Check the key against the window and record the event if admitted.

        Args:
            key: Unique identifier (e.g., ``chat:<identity>``).
            override: Optional per-call policy override.

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError

    @abstractmethod
    def get_info(self, key: str, override: PolicyOverride | None = None) -> RateLimitResult:
        """Report what ``is_allowed`` would see without consuming a slot."""
        raise NotImplementedError

    @abstractmethod
    def reset(self, key: str) -> None:
        """Discard all recorded events for the key."""
        raise NotImplementedError

    @abstractmethod
    def cleanup(self) -> int:
        """Purge expired events and empty keys. Returns the number of keys removed."""
        raise NotImplementedError
