"""Named rate limiters owned by the application.

A single ``LimiterRegistry`` is built by the app factory, stored on
``app.state.limiters`` and handed to dependencies through the request, so
tests can build isolated registries with their own clocks.
"""

from __future__ import annotations

import logging
from typing import Callable, Mapping

from fastapi import Request

from app.adapters.rate_limit.base import AbstractRateLimiter, LimiterPolicy
from app.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter
from app.core.config import AppSettings

logger = logging.getLogger(__name__)

FEATURE_LIMITERS = ("image", "voice", "chat", "summarize")
AUTH_LIMITER = "auth"
GLOBAL_LIMITER = "global"
LIMITER_NAMES = (*FEATURE_LIMITERS, AUTH_LIMITER, GLOBAL_LIMITER)

# Key namespace per feature limiter, e.g. "stt:<identity>"
KEY_PREFIXES = {
    "image": "img",
    "voice": "stt",
    "chat": "chat",
    "summarize": "sum",
    AUTH_LIMITER: "auth",
    GLOBAL_LIMITER: "global",
}


class LimiterRegistry:
    """Fixed set of independent limiters addressed by name."""

    def __init__(self, limiters: Mapping[str, AbstractRateLimiter]) -> None:
        missing = set(LIMITER_NAMES) - set(limiters)
        if missing:
            raise ValueError(f"Missing limiters: {', '.join(sorted(missing))}")
        self._limiters = dict(limiters)

    @classmethod
    def from_settings(
        cls,
        app_settings: AppSettings,
        *,
        clock: Callable[[], int] | None = None,
    ) -> LimiterRegistry:
        """Build the named limiters from configuration.

        Args:
            app_settings: Application settings carrying windows and limits.
            clock: Optional shared clock (epoch ms), mainly for tests.
        """
        limits = {
            "image": app_settings.rate_limit_image,
            "voice": app_settings.rate_limit_voice,
            "chat": app_settings.rate_limit_chat,
            "summarize": app_settings.rate_limit_summarize,
            AUTH_LIMITER: app_settings.rate_limit_auth,
            GLOBAL_LIMITER: app_settings.rate_limit_global,
        }
        extra = {"clock": clock} if clock is not None else {}
        return cls(
            {
                name: InMemorySlidingWindowRateLimiter(
                    policy=LimiterPolicy(
                        window_ms=app_settings.rate_limit_window_ms,
                        max_requests=max_requests,
                    ),
                    name=name,
                    **extra,
                )
                for name, max_requests in limits.items()
            }
        )

    def __getitem__(self, name: str) -> AbstractRateLimiter:
        return self._limiters[name]

    def names(self) -> list[str]:
        return list(self._limiters)

    def key_for(self, name: str, subject: str) -> str:
        return f"{KEY_PREFIXES[name]}:{subject}"

    def shortest_window_ms(self) -> int:
        return min(limiter.policy.window_ms for limiter in self._limiters.values())

    def cleanup(self) -> int:
        """Sweep every limiter; a failing limiter does not stop the others."""
        removed = 0
        for name, limiter in self._limiters.items():
            try:
                removed += limiter.cleanup()
            except Exception:
                logger.exception("rate_limit.cleanup_failed", extra={"limiter": name})
        return removed


def get_limiter_registry(request: Request) -> LimiterRegistry:
    """FastAPI dependency returning the application's limiter registry."""
    return request.app.state.limiters
