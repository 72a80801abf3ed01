"""Rate limiting dependencies for FastAPI routes.

This module wires the named limiters into the HTTP layer.

Rate limiting strategy:
- Sliding window per caller identity (see ``app.core.auth``).
- Every feature request is checked against the ``global`` limiter first,
  then against the feature's own limiter. The two have independent state.
- Fail-open: if limiter evaluation itself breaks, the request proceeds.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from fastapi import Depends, Request, Response

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from app.core.auth import Caller, verify_caller
from app.core.config import settings
from app.core.errors import RateLimitAppError
from app.core.limiters import (
    FEATURE_LIMITERS,
    GLOBAL_LIMITER,
    LimiterRegistry,
    get_limiter_registry,
)
from app.core.logging import fingerprint

logger = logging.getLogger(__name__)


def rate_limit_headers(limiter: AbstractRateLimiter, result: RateLimitResult) -> dict[str, str]:
    """Build X-RateLimit-* headers (plus Retry-After when blocked)."""
    headers = {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining_requests),
        "X-RateLimit-Reset": str(result.reset_epoch_seconds),
    }
    if not result.allowed:
        headers["Retry-After"] = str(result.retry_after_seconds(limiter.now()))
    return headers


def _reject(name: str, limiter: AbstractRateLimiter, result: RateLimitResult, caller: Caller) -> RateLimitAppError:
    retry_after = result.retry_after_seconds(limiter.now())
    logger.warning(
        "rate_limit.exceeded",
        extra={
            "limiter": name,
            "identity_hash": fingerprint(caller.identity),
            "limit": result.limit,
            "window_ms": limiter.policy.window_ms,
            "retry_after_s": retry_after,
        },
    )
    headers = rate_limit_headers(limiter, result) if settings.app.rate_limit_include_headers else {}
    return RateLimitAppError(
        code="rate_limit_exceeded",
        message=(
            "Global rate limit exceeded. Try again later."
            if name == GLOBAL_LIMITER
            else "Too many requests, please try again later."
        ),
        details={"limiter": name, "retry_after": retry_after},
        headers=headers,
    )


def enforce_rate_limit(feature: str) -> Callable[..., Awaitable[RateLimitResult | None]]:
    """Create a dependency that admits a request under ``global`` then ``feature``.

    Args:
        feature: One of the feature limiter names (image, voice, chat, summarize).

    Returns:
        An async FastAPI dependency returning the feature result (or None
        when rate limiting is disabled or evaluation failed open).

    Raises:
        ValueError: At route definition time for an unknown feature.
    """
    if feature not in FEATURE_LIMITERS:
        raise ValueError(f"Unknown rate limit feature: {feature}")

    async def dependency(
        request: Request,
        response: Response,
        caller: Caller = Depends(verify_caller),
    ) -> RateLimitResult | None:
        if not settings.app.rate_limit_enabled:
            return None

        try:
            registry = get_limiter_registry(request)
            global_limiter = registry[GLOBAL_LIMITER]
            global_result = global_limiter.is_allowed(
                registry.key_for(GLOBAL_LIMITER, caller.identity)
            )
            if not global_result.allowed:
                rejection = _reject(GLOBAL_LIMITER, global_limiter, global_result, caller)
            else:
                limiter = registry[feature]
                result = limiter.is_allowed(registry.key_for(feature, caller.identity))
                rejection = None if result.allowed else _reject(feature, limiter, result, caller)
        except Exception:
            logger.exception("rate_limit.dependency_failed", extra={"limiter": feature})
            return None

        if rejection is not None:
            raise rejection

        if settings.app.rate_limit_include_headers:
            response.headers.update(rate_limit_headers(limiter, result))

        logger.debug(
            "rate_limit.allowed",
            extra={
                "limiter": feature,
                "identity_hash": fingerprint(caller.identity),
                "remaining": result.remaining_requests,
                "global_remaining": global_result.remaining_requests,
            },
        )
        return result

    return dependency


def cleanup_interval_seconds(registry: LimiterRegistry) -> float:
    configured = settings.app.rate_limit_cleanup_interval_seconds
    if configured:
        return configured
    return registry.shortest_window_ms() / 1000


async def run_periodic_cleanup(registry: LimiterRegistry, interval_seconds: float) -> None:
    """Sweep expired limiter state forever; cancelled on application shutdown."""
    logger.info("rate_limit.cleanup_started", extra={"interval_s": interval_seconds})
    while True:
        await asyncio.sleep(interval_seconds)
        removed = registry.cleanup()
        if removed:
            logger.debug("rate_limit.cleanup_swept", extra={"removed_keys": removed})
