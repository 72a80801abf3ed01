from __future__ import annotations

from fastapi import APIRouter, Depends

from app.core.auth import Caller, verify_caller
from app.core.config import settings
from app.core.limiters import FEATURE_LIMITERS, GLOBAL_LIMITER, LimiterRegistry, get_limiter_registry
from app.schemas.limits import LimitsResponse, RateLimitInfo

router = APIRouter(tags=["Limits"])


@router.get("/limits", response_model=LimitsResponse)
async def get_limits(
    caller: Caller = Depends(verify_caller),
    registry: LimiterRegistry = Depends(get_limiter_registry),
) -> LimitsResponse:
    """Report the caller's remaining quota for each feature and the global cap.

    Read-only: checking limits never consumes a request.
    """
    if not settings.app.rate_limit_enabled:
        return LimitsResponse(enabled=False)

    limits: dict[str, RateLimitInfo] = {}
    for name in (*FEATURE_LIMITERS, GLOBAL_LIMITER):
        limiter = registry[name]
        result = limiter.get_info(registry.key_for(name, caller.identity))
        limits[name] = RateLimitInfo.from_result(result, window_ms=limiter.policy.window_ms)
    return LimitsResponse(enabled=True, limits=limits)
