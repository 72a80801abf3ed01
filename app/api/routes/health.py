from __future__ import annotations

from fastapi import APIRouter

from app.core.config import settings

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Health check endpoint.

    Used by load balancers and monitoring systems; it needs no credential
    and is not rate limited.

    Returns:
        dict: ``status`` ("ok") and the running environment.
    """

    return {"status": "ok", "environment": settings.app_env}
