from __future__ import annotations

from app.api.routes.chat import router as chat_router
from app.api.routes.health import router as health_router
from app.api.routes.images import router as images_router
from app.api.routes.limits import router as limits_router
from app.api.routes.summarize import router as summarize_router
from app.api.routes.transcriptions import router as transcriptions_router

__all__ = [
    "chat_router",
    "health_router",
    "images_router",
    "limits_router",
    "summarize_router",
    "transcriptions_router",
]
