"""Application factory for FastAPI app.

Centralizes app construction (collaborators, middleware, handlers, routers)
so tests can build isolated apps with fake collaborators. Long-lived
collaborators live on ``app.state``:

- ``limiters``: named rate limiters (``LimiterRegistry``)
- ``identity_verifier``: credential to identity resolution
- ``inference_client``: provider adapter
- ``history_store``: best-effort history persistence
- ``inference_service``: feature orchestration
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator

from fastapi import FastAPI

from app.adapters.identity import AbstractIdentityVerifier, ApiKeyIdentityVerifier
from app.adapters.identity.api_key import parse_api_keys
from app.adapters.inference import AbstractInferenceClient, create_inference_client
from app.adapters.persistence import AbstractHistoryStore, create_history_store
from app.api.routes import (
    chat_router,
    health_router,
    images_router,
    limits_router,
    summarize_router,
    transcriptions_router,
)
from app.core.config import settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.limiters import LimiterRegistry
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.openapi import apply_openapi_customizations
from app.core.rate_limit import cleanup_interval_seconds, run_periodic_cleanup
from app.services.inference_service import InferenceService

logger = logging.getLogger(__name__)


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run the limiter cleanup task for the lifetime of the app."""
    cleanup_task: asyncio.Task | None = None
    if settings.app.rate_limit_enabled:
        registry: LimiterRegistry = app.state.limiters
        cleanup_task = asyncio.create_task(
            run_periodic_cleanup(registry, cleanup_interval_seconds(registry)),
            name="rate-limit-cleanup",
        )

    logger.info("app.started", extra={"environment": settings.app_env})
    try:
        yield
    finally:
        if cleanup_task is not None:
            cleanup_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await cleanup_task
        await app.state.inference_client.aclose()
        logger.info("app.stopped")


def create_app(
    *,
    limiters: LimiterRegistry | None = None,
    inference_client: AbstractInferenceClient | None = None,
    history_store: AbstractHistoryStore | None = None,
    identity_verifier: AbstractIdentityVerifier | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Every collaborator defaults to the one described by ``settings``.

    Raises:
        ValidationConfigError: If the inference provider is misconfigured.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log, debug=settings.app.debug)

    app = FastAPI(
        title="Inference Gateway API",
        description=(
            "Authenticated, rate-limited gateway to a machine-learning inference "
            "provider: chat, summarization, image generation and speech-to-text. "
            "Request bodies are validated and sanitized before they are forwarded."
        ),
        version="0.1.0",
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
        lifespan=lifespan,
    )

    if limiters is None:
        limiters = LimiterRegistry.from_settings(settings.app)
    if identity_verifier is None:
        identity_verifier = ApiKeyIdentityVerifier(parse_api_keys(settings.app.api_keys))
    if inference_client is None:
        inference_client = create_inference_client(settings.inference)
    if history_store is None:
        history_store = create_history_store(settings.app)

    app.state.limiters = limiters
    app.state.identity_verifier = identity_verifier
    app.state.inference_client = inference_client
    app.state.history_store = history_store
    app.state.inference_service = InferenceService(
        client=app.state.inference_client,
        history=app.state.history_store,
    )

    # Middleware
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    for router in (chat_router, summarize_router, images_router, transcriptions_router, limits_router):
        app.include_router(router, prefix="/v1")
    app.include_router(health_router)

    # OpenAPI customizations (security schemes, tags, exemptions)
    apply_openapi_customizations(app)

    return app
