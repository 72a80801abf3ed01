from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Response

from app.core.auth import Caller, verify_caller
from app.core.rate_limit import enforce_rate_limit
from app.services.inference_service import InferenceService, get_inference_service

router = APIRouter(tags=["Inference"])

NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate",
    "Pragma": "no-cache",
}


@router.post(
    "/images",
    response_class=Response,
    responses={200: {"content": {"image/png": {}}, "description": "Generated image bytes."}},
    dependencies=[Depends(enforce_rate_limit("image"))],
)
async def generate_image(
    response: Response,
    payload: Any = Body(None, examples=[{"prompt": "A lighthouse at dusk, oil painting"}]),
    caller: Caller = Depends(verify_caller),
    service: InferenceService = Depends(get_inference_service),
) -> Response:
    """Generate an image from ``prompt`` and return it as binary content.

    Optional ``model`` and ``parameters`` are forwarded to the provider.
    """
    image = await service.generate_image(caller.identity, payload)
    # Rate limit headers were set on the injected response by the dependency
    headers = {**response.headers, **NO_CACHE_HEADERS}
    headers.pop("content-length", None)
    return Response(content=image.content, media_type=image.content_type, headers=headers)
