from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends

from app.core.auth import Caller, verify_caller
from app.core.rate_limit import enforce_rate_limit
from app.schemas.inference import SummaryResponse
from app.services.inference_service import InferenceService, get_inference_service

router = APIRouter(tags=["Inference"])


@router.post(
    "/summarize",
    response_model=SummaryResponse,
    dependencies=[Depends(enforce_rate_limit("summarize"))],
)
async def summarize(
    payload: Any = Body(None, examples=[{"text": "A long article of at least fifty characters..."}]),
    caller: Caller = Depends(verify_caller),
    service: InferenceService = Depends(get_inference_service),
) -> SummaryResponse:
    """Summarize ``text`` (50-10000 characters) with an optional ``model``."""
    return await service.summarize(caller.identity, payload)
