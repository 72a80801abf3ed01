from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends

from app.core.auth import Caller, verify_caller
from app.core.rate_limit import enforce_rate_limit
from app.schemas.inference import ChatResponse
from app.services.inference_service import InferenceService, get_inference_service

router = APIRouter(tags=["Inference"])


@router.post(
    "/chat",
    response_model=ChatResponse,
    dependencies=[Depends(enforce_rate_limit("chat"))],
)
async def chat(
    payload: Any = Body(
        None,
        examples=[{"messages": [{"role": "user", "content": "Hello!"}], "temperature": 0.7}],
    ),
    caller: Caller = Depends(verify_caller),
    service: InferenceService = Depends(get_inference_service),
) -> ChatResponse:
    """Generate the next assistant reply for a conversation.

    Body fields: ``messages`` (1-10 items with ``role`` and ``content``),
    optional ``model``, ``temperature`` (0-2) and ``max_new_tokens`` (1-1024).
    """
    return await service.chat(caller.identity, payload)
