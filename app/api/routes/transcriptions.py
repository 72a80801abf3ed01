from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends

from app.core.auth import Caller, verify_caller
from app.core.rate_limit import enforce_rate_limit
from app.schemas.inference import TranscriptionResponse
from app.services.inference_service import InferenceService, get_inference_service

router = APIRouter(tags=["Inference"])


@router.post(
    "/transcriptions",
    response_model=TranscriptionResponse,
    dependencies=[Depends(enforce_rate_limit("voice"))],
)
async def transcribe(
    payload: Any = Body(
        None,
        examples=[{"audio_base64": "data:audio/webm;base64,GkXfo0...", "content_type": "audio/webm"}],
    ),
    caller: Caller = Depends(verify_caller),
    service: InferenceService = Depends(get_inference_service),
) -> TranscriptionResponse:
    """Transcribe base64-encoded audio.

    ``audio_base64`` may carry a ``data:`` URL prefix; ``content_type`` must
    be an ``audio/*`` MIME type. The decoded size is capped by
    ``APP_MAX_AUDIO_BYTES``.
    """
    return await service.transcribe(caller.identity, payload)
