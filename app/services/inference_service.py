"""Inference feature orchestration.

Each feature runs the same pipeline:
- Validate and sanitize the untyped request body against its named schema
- Apply default models from settings
- Call the inference provider
- Record the exchange in the history store (best effort)
"""

from __future__ import annotations

import logging
import time
from typing import Any, Mapping

from fastapi import Request

from app.adapters.inference.base import AbstractInferenceClient, GeneratedImage
from app.adapters.persistence.base import AbstractHistoryStore, HistoryRecord
from app.core.config import settings
from app.core.errors import ValidationAppError
from app.schemas.inference import ChatResponse, SummaryResponse, TranscriptionResponse
from app.utils.audio import decode_audio_base64, extension_for_content_type
from app.validation.sanitizer import SanitizeOptions, sanitize
from app.validation.schemas import SchemaRegistry, default_registry
from app.validation.validator import validate_schema

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_NEW_TOKENS = 256

# History keeps a preview of long inputs, not the full text
HISTORY_INPUT_MAX_CHARS = 500

_MESSAGE_OPTIONS = SanitizeOptions(max_length=4000)
_OUTPUT_OPTIONS = SanitizeOptions(max_length=10_000)


def _preview(text: str) -> str:
    return text if len(text) <= HISTORY_INPUT_MAX_CHARS else text[:HISTORY_INPUT_MAX_CHARS] + "..."


class InferenceService:
    """Runs the four inference features for an authenticated caller.

    Attributes:
        client: Inference provider adapter.
        history: Store receiving one record per successful request.
        registry: Schema registry used for request validation.
    """

    def __init__(
        self,
        client: AbstractInferenceClient,
        history: AbstractHistoryStore,
        registry: SchemaRegistry = default_registry,
    ) -> None:
        self.client = client
        self.history = history
        self.registry = registry

    def _validated(self, payload: Mapping[str, Any] | None, schema_name: str) -> dict[str, Any]:
        """Validate ``payload`` and return the sanitized fields.

        Raises:
            ValidationAppError: With per-field messages in ``details.fields``.
            ValidationConfigError: If the schema is not registered.
        """
        result = validate_schema(payload, schema_name, registry=self.registry)
        if not result.valid:
            raise ValidationAppError(
                code="invalid_request",
                message="Request validation failed",
                details={"schema": schema_name, "fields": result.errors},
            )
        return result.data

    async def _record(
        self,
        user_id: str,
        service_type: str,
        input_text: str,
        output: str | None,
        metadata: dict[str, Any],
    ) -> None:
        record = HistoryRecord(
            user_id=user_id,
            service_type=service_type,
            input=input_text,
            output=output,
            metadata=metadata,
        )
        try:
            await self.history.save(record)
        except Exception:
            logger.exception(
                "history.save_failed",
                extra={"service_type": service_type, "record_id": record.id},
            )

    async def chat(self, user_id: str, payload: Mapping[str, Any] | None) -> ChatResponse:
        """Generate the next assistant reply for a conversation."""
        data = self._validated(payload, "chat")

        model = data.get("model") or settings.inference.chat_model
        temperature = data.get("temperature", DEFAULT_TEMPERATURE)
        max_new_tokens = int(data.get("max_new_tokens", DEFAULT_MAX_NEW_TOKENS))
        messages = [
            {"role": message["role"], "content": sanitize(message["content"], _MESSAGE_OPTIONS)}
            for message in data["messages"]
        ]

        started = time.perf_counter()
        reply = await self.client.chat(
            messages,
            model=model,
            temperature=temperature,
            max_new_tokens=max_new_tokens,
        )

        await self._record(
            user_id,
            "chat",
            _preview(messages[-1]["content"] or "(no input)"),
            reply,
            {
                "model": model,
                "temperature": temperature,
                "max_new_tokens": max_new_tokens,
                "duration_ms": (time.perf_counter() - started) * 1000,
            },
        )
        return ChatResponse(reply=reply, model=model)

    async def summarize(self, user_id: str, payload: Mapping[str, Any] | None) -> SummaryResponse:
        """Summarize text; the provider output is sanitized before it is returned."""
        data = self._validated(payload, "summarization")

        model = data.get("model") or settings.inference.summarization_model
        text: str = data["text"]

        started = time.perf_counter()
        summary = sanitize(await self.client.summarize(text, model=model), _OUTPUT_OPTIONS)

        await self._record(
            user_id,
            "summarize",
            _preview(text),
            summary,
            {
                "model": model,
                "original_length": len(text),
                "summary_length": len(summary),
                "duration_ms": (time.perf_counter() - started) * 1000,
            },
        )
        return SummaryResponse(summary=summary, model=model)

    async def generate_image(self, user_id: str, payload: Mapping[str, Any] | None) -> GeneratedImage:
        """Generate an image; history stores the prompt only."""
        data = self._validated(payload, "image_generation")

        model = data.get("model") or settings.inference.image_model
        prompt: str = data["prompt"]
        parameters = data.get("parameters")

        started = time.perf_counter()
        image = await self.client.generate_image(prompt, model=model, parameters=parameters)

        await self._record(
            user_id,
            "image",
            _preview(prompt),
            None,
            {
                "model": model,
                "content_type": image.content_type,
                "size_bytes": len(image.content),
                "duration_ms": (time.perf_counter() - started) * 1000,
            },
        )
        return image

    async def transcribe(self, user_id: str, payload: Mapping[str, Any] | None) -> TranscriptionResponse:
        """Transcribe base64 audio.

        Raises:
            ValidationAppError: If the body is invalid or the audio cannot be
                decoded within ``APP_MAX_AUDIO_BYTES``.
        """
        data = self._validated(payload, "voice_to_text")

        model = data.get("model") or settings.inference.transcription_model
        content_type: str = data["content_type"]
        audio = decode_audio_base64(data["audio_base64"], max_bytes=settings.app.max_audio_bytes)

        started = time.perf_counter()
        text = await self.client.transcribe(audio, content_type=content_type, model=model)

        await self._record(
            user_id,
            "voice",
            f"(audio {len(audio)} bytes)",
            text,
            {
                "model": model,
                "content_type": content_type,
                "extension": extension_for_content_type(content_type),
                "size_bytes": len(audio),
                "duration_ms": (time.perf_counter() - started) * 1000,
            },
        )
        return TranscriptionResponse(text=text, model=model)


def get_inference_service(request: Request) -> InferenceService:
    """FastAPI dependency returning the service built by the app factory."""
    return request.app.state.inference_service
