"""Hugging Face Inference API client adapter.

Task endpoints (summarization, text-to-image, speech recognition) are called
with ``httpx`` at ``<base_url>/<model id>``. Chat goes through the
provider's OpenAI-compatible router with the official OpenAI SDK.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx
from openai import APIError, APIStatusError, AsyncOpenAI

from app.adapters.inference.base import AbstractInferenceClient, GeneratedImage
from app.core.errors import InferenceAppError

logger = logging.getLogger(__name__)

SERVICE_NAME = "huggingface"

DEFAULT_SUMMARY_PARAMETERS: dict[str, Any] = {
    "max_length": 150,
    "min_length": 30,
    "do_sample": False,
}


def _upstream_message(response: httpx.Response) -> str:
    """Best-effort extraction of the provider's error message."""
    try:
        payload = response.json()
    except ValueError:
        return response.text[:500] or response.reason_phrase
    if isinstance(payload, dict):
        message = payload.get("error") or payload.get("message")
        if isinstance(message, str):
            return message
    return response.text[:500]


def _first_value(payload: Any, key: str) -> Any:
    """Read ``key`` from either ``{key: ...}`` or ``[{key: ...}, ...]``."""
    if isinstance(payload, list) and payload and isinstance(payload[0], dict):
        return payload[0].get(key)
    if isinstance(payload, dict):
        return payload.get(key)
    return None


def _invalid_response(model: str, reason: str) -> InferenceAppError:
    return InferenceAppError(
        code="inference_invalid_response",
        message=f"Inference provider returned an unexpected response: {reason}",
        details={"service": SERVICE_NAME, "model": model},
    )


class HuggingFaceInferenceClient(AbstractInferenceClient):
    """Client for the Hugging Face Inference API."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str,
        chat_base_url: str,
        timeout_seconds: float = 60.0,
        http_client: httpx.AsyncClient | None = None,
        chat_client: AsyncOpenAI | None = None,
    ) -> None:
        """Initialize HTTP and chat clients.

        Args:
            api_key: Provider API token.
            base_url: Task endpoint root; the model id is appended.
            chat_base_url: OpenAI-compatible router root.
            timeout_seconds: Timeout for requests in seconds.
            http_client: Optional pre-built client (tests pass a MockTransport).
            chat_client: Optional pre-built OpenAI client.
        """
        self._base_url = base_url.rstrip("/")
        self._http = http_client or httpx.AsyncClient(timeout=timeout_seconds)
        self._headers = {"Authorization": f"Bearer {api_key}"}
        self._chat = chat_client or AsyncOpenAI(
            api_key=api_key,
            base_url=chat_base_url,
            timeout=timeout_seconds,
        )

    async def _post(
        self,
        model: str,
        *,
        json: dict[str, Any] | None = None,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        url = f"{self._base_url}/{model}"
        started = time.perf_counter()
        try:
            response = await self._http.post(
                url,
                json=json,
                content=content,
                headers={**self._headers, **(headers or {})},
            )
        except httpx.HTTPError as exc:
            logger.warning(
                "inference.request_failed",
                extra={"model": model, "error_type": type(exc).__name__},
            )
            raise InferenceAppError(
                code="inference_unavailable",
                message=f"{SERVICE_NAME}: inference service unavailable",
                details={"service": SERVICE_NAME, "model": model},
            ) from exc

        duration_ms = (time.perf_counter() - started) * 1000
        if response.is_error:
            logger.warning(
                "inference.upstream_error",
                extra={"model": model, "http_status": response.status_code, "duration_ms": duration_ms},
            )
            raise InferenceAppError(
                code="inference_upstream_error",
                message=f"{SERVICE_NAME}: {_upstream_message(response)}",
                details={"service": SERVICE_NAME, "model": model, "http_status": response.status_code},
            )

        logger.info(
            "inference.completed",
            extra={"model": model, "http_status": response.status_code, "duration_ms": duration_ms},
        )
        return response

    async def chat(
        self,
        messages: list[dict[str, str]],
        *,
        model: str,
        temperature: float = 0.7,
        max_new_tokens: int = 256,
    ) -> str:
        try:
            response = await self._chat.chat.completions.create(
                model=model,
                messages=messages,  # type: ignore[arg-type]
                temperature=temperature,
                max_tokens=max_new_tokens,
            )
        except APIStatusError as exc:
            logger.warning(
                "inference.upstream_error",
                extra={"model": model, "http_status": exc.status_code},
            )
            raise InferenceAppError(
                code="inference_upstream_error",
                message=f"{SERVICE_NAME}: {exc.message}",
                details={"service": SERVICE_NAME, "model": model, "http_status": exc.status_code},
            ) from exc
        except APIError as exc:
            raise InferenceAppError(
                code="inference_unavailable",
                message=f"{SERVICE_NAME}: inference service unavailable",
                details={"service": SERVICE_NAME, "model": model},
            ) from exc

        if not response.choices or response.choices[0].message.content is None:
            raise _invalid_response(model, "empty chat completion")

        return response.choices[0].message.content.strip()

    async def summarize(self, text: str, *, model: str, parameters: dict[str, Any] | None = None) -> str:
        response = await self._post(
            model,
            json={"inputs": text, "parameters": parameters or DEFAULT_SUMMARY_PARAMETERS},
        )
        try:
            summary = _first_value(response.json(), "summary_text")
        except ValueError as exc:
            raise _invalid_response(model, "body is not JSON") from exc

        if not isinstance(summary, str) or not summary.strip():
            raise _invalid_response(model, "missing summary_text")
        return summary

    async def generate_image(
        self,
        prompt: str,
        *,
        model: str,
        parameters: dict[str, Any] | None = None,
    ) -> GeneratedImage:
        body: dict[str, Any] = {"inputs": prompt}
        if parameters:
            body["parameters"] = parameters
        response = await self._post(model, json=body, headers={"Accept": "image/png"})

        content_type = response.headers.get("content-type", "image/png").split(";")[0].strip()
        if not content_type.startswith("image/"):
            raise _invalid_response(model, f"expected an image, got {content_type}")
        if not response.content:
            raise _invalid_response(model, "empty image body")
        return GeneratedImage(content=response.content, content_type=content_type)

    async def transcribe(self, audio: bytes, *, content_type: str, model: str) -> str:
        response = await self._post(model, content=audio, headers={"Content-Type": content_type})
        try:
            text = _first_value(response.json(), "text")
        except ValueError as exc:
            raise _invalid_response(model, "body is not JSON") from exc

        if not isinstance(text, str):
            raise _invalid_response(model, "missing text")
        return text.strip()

    async def aclose(self) -> None:
        await self._http.aclose()
        await self._chat.close()
