"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It ensures that the TESTING environment variable is set to prevent
loading the .env file during tests.
"""

import os

# CRITICAL: Set this before any imports that might load settings
# This prevents Pydantic from loading the .env file in tests
os.environ["TESTING"] = "true"

# Set default env vars that all tests might need
os.environ.setdefault("INFERENCE_PROVIDER", "huggingface")
os.environ.setdefault("INFERENCE_API_KEY", "hf_test_token")
os.environ.setdefault("APP_API_KEY_REQUIRED", "true")
os.environ.setdefault("APP_API_KEYS", "test-api-key-123,test-api-key-456")
os.environ.setdefault("APP_HISTORY_BACKEND", "memory")

from typing import Any
from unittest.mock import Mock

import pytest

from app.adapters.inference.base import AbstractInferenceClient, GeneratedImage
from app.adapters.persistence.in_memory import InMemoryHistoryStore
from app.core.config import settings
from app.core.limiters import LimiterRegistry

VALID_API_KEY = "test-api-key-123"

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


class FakeInferenceClient(AbstractInferenceClient):
    """In-process inference client recording every call."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.reply = "Hello from the assistant"
        self.summary = "A short summary."
        self.transcript = "hello world"
        self.image = GeneratedImage(content=PNG_BYTES, content_type="image/png")
        self.error: Exception | None = None
        self.closed = False

    def _record(self, name: str, **kwargs: Any) -> None:
        self.calls.append((name, kwargs))
        if self.error is not None:
            raise self.error

    async def chat(self, messages, *, model, temperature=0.7, max_new_tokens=256) -> str:
        self._record("chat", messages=messages, model=model, temperature=temperature, max_new_tokens=max_new_tokens)
        return self.reply

    async def summarize(self, text, *, model, parameters=None) -> str:
        self._record("summarize", text=text, model=model, parameters=parameters)
        return self.summary

    async def generate_image(self, prompt, *, model, parameters=None) -> GeneratedImage:
        self._record("generate_image", prompt=prompt, model=model, parameters=parameters)
        return self.image

    async def transcribe(self, audio, *, content_type, model) -> str:
        self._record("transcribe", audio=audio, content_type=content_type, model=model)
        return self.transcript

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def clock() -> Mock:
    """Controllable epoch-ms clock shared by all limiters of a registry."""
    return Mock(return_value=1_700_000_000_000)


@pytest.fixture
def limiters(clock: Mock) -> LimiterRegistry:
    return LimiterRegistry.from_settings(settings.app, clock=clock)


@pytest.fixture
def fake_client() -> FakeInferenceClient:
    return FakeInferenceClient()


@pytest.fixture
def history_store() -> InMemoryHistoryStore:
    return InMemoryHistoryStore(max_items=100)


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"X-API-Key": VALID_API_KEY}
