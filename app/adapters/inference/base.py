from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class GeneratedImage:
	"""Binary image returned by the provider."""

	content: bytes
	content_type: str


class AbstractInferenceClient(ABC):
	"""Interface for machine-learning inference providers."""

	@abstractmethod
	async def chat(
		self,
		messages: list[dict[str, str]],
		*,
		model: str,
		temperature: float = 0.7,
		max_new_tokens: int = 256,
	) -> str:
		"""Generate the next assistant reply for a conversation.

		Args:
			messages: Ordered ``{"role", "content"}`` items.
			model: Provider model id.
			temperature: Sampling temperature.
			max_new_tokens: Upper bound on generated tokens.

		Returns:
			str: Assistant reply text.

		Raises:
			InferenceAppError: If the provider call fails or the response is malformed.
		"""
		...

	@abstractmethod
	async def summarize(self, text: str, *, model: str, parameters: dict[str, Any] | None = None) -> str:
		"""Summarize text; raises InferenceAppError on provider failure."""
		...

	@abstractmethod
	async def generate_image(
		self,
		prompt: str,
		*,
		model: str,
		parameters: dict[str, Any] | None = None,
	) -> GeneratedImage:
		"""Generate an image from a text prompt; raises InferenceAppError on provider failure."""
		...

	@abstractmethod
	async def transcribe(self, audio: bytes, *, content_type: str, model: str) -> str:
		"""Transcribe speech audio to text; raises InferenceAppError on provider failure."""
		...

	async def aclose(self) -> None:
		"""Release network resources held by the client."""
		return None
