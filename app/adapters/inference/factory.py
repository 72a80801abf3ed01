"""Factory pattern for creating inference client instances."""

from app.adapters.inference.base import AbstractInferenceClient
from app.adapters.inference.huggingface_client import HuggingFaceInferenceClient
from app.core.config import InferenceSettings, settings
from app.core.errors import ValidationConfigError


def create_inference_client(inference_settings: InferenceSettings | None = None) -> AbstractInferenceClient:
    """Instantiate the inference client for the configured provider.

    Args:
        inference_settings: Optional settings; defaults to the global settings.

    Returns:
        AbstractInferenceClient: Configured client instance.

    Raises:
        ValidationConfigError: If provider-specific requirements are not met.
    """
    cfg = inference_settings or settings.inference
    provider = cfg.provider.lower()

    if provider == "huggingface":
        if not cfg.api_key:
            raise ValidationConfigError(
                code="inference_missing_api_key",
                message="Hugging Face provider requires INFERENCE_API_KEY environment variable",
            )
        return HuggingFaceInferenceClient(
            cfg.api_key,
            base_url=cfg.base_url,
            chat_base_url=cfg.chat_base_url,
            timeout_seconds=cfg.timeout_seconds,
        )

    raise ValidationConfigError(
        code="inference_unknown_provider",
        message=f"Unknown inference provider: '{provider}'. Supported providers: huggingface",
    )
