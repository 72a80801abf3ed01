"""Inference adapter layer - abstracts over machine-learning providers."""

from app.adapters.inference.base import AbstractInferenceClient, GeneratedImage
from app.adapters.inference.factory import create_inference_client
from app.adapters.inference.huggingface_client import HuggingFaceInferenceClient

__all__ = [
    "AbstractInferenceClient",
    "GeneratedImage",
    "HuggingFaceInferenceClient",
    "create_inference_client",
]
