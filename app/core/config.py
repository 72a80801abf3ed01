"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

# Select the .env file for the current environment
_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file and not os.getenv("TESTING"):
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_log_settings() -> "LogSettings":
    return LogSettings()


def _build_inference_settings() -> "InferenceSettings":
    """Build inference settings from environment.

    Pydantic Settings (v2) can populate values from environment variables.
    However, static type checkers often treat required fields as required
    constructor arguments, which is not how BaseSettings is intended to be used.
    """

    return InferenceSettings()  # type: ignore[call-arg]


def _build_app_settings() -> "AppSettings":
    """Build app settings from environment.

    See _build_inference_settings() for rationale about the type ignore.
    """

    return AppSettings()  # type: ignore[call-arg]


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="'json' or 'plain'")
    output: str = Field("stdout", description="'stdout' or 'file'")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (0 disables rotation)",
    )
    backup_count: int = Field(5, description="Rotated files to keep")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to accept and return the correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class InferenceSettings(BaseSettings):
    """Inference provider configuration.

    Validation of provider-specific requirements happens in the factory.
    """

    provider: str = Field(
        "huggingface",
        description="Inference provider name",
    )
    api_key: str | None = Field(
        None,
        description="Provider API token (Hugging Face tokens start with 'hf_')",
    )
    base_url: str = Field(
        "https://router.huggingface.co/hf-inference/models",
        description="Task inference endpoint; the model id is appended as a path",
    )
    chat_base_url: str = Field(
        "https://router.huggingface.co/v1",
        description="OpenAI-compatible endpoint used for chat completions",
    )
    timeout_seconds: float = Field(
        60.0,
        description="Request timeout in seconds",
    )
    chat_model: str = Field("HuggingFaceH4/zephyr-7b-beta")
    summarization_model: str = Field("facebook/bart-large-cnn")
    image_model: str = Field("black-forest-labs/FLUX.1-dev")
    transcription_model: str = Field("openai/whisper-large-v3")

    model_config = SettingsConfigDict(
        env_prefix="INFERENCE_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    api_key_required: bool = Field(
        True,
        description="Whether callers must present a credential",
    )
    api_keys: str | None = Field(
        None,
        description="Comma-separated list of valid API keys for authentication",
    )
    max_audio_bytes: int = Field(
        5 * 1024 * 1024,
        description="Maximum decoded audio size for transcription requests",
        ge=1,
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-caller rate limiting",
    )
    rate_limit_window_ms: int = Field(
        60_000,
        description="Sliding window length in milliseconds (all named limiters)",
        ge=1,
    )
    rate_limit_image: int = Field(5, ge=1, description="Image generations per window")
    rate_limit_voice: int = Field(10, ge=1, description="Transcriptions per window")
    rate_limit_chat: int = Field(20, ge=1, description="Chat completions per window")
    rate_limit_summarize: int = Field(15, ge=1, description="Summaries per window")
    rate_limit_auth: int = Field(5, ge=1, description="Failed credential attempts per window per IP")
    rate_limit_global: int = Field(100, ge=1, description="Requests per window per caller across features")
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers",
    )
    rate_limit_cleanup_interval_seconds: float | None = Field(
        None,
        description="Interval between store sweeps (defaults to the window length)",
    )

    history_backend: str = Field(
        "memory",
        description="History store: 'memory', 'jsonl' or 'disabled'",
    )
    history_path: str = Field(
        "data/history.jsonl",
        description="File used by the jsonl history store",
    )
    history_max_items: int = Field(
        1000,
        description="Records kept by the in-memory history store",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if required settings are missing.
    """

    app_env: str = APP_ENV
    log: LogSettings = Field(default_factory=_build_log_settings)
    inference: InferenceSettings = Field(default_factory=_build_inference_settings)
    app: AppSettings = Field(default_factory=_build_app_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
