"""Factory for the configured history store."""

from app.adapters.persistence.base import AbstractHistoryStore, NullHistoryStore
from app.adapters.persistence.in_memory import InMemoryHistoryStore
from app.adapters.persistence.jsonl import JsonlHistoryStore
from app.core.config import AppSettings, settings
from app.core.errors import ValidationConfigError


def create_history_store(app_settings: AppSettings | None = None) -> AbstractHistoryStore:
    """Instantiate the history store named by ``APP_HISTORY_BACKEND``.

    Raises:
        ValidationConfigError: For an unknown backend name.
    """
    cfg = app_settings or settings.app
    backend = cfg.history_backend.lower()

    if backend == "memory":
        return InMemoryHistoryStore(max_items=cfg.history_max_items)
    if backend == "jsonl":
        return JsonlHistoryStore(cfg.history_path)
    if backend == "disabled":
        return NullHistoryStore()

    raise ValidationConfigError(
        code="unknown_history_backend",
        message=f"Unknown history backend: '{backend}'. Supported: memory, jsonl, disabled",
    )
