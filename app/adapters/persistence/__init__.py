"""Persistence adapters for feature history records."""

from app.adapters.persistence.base import AbstractHistoryStore, HistoryRecord, NullHistoryStore
from app.adapters.persistence.factory import create_history_store
from app.adapters.persistence.in_memory import InMemoryHistoryStore
from app.adapters.persistence.jsonl import JsonlHistoryStore

__all__ = [
    "AbstractHistoryStore",
    "HistoryRecord",
    "InMemoryHistoryStore",
    "JsonlHistoryStore",
    "NullHistoryStore",
    "create_history_store",
]
