"""Bounded in-memory history store (per process, lost on restart)."""

from __future__ import annotations

import threading
from collections import OrderedDict

from app.adapters.persistence.base import AbstractHistoryStore, HistoryRecord


class InMemoryHistoryStore(AbstractHistoryStore):
    """Thread-safe store keeping the most recent ``max_items`` records."""

    def __init__(self, max_items: int = 1000) -> None:
        if max_items < 1:
            raise ValueError("max_items must be >= 1")
        self._max_items = max_items
        self._records: OrderedDict[str, HistoryRecord] = OrderedDict()
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return len(self._records)

    async def save(self, record: HistoryRecord) -> None:
        with self._lock:
            self._records[record.id] = record
            while len(self._records) > self._max_items:
                # Oldest first
                self._records.popitem(last=False)

    def records_for(self, user_id: str) -> list[HistoryRecord]:
        """Records for one caller, newest first."""
        with self._lock:
            return [r for r in reversed(self._records.values()) if r.user_id == user_id]
