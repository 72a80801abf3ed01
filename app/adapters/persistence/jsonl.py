"""Append-only JSON-lines history store."""

from __future__ import annotations

import asyncio
import json
import threading
from pathlib import Path

from app.adapters.persistence.base import AbstractHistoryStore, HistoryRecord


class JsonlHistoryStore(AbstractHistoryStore):
    """Writes one JSON object per line; the file is created on first save."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _append(self, line: str) -> None:
        with self._lock:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as fh:
                fh.write(line + "\n")

    async def save(self, record: HistoryRecord) -> None:
        line = json.dumps(record.to_dict(), default=str, ensure_ascii=False)
        await asyncio.to_thread(self._append, line)
