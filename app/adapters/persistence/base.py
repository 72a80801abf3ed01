"""History persistence interfaces.

Persistence is best-effort: callers log and swallow store failures so a
completed inference is never reported as failed because its record could
not be written.
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class HistoryRecord:
    """One completed feature request.

    Attributes:
        user_id: Caller identity.
        service_type: Feature name (chat, summarize, image, voice).
        input: Sanitized input (or a short description for binary input).
        output: Result text, or None for binary results.
        metadata: Model, parameters, timings.
    """

    user_id: str
    service_type: str
    input: str
    output: str | None
    metadata: dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: str = field(default_factory=_utc_now_iso)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class AbstractHistoryStore(ABC):
    """Interface for history stores."""

    @abstractmethod
    async def save(self, record: HistoryRecord) -> None:
        """Durably store a record.

        Raises:
            Exception: Any storage failure; callers treat it as non-fatal.
        """
        raise NotImplementedError


class NullHistoryStore(AbstractHistoryStore):
    """Store used when history is disabled."""

    async def save(self, record: HistoryRecord) -> None:
        return None
