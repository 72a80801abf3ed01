"""In-memory sliding-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: a single lock serializes every read-modify-write on the store.
- Fail-open: an internal error during evaluation admits the request.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Iterator

from app.adapters.rate_limit.base import (
    AbstractRateLimiter,
    LimiterPolicy,
    PolicyOverride,
    RateLimitResult,
)

logger = logging.getLogger(__name__)


def _epoch_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class WindowRecord:
    """Recent event timestamps for one key.

    Attributes:
        timestamps: Admitted event times in epoch ms, non-decreasing.
        total: Lifetime number of admitted events.
        window_ms: Largest window used to evaluate this key; the sweep keeps
            events that window still counts.
    """

    timestamps: list[int] = field(default_factory=list)
    total: int = 0
    window_ms: int = 0


class WindowStore:
    """Mapping of key to WindowRecord owned by exactly one limiter.

    The store does no locking of its own; the owning limiter holds its lock
    around every access.
    """

    def __init__(self) -> None:
        self._records: dict[str, WindowRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, key: object) -> bool:
        return key in self._records

    def get(self, key: str) -> WindowRecord | None:
        return self._records.get(key)

    def put(self, key: str, record: WindowRecord) -> None:
        self._records[key] = record

    def delete(self, key: str) -> None:
        self._records.pop(key, None)

    def items(self) -> Iterator[tuple[str, WindowRecord]]:
        # Snapshot so callers may delete while iterating.
        return iter(list(self._records.items()))


def _in_window(timestamps: list[int], now: int, window_ms: int) -> list[int]:
    return [ts for ts in timestamps if now - ts < window_ms]


class InMemorySlidingWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter counting events inside a window that slides with "now".

    Unlike a fixed-window counter, the counted interval is recomputed on every
    call as ``(now - window_ms, now]``, so bursts straddling a bucket boundary
    cannot double the admitted rate.

    Important:
        This limiter is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker will enforce its
        own independent limits.
    """

    def __init__(
        self,
        *,
        policy: LimiterPolicy,
        name: str = "default",
        clock: Callable[[], int] = _epoch_ms,
        store: WindowStore | None = None,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            policy: Default window/limit policy.
            name: Limiter name used in logs.
            clock: Time source returning epoch milliseconds.
            store: Optional pre-built store (tests inject one to inspect state).
        """
        self._policy = policy
        self._name = name
        self._clock = clock
        self._lock = threading.Lock()
        self._store = store if store is not None else WindowStore()

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"InMemorySlidingWindowRateLimiter(name={self._name!r}, "
            f"window_ms={self._policy.window_ms}, max_requests={self._policy.max_requests}, "
            f"keys={len(self._store)})"
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def policy(self) -> LimiterPolicy:
        return self._policy

    @property
    def store(self) -> WindowStore:
        return self._store

    def now(self) -> int:
        return int(self._clock())

    def _fail_open(self, key: str, policy: LimiterPolicy, now: int | None, operation: str) -> RateLimitResult:
        logger.exception(
            "rate_limit.evaluation_failed",
            extra={
                "limiter": self._name,
                "operation": operation,
                "key_length": len(key),
            },
        )
        if now is None:
            # The injected clock itself failed
            now = _epoch_ms()
        return RateLimitResult(
            allowed=True,
            limit=policy.max_requests,
            total_requests=0,
            remaining_requests=policy.max_requests,
            reset_time=now + policy.window_ms,
        )

    def is_allowed(self, key: str, override: PolicyOverride | None = None) -> RateLimitResult:
        """Check and, if admitted, record one event for the key.

        Rejected attempts are not recorded.

        Args:
            key: Unique identifier for rate limiting.
            override: Per-call overrides merged over the default policy.

        Returns:
            RateLimitResult with allowance decision and metadata.

        Raises:
            ValueError: If key is empty or the override is invalid.
        """
        if not key:
            raise ValueError("key must be a non-empty string")

        policy = self._policy.merged(override)
        now: int | None = None

        try:
            now = self.now()
            with self._lock:
                record = self._store.get(key)
                if record is None:
                    record = WindowRecord()

                record.timestamps = _in_window(record.timestamps, now, policy.window_ms)
                record.window_ms = max(record.window_ms, policy.window_ms)

                if len(record.timestamps) >= policy.max_requests:
                    return RateLimitResult(
                        allowed=False,
                        limit=policy.max_requests,
                        total_requests=len(record.timestamps),
                        remaining_requests=0,
                        reset_time=min(record.timestamps) + policy.window_ms,
                    )

                record.timestamps.append(now)
                record.total += 1
                self._store.put(key, record)

                return RateLimitResult(
                    allowed=True,
                    limit=policy.max_requests,
                    total_requests=record.total,
                    remaining_requests=policy.max_requests - len(record.timestamps),
                    reset_time=min(record.timestamps) + policy.window_ms,
                )
        except Exception:
            return self._fail_open(key, policy, now, "is_allowed")

    def get_info(self, key: str, override: PolicyOverride | None = None) -> RateLimitResult:
        """Project the key's current state without mutating it."""
        if not key:
            raise ValueError("key must be a non-empty string")

        policy = self._policy.merged(override)
        now: int | None = None

        try:
            now = self.now()
            with self._lock:
                record = self._store.get(key)
                if record is None:
                    valid: list[int] = []
                    total = 0
                else:
                    valid = _in_window(record.timestamps, now, policy.window_ms)
                    total = record.total

            reset_time = min(valid) + policy.window_ms if valid else now + policy.window_ms
            return RateLimitResult(
                allowed=len(valid) < policy.max_requests,
                limit=policy.max_requests,
                total_requests=total,
                remaining_requests=max(0, policy.max_requests - len(valid)),
                reset_time=reset_time,
            )
        except Exception:
            return self._fail_open(key, policy, now, "get_info")

    def reset(self, key: str) -> None:
        with self._lock:
            self._store.delete(key)

    def cleanup(self) -> int:
        """Drop expired timestamps and delete keys left with none.

        Each record is swept against the larger of the default window and the
        widest window it has been evaluated with. Purging is therefore
        invisible only to windows the key has already seen: an override wider
        than any previous one, first used after a sweep, counts only the
        events that survived that sweep.

        A record that cannot be swept is logged and deleted, so one corrupt
        entry neither stalls the sweep nor stays unthrottled.
        """
        now = self.now()
        removed = 0
        with self._lock:
            for key, record in self._store.items():
                try:
                    window_ms = max(self._policy.window_ms, record.window_ms)
                    cutoff = now - window_ms
                    record.timestamps = [ts for ts in record.timestamps if ts > cutoff]
                    expired = not record.timestamps
                except Exception:
                    logger.exception(
                        "rate_limit.cleanup_record_failed",
                        extra={"limiter": self._name, "key_length": len(key)},
                    )
                    expired = True
                if expired:
                    self._store.delete(key)
                    removed += 1

        if removed:
            logger.debug(
                "rate_limit.cleanup",
                extra={"limiter": self._name, "removed_keys": removed, "keys": len(self._store)},
            )
        return removed
