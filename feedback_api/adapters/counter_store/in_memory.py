"""In-memory counter store.

Notes:
- Per-process only: running multiple workers gives each worker its own
  counters, which multiplies every effective limit.
- Thread-safe: uses a lock around shared state.
- Expiry is evaluated lazily on access against an injectable clock.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable

from feedback_api.adapters.counter_store.base import AbstractCounterStore


@dataclass
class _Entry:
    value: str | dict[str, int]
    expires_at: float | None


class InMemoryCounterStore(AbstractCounterStore):
    """Dict-backed store mirroring the Redis semantics admission control relies on."""

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._lock = threading.RLock()
        self._entries: dict[str, _Entry] = {}

    def _live_entry(self, key: str) -> _Entry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at is not None and entry.expires_at <= self._clock():
            del self._entries[key]
            return None
        return entry

    async def get(self, key: str) -> str | None:
        with self._lock:
            entry = self._live_entry(key)
            if entry is None or not isinstance(entry.value, str):
                return None
            return entry.value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        with self._lock:
            self._entries[key] = _Entry(value=value, expires_at=self._clock() + ttl_seconds)

    async def increment_hash_field(self, hash_key: str, field: str, by: int = 1) -> int:
        with self._lock:
            entry = self._live_entry(hash_key)
            if entry is not None and isinstance(entry.value, dict):
                fields = entry.value
            else:
                # Like HINCRBY on a fresh key: no expiry until expire() is called
                fields = {}
                self._entries[hash_key] = _Entry(value=fields, expires_at=None)
            fields[field] = fields.get(field, 0) + by
            return fields[field]

    async def expire(self, key: str, ttl_seconds: int) -> None:
        with self._lock:
            entry = self._live_entry(key)
            if entry is not None:
                entry.expires_at = self._clock() + ttl_seconds

    async def get_hash(self, hash_key: str) -> dict[str, int]:
        with self._lock:
            entry = self._live_entry(hash_key)
            if entry is None or not isinstance(entry.value, dict):
                return {}
            return dict(entry.value)

    def ttl(self, key: str) -> float | None:
        """Seconds until ``key`` expires (None when absent or persistent)."""

        with self._lock:
            entry = self._live_entry(key)
            if entry is None or entry.expires_at is None:
                return None
            return entry.expires_at - self._clock()

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
