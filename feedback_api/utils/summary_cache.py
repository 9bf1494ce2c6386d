"""Process-local cache of generated summaries.

A summary is reused only for exactly the same question and the same ordered
list of responses. Entries expire after a TTL and the least recently read
entry is dropped once ``max_entries`` is reached.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import asdict, dataclass
from hashlib import sha256
from typing import Any, Sequence

logger = logging.getLogger(__name__)

Summary = dict[str, Any]


def summary_key(question: str, responses: Sequence[str], *, salt: str | None = None) -> str:
    """SHA-256 over the question and its responses in submission order."""

    digest = sha256(question.encode("utf-8"))
    for response in responses:
        # Unit separator keeps ["ab"] and ["a", "b"] apart
        digest.update(b"\x1f" + response.encode("utf-8"))
    if salt:
        digest.update(b"\x1e" + salt.encode("utf-8"))
    return digest.hexdigest()


@dataclass
class CacheStats:
    entries: int = 0
    hits: int = 0
    misses: int = 0
    expired: int = 0
    evicted: int = 0


class SummaryCache:
    """Thread-safe TTL + LRU map from response sets to summaries."""

    def __init__(self, ttl_seconds: int = 3600, max_entries: int = 1024) -> None:
        if ttl_seconds < 1 or max_entries < 1:
            raise ValueError("ttl_seconds and max_entries must be >= 1")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._entries: OrderedDict[str, tuple[float, Summary]] = OrderedDict()
        self._lock = threading.Lock()
        self._stats = CacheStats()

    def get(self, question: str, responses: Sequence[str], *, salt: str | None = None) -> Summary | None:
        key = summary_key(question, responses, salt=salt)
        with self._lock:
            found = self._entries.get(key)
            if found is not None and found[0] <= time.time():
                del self._entries[key]
                self._stats.expired += 1
                found = None
            if found is None:
                self._stats.misses += 1
                logger.debug("summary_cache.miss", extra={"cache_key": key[:16]})
                return None
            self._entries.move_to_end(key)
            self._stats.hits += 1
        logger.debug("summary_cache.hit", extra={"cache_key": key[:16]})
        return found[1]

    def put(self, question: str, responses: Sequence[str], summary: Summary, *, salt: str | None = None) -> None:
        key = summary_key(question, responses, salt=salt)
        with self._lock:
            self._entries[key] = (time.time() + self.ttl_seconds, summary)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)
                self._stats.evicted += 1

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._stats = CacheStats()

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(**{**asdict(self._stats), "entries": len(self._entries)})
