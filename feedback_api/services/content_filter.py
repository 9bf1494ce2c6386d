"""Local spam heuristics and duplicate-submission detection.

Nothing here is persisted or shared between processes: a second server
instance has its own fingerprint memory, so duplicates sent to different
instances are not caught.
"""

from __future__ import annotations

import logging
import re
import threading
from collections import Counter, OrderedDict
from dataclasses import dataclass

from feedback_api.core.logging import hash_identity

logger = logging.getLogger(__name__)

REPEATED_CHAR_PATTERN = re.compile(r"(.)\1{9,}")
URL_SCHEME_PATTERN = re.compile(r"https?://")

MAX_URLS = 3
MAX_WORD_REPEATS = 5
MIN_WORDS_FOR_REPEAT_CHECK = 10


@dataclass(frozen=True)
class SpamCheckResult:
    is_spam: bool
    reason: str | None = None


def classify(text: str) -> SpamCheckResult:
    """Apply the spam heuristics in order; the first match supplies the reason."""

    if REPEATED_CHAR_PATTERN.search(text):
        return SpamCheckResult(is_spam=True, reason="Too many repeated characters")

    if len(URL_SCHEME_PATTERN.findall(text)) > MAX_URLS:
        return SpamCheckResult(is_spam=True, reason="Too many URLs")

    words = text.lower().split()
    if len(words) > MIN_WORDS_FOR_REPEAT_CHECK:
        _, top_count = Counter(words).most_common(1)[0]
        if top_count > MAX_WORD_REPEATS:
            return SpamCheckResult(is_spam=True, reason="Excessive word repetition")

    return SpamCheckResult(is_spam=False)


def fingerprint(text: str) -> str:
    return text.strip().lower()


class _FingerprintBucket:
    """Insertion-ordered fingerprints for one (identity, resource) pair."""

    __slots__ = ("lock", "entries")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.entries: OrderedDict[str, None] = OrderedDict()


class ContentAdmissionFilter:
    """Owns the fingerprint memory used for duplicate detection.

    Buckets are kept in an LRU map bounded by ``max_buckets``; each bucket
    keeps at most ``max_fingerprints`` of its most recent insertions.
    """

    def __init__(self, *, max_fingerprints: int = 100, max_buckets: int = 10000) -> None:
        if max_fingerprints < 1:
            raise ValueError("max_fingerprints must be >= 1")
        if max_buckets < 1:
            raise ValueError("max_buckets must be >= 1")
        self._max_fingerprints = max_fingerprints
        self._max_buckets = max_buckets
        self._buckets: OrderedDict[tuple[str, str], _FingerprintBucket] = OrderedDict()
        self._buckets_lock = threading.Lock()

    def classify(self, text: str) -> SpamCheckResult:
        return classify(text)

    def _bucket(self, identity: str, resource_id: str) -> _FingerprintBucket:
        key = (identity, resource_id)
        with self._buckets_lock:
            bucket = self._buckets.get(key)
            if bucket is None:
                bucket = _FingerprintBucket()
                self._buckets[key] = bucket
                while len(self._buckets) > self._max_buckets:
                    self._buckets.popitem(last=False)
            else:
                self._buckets.move_to_end(key)
            return bucket

    def is_duplicate(self, resource_id: str, text: str, identity: str) -> bool:
        """Return True if this identity already sent the same text to the resource.

        New text is remembered; repeated text is not re-inserted.
        """
        normalized = fingerprint(text)
        bucket = self._bucket(identity, resource_id)

        with bucket.lock:
            if normalized in bucket.entries:
                logger.info(
                    "content_filter.duplicate",
                    extra={"question_id": resource_id, "key_hash": hash_identity(identity)},
                )
                return True

            bucket.entries[normalized] = None
            while len(bucket.entries) > self._max_fingerprints:
                bucket.entries.popitem(last=False)
            return False

    def forget(self, resource_id: str, text: str, identity: str) -> None:
        """Drop a remembered fingerprint (e.g. when the submission was not stored)."""
        bucket = self._bucket(identity, resource_id)
        with bucket.lock:
            bucket.entries.pop(fingerprint(text), None)

    def stats(self) -> dict[str, int]:
        with self._buckets_lock:
            return {
                "buckets": len(self._buckets),
                "max_buckets": self._max_buckets,
                "max_fingerprints": self._max_fingerprints,
            }

    def clear(self) -> None:
        with self._buckets_lock:
            self._buckets.clear()
