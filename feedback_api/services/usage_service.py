"""Usage accounting for billed summarization calls.

Counts live in two day-bucketed hashes in the counter store:

    usage:{YYYY-MM-DD}            total_tokens, total_requests
    usage:{YYYY-MM-DD}:questions  {question_id: request_count}

Both only ever grow, so they use the store's atomic hash increment rather
than a read-modify-write. Recording is best-effort telemetry that runs after
the billed call already happened: failures are logged and swallowed.
"""

from __future__ import annotations

import logging
import time
from datetime import date, datetime, timezone
from typing import Callable

from feedback_api.adapters.counter_store.base import AbstractCounterStore
from feedback_api.core.errors import CounterStoreError
from feedback_api.schemas.usage import UsageRecord

logger = logging.getLogger(__name__)

TOTAL_TOKENS_FIELD = "total_tokens"
TOTAL_REQUESTS_FIELD = "total_requests"


def day_bucket(now: float) -> str:
    """Calendar day (UTC) for a UNIX timestamp, as YYYY-MM-DD."""
    return datetime.fromtimestamp(now, tz=timezone.utc).date().isoformat()


def _totals_key(day: str) -> str:
    return f"usage:{day}"


def _questions_key(day: str) -> str:
    return f"usage:{day}:questions"


class UsageAccountant:
    """Aggregates token and request counts per day and per question."""

    def __init__(
        self,
        store: AbstractCounterStore,
        *,
        retention_days: int = 90,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if retention_days < 1:
            raise ValueError("retention_days must be >= 1")
        self._store = store
        self._retention_seconds = retention_days * 24 * 60 * 60
        self._clock = clock

    async def record_usage(self, resource_id: str, amount: int, now: float | None = None) -> bool:
        """Add one request and ``amount`` tokens to today's buckets.

        Returns:
            True when every increment was stored, False when the store failed.
        """
        now = self._clock() if now is None else now
        day = day_bucket(now)
        totals_key = _totals_key(day)
        questions_key = _questions_key(day)

        try:
            await self._store.increment_hash_field(totals_key, TOTAL_TOKENS_FIELD, amount)
            await self._store.increment_hash_field(totals_key, TOTAL_REQUESTS_FIELD, 1)
            await self._store.increment_hash_field(questions_key, resource_id, 1)
            await self._store.expire(totals_key, self._retention_seconds)
            await self._store.expire(questions_key, self._retention_seconds)
        except CounterStoreError as exc:
            logger.error(
                "usage.record_failed",
                extra={
                    "question_id": resource_id,
                    "tokens": amount,
                    "day": day,
                    "error_code": exc.code,
                },
            )
            return False

        logger.info(
            "usage.recorded",
            extra={"question_id": resource_id, "tokens": amount, "day": day},
        )
        return True

    async def get_usage(self, day: str | date) -> UsageRecord:
        """Read back the aggregated counters for one day.

        Raises:
            CounterStoreError: If the store cannot be read.
        """
        day_str = day.isoformat() if isinstance(day, date) else day
        totals = await self._store.get_hash(_totals_key(day_str))
        per_question = await self._store.get_hash(_questions_key(day_str))
        return UsageRecord(
            day=day_str,
            total_tokens=totals.get(TOTAL_TOKENS_FIELD, 0),
            total_requests=totals.get(TOTAL_REQUESTS_FIELD, 0),
            questions=per_question,
        )
