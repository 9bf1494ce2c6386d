"""Rate limiter interfaces.

The API layer depends on this abstraction rather than on the concrete
counter-store limiter, so tests and alternative backends can be swapped in.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Sequence

from feedback_api.adapters.rate_limit.policies import LimitPolicy, RateLimitKey


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit check/consume operation.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per short window for the deciding key.
        remaining: Remaining requests in the current window (0 when blocked).
        reset_at: UNIX epoch seconds when the current window resets.
        retry_after_seconds: Suggested wait time in seconds when blocked.
        reason: Human-readable denial message (None when allowed).
        scope: Scope of the key that produced this result.
        degraded: True when the counter store failed and the verdict came
            from the fail-open/fail-closed policy instead of real counters.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None = None
    reason: str | None = None
    scope: str | None = None
    degraded: bool = False

    @property
    def retry_at(self) -> datetime | None:
        """Absolute retry time, derived from ``reset_at`` when blocked."""
        if self.allowed:
            return None
        return datetime.fromtimestamp(self.reset_at, tz=timezone.utc)


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    async def check_and_consume(
        self,
        key: RateLimitKey,
        policy: LimitPolicy,
        now: float | None = None,
    ) -> RateLimitResult:
        """Check one key against its policy and consume one unit when admitted.

        Args:
            key: Scope + identity being limited.
            policy: Fully-resolved limits for the key.
            now: UNIX time in seconds (defaults to the limiter's clock).

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError

    @abstractmethod
    async def check_and_consume_all(
        self,
        checks: Sequence[tuple[RateLimitKey, LimitPolicy]],
        now: float | None = None,
    ) -> RateLimitResult:
        """Admit only if every key admits; consume on all keys or on none."""
        raise NotImplementedError
