"""Rate limiter backed by the shared counter store.

Each check is a read-modify-write of one JSON value per key: read the state,
apply window accounting, and write the incremented state back with a fresh
expiry. The write is not a compare-and-swap, so concurrent requests for the
same key can both read the same counters and both be admitted; a key can be
exceeded by at most the number of overlapping requests.

Counter store failures never reach the caller. With ``fail_open=True`` (the
default) the request is admitted and the failure logged; with
``fail_open=False`` it is denied.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Callable, Sequence

from feedback_api.adapters.counter_store.base import AbstractCounterStore
from feedback_api.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from feedback_api.adapters.rate_limit.policies import LimitPolicy, RateLimitKey
from feedback_api.adapters.rate_limit.windows import RateWindowState, WindowVerdict, account
from feedback_api.core.errors import CounterStoreError, MalformedStateError
from feedback_api.core.logging import hash_identity

logger = logging.getLogger(__name__)

STORE_UNAVAILABLE_REASON = "Rate limiting temporarily unavailable"


class CounterStoreRateLimiter(AbstractRateLimiter):
    """Multi-tier, multi-key limiter over an ``AbstractCounterStore``."""

    def __init__(
        self,
        store: AbstractCounterStore,
        *,
        state_ttl_seconds: int = 24 * 60 * 60,
        fail_open: bool = True,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the limiter.

        Args:
            store: Shared counter store.
            state_ttl_seconds: Expiry applied to every written state.
            fail_open: Admit (True) or deny (False) when the store fails.
            clock: Time source returning UNIX time in seconds.
        """
        if state_ttl_seconds < 1:
            raise ValueError("state_ttl_seconds must be >= 1")

        self._store = store
        self._state_ttl_seconds = state_ttl_seconds
        self._fail_open = fail_open
        self._clock = clock

    @property
    def fail_open(self) -> bool:
        return self._fail_open

    async def _load_state(self, key: RateLimitKey, now: float) -> RateWindowState:
        """Read the stored state; absent or malformed values yield a fresh one."""

        try:
            raw = await self._store.get(key.storage_key)
            if raw is None:
                return RateWindowState.fresh(now)
            return RateWindowState.from_json(raw)
        except MalformedStateError as exc:
            logger.warning(
                "rate_limit.state_malformed",
                extra={
                    "scope": key.scope.value,
                    "key_hash": hash_identity(key.identity),
                    "error_code": exc.code,
                },
            )
            return RateWindowState.fresh(now)

    def _degraded_result(self, key: RateLimitKey, policy: LimitPolicy, now: float, exc: Exception) -> RateLimitResult:
        logger.error(
            "rate_limit.store_error",
            extra={
                "scope": key.scope.value,
                "key_hash": hash_identity(key.identity),
                "error_type": type(exc).__name__,
                "fail_open": self._fail_open,
            },
        )
        reset_at = int(now + policy.window_seconds)
        if self._fail_open:
            return RateLimitResult(
                allowed=True,
                limit=policy.per_minute,
                remaining=policy.per_minute,
                reset_at=reset_at,
                scope=key.scope.value,
                degraded=True,
            )
        return RateLimitResult(
            allowed=False,
            limit=policy.per_minute,
            remaining=0,
            reset_at=reset_at,
            retry_after_seconds=policy.window_seconds,
            reason=STORE_UNAVAILABLE_REASON,
            scope=key.scope.value,
            degraded=True,
        )

    @staticmethod
    def _result(
        key: RateLimitKey,
        policy: LimitPolicy,
        state: RateWindowState,
        verdict: WindowVerdict,
        now: float,
    ) -> RateLimitResult:
        window_reset = int(math.ceil(state.last_reset + policy.window_seconds))
        remaining = max(0, policy.per_minute - state.window_count)
        if verdict.allowed:
            return RateLimitResult(
                allowed=True,
                limit=policy.per_minute,
                remaining=remaining,
                reset_at=window_reset,
                scope=key.scope.value,
            )

        retry_at = verdict.retry_at if verdict.retry_at is not None else now + policy.window_seconds
        return RateLimitResult(
            allowed=False,
            limit=policy.per_minute,
            remaining=0,
            reset_at=int(math.ceil(retry_at)),
            retry_after_seconds=max(0, int(math.ceil(retry_at - now))),
            reason=verdict.reason,
            scope=key.scope.value,
        )

    async def check_and_consume(
        self,
        key: RateLimitKey,
        policy: LimitPolicy,
        now: float | None = None,
    ) -> RateLimitResult:
        return await self.check_and_consume_all([(key, policy)], now=now)

    async def check_and_consume_all(
        self,
        checks: Sequence[tuple[RateLimitKey, LimitPolicy]],
        now: float | None = None,
    ) -> RateLimitResult:
        """Evaluate every key, then persist all of them only if all admit.

        Keys are evaluated in the given order and the first denial wins; no
        key is written for a denied attempt.
        """
        if not checks:
            raise ValueError("at least one rate limit check is required")

        now = self._clock() if now is None else now

        planned: list[tuple[RateLimitKey, LimitPolicy, RateWindowState, RateLimitResult]] = []
        for key, policy in checks:
            try:
                state = await self._load_state(key, now)
            except CounterStoreError as exc:
                return self._degraded_result(key, policy, now, exc)

            new_state, verdict = account(state, now, policy)
            result = self._result(key, policy, new_state, verdict, now)
            if not result.allowed:
                logger.warning(
                    "rate_limit.denied",
                    extra={
                        "scope": key.scope.value,
                        "key_hash": hash_identity(key.identity),
                        "tier": verdict.tier.value if verdict.tier else None,
                        "limit": result.limit,
                        "retry_after_s": result.retry_after_seconds,
                    },
                )
                return result
            planned.append((key, policy, new_state, result))

        for key, policy, new_state, _ in planned:
            try:
                await self._store.set(key.storage_key, new_state.to_json(), self._state_ttl_seconds)
            except CounterStoreError as exc:
                # Admission was already decided on real counters; a lost write only under-counts.
                logger.error(
                    "rate_limit.store_error",
                    extra={
                        "scope": key.scope.value,
                        "key_hash": hash_identity(key.identity),
                        "error_type": type(exc).__name__,
                        "operation": "set",
                    },
                )

        # Report the tightest remaining budget across keys
        decisive = min((entry[3] for entry in planned), key=lambda r: r.remaining)
        logger.info(
            "rate_limit.allowed",
            extra={
                "scopes": [entry[0].scope.value for entry in planned],
                "limit": decisive.limit,
                "remaining": decisive.remaining,
            },
        )
        return decisive
