"""Window accounting: counter rollover and verdicts, with no I/O.

All three counters share a single ``last_reset`` anchor. The hour/day
rollover is measured from that anchor, and a short-window rollover moves
the anchor to ``now``. A key that keeps sending requests at least once per
window therefore never sees its hourly counter reset; only a quiet gap of
an hour (or a day) since the last window rollover clears it.
"""

from __future__ import annotations

import json
import math
from dataclasses import asdict, dataclass, replace

from feedback_api.adapters.rate_limit.policies import LimitPolicy, LimitTier
from feedback_api.core.errors import MalformedStateError

SECONDS_PER_HOUR = 60 * 60
SECONDS_PER_DAY = 24 * SECONDS_PER_HOUR


def _reject_constant(name: str) -> float:
    raise ValueError(f"non-finite number {name} in stored state")


@dataclass(frozen=True)
class RateWindowState:
    """Stored counters for one rate-limited key."""

    window_count: int = 0
    hourly_count: int = 0
    daily_count: int = 0
    last_reset: float = 0.0

    @classmethod
    def fresh(cls, now: float) -> "RateWindowState":
        return cls(last_reset=now)

    def consumed(self) -> "RateWindowState":
        """Counters after admitting one more request."""
        return replace(
            self,
            window_count=self.window_count + 1,
            hourly_count=self.hourly_count + 1,
            daily_count=self.daily_count + 1,
        )

    def to_json(self) -> str:
        return json.dumps(asdict(self), separators=(",", ":"))

    @classmethod
    def from_json(cls, raw: str) -> "RateWindowState":
        """Decode a stored value.

        Raises:
            MalformedStateError: If the value is not a JSON object with the
                four numeric fields.
        """
        try:
            data = json.loads(raw, parse_constant=_reject_constant)
            last_reset = float(data["last_reset"])
            state = cls(
                window_count=int(data["window_count"]),
                hourly_count=int(data["hourly_count"]),
                daily_count=int(data["daily_count"]),
                last_reset=last_reset,
            )
        except (TypeError, ValueError, KeyError, OverflowError) as exc:
            raise MalformedStateError(
                code="rate_limit_state_malformed",
                message=f"Stored rate limit state could not be decoded: {exc}",
            ) from exc
        if not math.isfinite(last_reset):
            raise MalformedStateError(
                code="rate_limit_state_malformed",
                message="Stored rate limit state has a non-finite reset time",
            )
        if min(state.window_count, state.hourly_count, state.daily_count) < 0:
            raise MalformedStateError(
                code="rate_limit_state_malformed",
                message="Stored rate limit state has negative counters",
            )
        return state


@dataclass(frozen=True)
class WindowVerdict:
    """Outcome of evaluating a (rolled-over) state against a policy."""

    allowed: bool
    tier: LimitTier | None = None
    reason: str | None = None
    retry_at: float | None = None


def roll_over(state: RateWindowState, now: float, window_seconds: int) -> RateWindowState:
    """Apply day, hour and short-window rollovers for ``now``."""

    window_count = state.window_count
    hourly_count = state.hourly_count
    daily_count = state.daily_count
    last_reset = state.last_reset

    hours_passed = (now - last_reset) / SECONDS_PER_HOUR
    if hours_passed >= 24:
        window_count = hourly_count = daily_count = 0
        last_reset = now
    elif hours_passed >= 1:
        hourly_count = 0

    if now - last_reset > window_seconds:
        window_count = 0
        last_reset = now

    return RateWindowState(
        window_count=window_count,
        hourly_count=hourly_count,
        daily_count=daily_count,
        last_reset=last_reset,
    )


def evaluate(state: RateWindowState, policy: LimitPolicy) -> WindowVerdict:
    """Decide admission for an already rolled-over state.

    Tiers are checked day, hour, then window so the longest-lasting denial
    is the one reported. Single-key policies only check the window.
    """

    checks: list[tuple[LimitTier, int, int, float]] = []
    if policy.enforce_all_tiers:
        checks.append((LimitTier.DAY, state.daily_count, policy.per_day, state.last_reset + SECONDS_PER_DAY))
        checks.append((LimitTier.HOUR, state.hourly_count, policy.per_hour, state.last_reset + SECONDS_PER_HOUR))
    checks.append((LimitTier.WINDOW, state.window_count, policy.per_minute, state.last_reset + policy.window_seconds))

    for tier, count, maximum, retry_at in checks:
        if count >= maximum:
            return WindowVerdict(
                allowed=False,
                tier=tier,
                reason=policy.message_for(tier),
                retry_at=retry_at,
            )
    return WindowVerdict(allowed=True)


def account(state: RateWindowState, now: float, policy: LimitPolicy) -> tuple[RateWindowState, WindowVerdict]:
    """Roll over, evaluate, and consume on admission.

    Returns:
        The state to persist (unchanged counters on denial) and the verdict.
    """

    rolled = roll_over(state, now, policy.window_seconds)
    verdict = evaluate(rolled, policy)
    if verdict.allowed:
        return rolled.consumed(), verdict
    return rolled, verdict
