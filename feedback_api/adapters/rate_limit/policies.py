"""Static limit policies and key naming.

Policies are plain frozen data built once from settings. Call sites may
derive a variant with ``LimitPolicy.override`` (single-key endpoints pass
their own window, maximum and message) but never mutate a shared instance.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from feedback_api.core.config import RateLimitSettings


class LimitTier(str, Enum):
    DAY = "day"
    HOUR = "hour"
    WINDOW = "window"


class RateLimitScope(str, Enum):
    """Named categories of rate-limited operations."""

    QUESTION_BY_IP = "question-creation-by-ip"
    SUMMARY_BY_IP = "summary-by-ip"
    RESPONSE_BY_IP = "response-by-ip"
    RESPONSE_BY_QUESTION = "response-by-question"


_KEY_PREFIXES: Mapping[RateLimitScope, str] = MappingProxyType(
    {
        RateLimitScope.QUESTION_BY_IP: "rate_limit:questions",
        RateLimitScope.SUMMARY_BY_IP: "rate_limit:summaries",
        RateLimitScope.RESPONSE_BY_IP: "rate_limit:responses:ip",
        RateLimitScope.RESPONSE_BY_QUESTION: "rate_limit:responses:question",
    }
)


@dataclass(frozen=True)
class RateLimitKey:
    """One rate-limited counter: a scope plus the identity it is keyed by."""

    scope: RateLimitScope
    identity: str

    def __post_init__(self) -> None:
        if not self.identity:
            raise ValueError("identity must be a non-empty string")

    @property
    def storage_key(self) -> str:
        return f"{_KEY_PREFIXES[self.scope]}:{self.identity}"


@dataclass(frozen=True)
class LimitPolicy:
    """Three-tier maxima for one scope.

    With ``enforce_all_tiers=False`` (single-key mode) only the short window
    gates requests; hourly and daily counters are still tracked.
    """

    per_minute: int
    per_hour: int
    per_day: int
    window_seconds: int = 60
    enforce_all_tiers: bool = True
    messages: Mapping[LimitTier, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if min(self.per_minute, self.per_hour, self.per_day) < 1:
            raise ValueError("limits must be >= 1")
        if self.window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")

    def message_for(self, tier: LimitTier) -> str:
        return self.messages.get(tier) or "Rate limit exceeded"

    def override(
        self,
        *,
        window_seconds: int | None = None,
        max_requests: int | None = None,
        message: str | None = None,
    ) -> "LimitPolicy":
        """Return a copy with call-site window/max/message applied."""

        messages = dict(self.messages)
        if message:
            messages[LimitTier.WINDOW] = message
        return replace(
            self,
            window_seconds=window_seconds or self.window_seconds,
            per_minute=max_requests or self.per_minute,
            messages=MappingProxyType(messages),
        )


@dataclass(frozen=True)
class PolicySet:
    """All policies the request gate needs."""

    question_by_ip: LimitPolicy
    summary_by_ip: LimitPolicy
    response_by_ip: LimitPolicy
    response_by_question: LimitPolicy


def build_policies(cfg: RateLimitSettings) -> PolicySet:
    """Translate settings into immutable policies."""

    question_by_ip = LimitPolicy(
        per_minute=cfg.question_per_minute,
        per_hour=cfg.question_per_hour,
        per_day=cfg.question_per_day,
        window_seconds=cfg.window_seconds,
        enforce_all_tiers=False,
        messages=MappingProxyType({LimitTier.WINDOW: "Rate limit exceeded for question creation"}),
    )

    # Summary generation reuses the question defaults for the tracked tiers
    # and overrides the enforced window per call site.
    summary_by_ip = question_by_ip.override(
        window_seconds=cfg.summary_window_seconds,
        max_requests=cfg.summary_per_minute,
        message=cfg.summary_message,
    )

    response_by_ip = LimitPolicy(
        per_minute=cfg.response_ip_per_minute,
        per_hour=cfg.response_ip_per_hour,
        per_day=cfg.response_ip_per_day,
        window_seconds=cfg.window_seconds,
        messages=MappingProxyType(
            {
                LimitTier.DAY: "Daily response limit reached",
                LimitTier.HOUR: "Hourly response limit reached",
                LimitTier.WINDOW: "Too many responses, please wait a minute",
            }
        ),
    )

    response_by_question = LimitPolicy(
        per_minute=cfg.response_question_per_minute,
        per_hour=cfg.response_question_per_hour,
        per_day=cfg.response_question_per_day,
        window_seconds=cfg.window_seconds,
        messages=MappingProxyType(
            {
                LimitTier.DAY: "This question has reached its daily response limit",
                LimitTier.HOUR: "This question has reached its hourly response limit",
                LimitTier.WINDOW: "Too many responses to this question, please wait a minute",
            }
        ),
    )

    return PolicySet(
        question_by_ip=question_by_ip,
        summary_by_ip=summary_by_ip,
        response_by_ip=response_by_ip,
        response_by_question=response_by_question,
    )
