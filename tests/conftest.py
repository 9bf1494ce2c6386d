"""Pytest configuration and fixtures shared across all test modules.

Environment defaults are set before anything imports ``settings`` so the
suite never needs Redis, a database or a real LLM key.
"""

import os

# CRITICAL: Set these before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("LLM_PROVIDER", "openai")
os.environ.setdefault("LLM_MODEL", "gpt-4o-mini")
os.environ.setdefault("LLM_API_KEY", "test-key-123")
os.environ.setdefault("COUNTER_STORE_BACKEND", "memory")
os.environ.setdefault("RECORD_STORE_BACKEND", "memory")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from unittest.mock import AsyncMock  # noqa: E402

import pytest  # noqa: E402

from feedback_api.adapters.counter_store.in_memory import InMemoryCounterStore  # noqa: E402
from feedback_api.adapters.llm.base import AbstractLLMClient, LLMResponse  # noqa: E402
from feedback_api.adapters.rate_limit.policies import build_policies  # noqa: E402
from feedback_api.adapters.rate_limit.store_backed import CounterStoreRateLimiter  # noqa: E402
from feedback_api.adapters.records.in_memory import InMemoryRecordStore  # noqa: E402
from feedback_api.core.config import AppSettings, RateLimitSettings  # noqa: E402
from feedback_api.services.content_filter import ContentAdmissionFilter  # noqa: E402
from feedback_api.services.request_gate import RequestGate  # noqa: E402
from feedback_api.services.summary_service import SummaryService  # noqa: E402
from feedback_api.services.usage_service import UsageAccountant  # noqa: E402
from feedback_api.utils.summary_cache import SummaryCache  # noqa: E402

SUMMARY_PAYLOAD = {
    "main_message": {"text": "People want shorter meetings", "quotes": ["too long"]},
    "notable_perspectives": [{"insight": "Some like the format", "quote": "works for me"}],
    "key_takeaways": ["Cut the agenda"],
}


class FakeClock:
    """Mutable UNIX-time source shared by every collaborator of a test."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def counter_store(clock: FakeClock) -> InMemoryCounterStore:
    return InMemoryCounterStore(clock=clock)


@pytest.fixture
def record_store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def llm() -> AsyncMock:
    client = AsyncMock(spec=AbstractLLMClient)
    client.generate_json.return_value = LLMResponse(content=SUMMARY_PAYLOAD, total_tokens=120, model="gpt-4o-mini")
    return client


@pytest.fixture
def gate(clock, counter_store, record_store, llm) -> RequestGate:
    """Request gate over in-memory stores with default limits."""

    limiter = CounterStoreRateLimiter(counter_store, clock=clock)
    usage = UsageAccountant(counter_store, clock=clock)
    summaries = SummaryService(llm=llm, cache=SummaryCache(ttl_seconds=3600), min_responses=3)
    return RequestGate(
        limiter=limiter,
        policies=build_policies(RateLimitSettings()),
        content_filter=ContentAdmissionFilter(),
        records=record_store,
        usage=usage,
        summaries=summaries,
        app_settings=AppSettings(),
        clock=clock,
    )
