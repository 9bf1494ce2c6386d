"""Process-wide service wiring for FastAPI routes.

Stores, the rate limiter and the content filter are built once and shared
across requests. Routes depend on ``get_request_gate``/``get_usage_accountant``
only; tests replace them through ``app.dependency_overrides`` or by calling
``reset_services``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from feedback_api.adapters.counter_store.base import AbstractCounterStore
from feedback_api.adapters.counter_store.factory import create_counter_store
from feedback_api.adapters.llm.factory import create_llm_client
from feedback_api.adapters.rate_limit.policies import build_policies
from feedback_api.adapters.rate_limit.store_backed import CounterStoreRateLimiter
from feedback_api.adapters.records.base import AbstractRecordStore
from feedback_api.adapters.records.factory import create_record_store
from feedback_api.core.config import Settings, settings
from feedback_api.services.content_filter import ContentAdmissionFilter
from feedback_api.services.request_gate import RequestGate
from feedback_api.services.summary_service import SummaryService
from feedback_api.services.usage_service import UsageAccountant
from feedback_api.utils.summary_cache import SummaryCache

logger = logging.getLogger(__name__)


@dataclass
class Services:
    counter_store: AbstractCounterStore
    records: AbstractRecordStore
    usage: UsageAccountant
    gate: RequestGate


_services: Services | None = None


def build_services(cfg: Settings = settings) -> Services:
    """Construct every collaborator from configuration."""

    counter_store = create_counter_store(cfg.counter_store)
    records = create_record_store(cfg.record_store)

    limiter = CounterStoreRateLimiter(
        counter_store,
        state_ttl_seconds=cfg.rate_limit.state_ttl_seconds,
        fail_open=cfg.rate_limit.fail_open,
    )
    usage = UsageAccountant(counter_store, retention_days=cfg.usage.retention_days)
    summaries = SummaryService(
        llm=create_llm_client(cfg.llm),
        cache=SummaryCache(ttl_seconds=cfg.app.summary_cache_ttl_seconds, max_entries=1024),
        min_responses=cfg.app.min_summary_responses,
    )
    content_filter = ContentAdmissionFilter(
        max_fingerprints=cfg.content_filter.max_fingerprints_per_bucket,
        max_buckets=cfg.content_filter.max_buckets,
    )

    gate = RequestGate(
        limiter=limiter,
        policies=build_policies(cfg.rate_limit),
        content_filter=content_filter,
        records=records,
        usage=usage,
        summaries=summaries,
        app_settings=cfg.app,
        rate_limit_enabled=cfg.rate_limit.enabled,
    )

    logger.info(
        "services.built",
        extra={
            "counter_store_backend": cfg.counter_store.backend,
            "record_store_backend": cfg.record_store.backend,
            "rate_limit_enabled": cfg.rate_limit.enabled,
            "fail_open": cfg.rate_limit.fail_open,
        },
    )
    return Services(counter_store=counter_store, records=records, usage=usage, gate=gate)


def get_services() -> Services:
    global _services
    if _services is None:
        _services = build_services()
    return _services


async def close_services() -> None:
    """Release store connections; the next request rebuilds services."""

    global _services
    if _services is None:
        return
    services, _services = _services, None
    await services.counter_store.close()
    await services.records.close()


def reset_services() -> None:
    global _services
    _services = None


def get_request_gate() -> RequestGate:
    return get_services().gate


def get_usage_accountant() -> UsageAccountant:
    return get_services().usage


def get_record_store() -> AbstractRecordStore:
    return get_services().records
