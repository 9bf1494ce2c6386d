"""Shared counter store adapters.

Rate limiting and usage accounting only need a handful of key-value
primitives, so the backend (in-process dict or Redis) is chosen at startup
without the callers noticing.
"""

from feedback_api.adapters.counter_store.base import AbstractCounterStore
from feedback_api.adapters.counter_store.factory import create_counter_store
from feedback_api.adapters.counter_store.in_memory import InMemoryCounterStore
from feedback_api.adapters.counter_store.redis_store import RedisCounterStore

__all__ = [
    "AbstractCounterStore",
    "InMemoryCounterStore",
    "RedisCounterStore",
    "create_counter_store",
]
