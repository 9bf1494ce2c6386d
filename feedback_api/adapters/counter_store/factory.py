"""Factory for counter store instances."""

from feedback_api.adapters.counter_store.base import AbstractCounterStore
from feedback_api.adapters.counter_store.in_memory import InMemoryCounterStore
from feedback_api.adapters.counter_store.redis_store import RedisCounterStore
from feedback_api.core.config import CounterStoreSettings, settings
from feedback_api.core.errors import ValidationAppError


def create_counter_store(store_settings: CounterStoreSettings | None = None) -> AbstractCounterStore:
    """Instantiate the configured counter store backend.

    Raises:
        ValidationAppError: If the backend name is unknown.
    """
    cfg = store_settings or settings.counter_store
    backend = cfg.backend.lower()

    if backend == "memory":
        return InMemoryCounterStore()

    if backend == "redis":
        return RedisCounterStore(
            cfg.redis_url,
            socket_timeout_seconds=cfg.socket_timeout_seconds,
        )

    raise ValidationAppError(
        code="counter_store_unknown_backend",
        message=f"Unknown counter store backend: '{backend}'. Supported backends: memory, redis",
    )
