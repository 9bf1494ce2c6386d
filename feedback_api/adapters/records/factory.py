"""Factory for record store instances."""

from feedback_api.adapters.records.base import AbstractRecordStore
from feedback_api.adapters.records.in_memory import InMemoryRecordStore
from feedback_api.adapters.records.postgrest import PostgrestRecordStore
from feedback_api.core.config import RecordStoreSettings, settings
from feedback_api.core.errors import ValidationAppError


def create_record_store(store_settings: RecordStoreSettings | None = None) -> AbstractRecordStore:
    """Instantiate the configured record store.

    Raises:
        ValidationAppError: If the backend is unknown or misconfigured.
    """
    cfg = store_settings or settings.record_store
    backend = cfg.backend.lower()

    if backend == "memory":
        return InMemoryRecordStore()

    if backend == "postgrest":
        if not cfg.url or not cfg.api_key:
            raise ValidationAppError(
                code="record_store_missing_config",
                message="PostgREST backend requires RECORD_STORE_URL and RECORD_STORE_API_KEY",
            )
        return PostgrestRecordStore(cfg.url, cfg.api_key, timeout_seconds=cfg.timeout_seconds)

    raise ValidationAppError(
        code="record_store_unknown_backend",
        message=f"Unknown record store backend: '{backend}'. Supported backends: memory, postgrest",
    )
