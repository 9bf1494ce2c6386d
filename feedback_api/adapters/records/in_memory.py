"""In-memory record store for development and tests."""

from __future__ import annotations

import threading
import uuid
from typing import Any, Mapping

from feedback_api.adapters.records.base import AbstractRecordStore, Record


class InMemoryRecordStore(AbstractRecordStore):
    """Per-process tables; records get a UUID id unless they bring one."""

    def __init__(self, *, subscriber_queue_size: int = 100) -> None:
        super().__init__(subscriber_queue_size=subscriber_queue_size)
        self._lock = threading.RLock()
        self._tables: dict[str, list[Record]] = {}

    async def insert(self, table: str, record: Mapping[str, Any]) -> str:
        stored = dict(record)
        stored.setdefault("id", str(uuid.uuid4()))
        with self._lock:
            self._tables.setdefault(table, []).append(stored)
        self._publish(table, stored)
        return str(stored["id"])

    async def query(
        self,
        table: str,
        filters: Mapping[str, Any] | None = None,
        *,
        order_by: str | None = None,
        ascending: bool = True,
        limit: int | None = None,
    ) -> list[Record]:
        with self._lock:
            rows = [dict(r) for r in self._tables.get(table, [])]

        if filters:
            rows = [r for r in rows if all(r.get(k) == v for k, v in filters.items())]
        if order_by:
            rows.sort(key=lambda r: str(r.get(order_by, "")), reverse=not ascending)
        if limit is not None:
            rows = rows[:limit]
        return rows

    def clear(self) -> None:
        with self._lock:
            self._tables.clear()
