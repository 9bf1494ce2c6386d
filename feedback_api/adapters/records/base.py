"""Record store interface.

Besides insert/query, stores offer an in-process notification stream of
inserted records. Notifications are published only after the backend
confirmed the insert.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Mapping

logger = logging.getLogger(__name__)

Record = dict[str, Any]


class AbstractRecordStore(ABC):
    """Row store holding questions and responses."""

    def __init__(self, *, subscriber_queue_size: int = 100) -> None:
        self._subscribers: dict[str, set[asyncio.Queue[Record]]] = {}
        self._subscriber_queue_size = subscriber_queue_size

    @abstractmethod
    async def insert(self, table: str, record: Mapping[str, Any]) -> str:
        """Insert one record.

        Returns:
            The id of the stored record.

        Raises:
            RecordStoreError: If the backend rejects or fails the insert.
        """
        raise NotImplementedError

    @abstractmethod
    async def query(
        self,
        table: str,
        filters: Mapping[str, Any] | None = None,
        *,
        order_by: str | None = None,
        ascending: bool = True,
        limit: int | None = None,
    ) -> list[Record]:
        """Return records whose fields equal every value in ``filters``.

        Raises:
            RecordStoreError: If the backend cannot be queried.
        """
        raise NotImplementedError

    async def close(self) -> None:
        return None

    @asynccontextmanager
    async def subscribe(self, table: str) -> AsyncIterator[asyncio.Queue[Record]]:
        """Receive records inserted into ``table`` while the context is open."""
        queue: asyncio.Queue[Record] = asyncio.Queue(maxsize=self._subscriber_queue_size)
        self._subscribers.setdefault(table, set()).add(queue)
        try:
            yield queue
        finally:
            subscribers = self._subscribers.get(table)
            if subscribers is not None:
                subscribers.discard(queue)
                if not subscribers:
                    del self._subscribers[table]

    def _publish(self, table: str, record: Record) -> None:
        for queue in list(self._subscribers.get(table, ())):
            try:
                queue.put_nowait(dict(record))
            except asyncio.QueueFull:
                # Slow consumer: drop the notification rather than block inserts
                logger.warning("record_store.subscriber_lagging", extra={"table": table})
