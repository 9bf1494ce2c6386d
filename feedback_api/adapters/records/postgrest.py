"""Record store speaking the PostgREST dialect (as exposed by Supabase)."""

from __future__ import annotations

import logging
from typing import Any, Mapping

import httpx

from feedback_api.adapters.records.base import AbstractRecordStore, Record
from feedback_api.core.errors import RecordStoreError

logger = logging.getLogger(__name__)


class PostgrestRecordStore(AbstractRecordStore):
    """Async client for ``{base_url}/rest/v1/{table}`` endpoints."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout_seconds: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__()
        headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        self._client = client or httpx.AsyncClient(
            base_url=f"{base_url.rstrip('/')}/rest/v1",
            headers=headers,
            timeout=timeout_seconds,
        )

    @staticmethod
    def _error(operation: str, table: str, exc: Exception) -> RecordStoreError:
        logger.error(
            "record_store.request_failed",
            extra={"operation": operation, "table": table, "error_type": type(exc).__name__},
        )
        return RecordStoreError(
            code="record_store_unavailable",
            message=f"Record store {operation} on '{table}' failed",
            details={"table": table},
        )

    async def insert(self, table: str, record: Mapping[str, Any]) -> str:
        try:
            response = await self._client.post(
                f"/{table}",
                json=dict(record),
                headers={"Prefer": "return=representation"},
            )
            response.raise_for_status()
            rows = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise self._error("insert", table, exc) from exc

        stored: Record = rows[0] if isinstance(rows, list) and rows else dict(record)
        if "id" not in stored:
            raise RecordStoreError(
                code="record_store_missing_id",
                message=f"Record store insert on '{table}' returned no id",
                details={"table": table},
            )
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
        params: dict[str, str] = {"select": "*"}
        for column, value in (filters or {}).items():
            params[column] = f"eq.{value}"
        if order_by:
            params["order"] = f"{order_by}.{'asc' if ascending else 'desc'}"
        if limit is not None:
            params["limit"] = str(limit)

        try:
            response = await self._client.get(f"/{table}", params=params)
            response.raise_for_status()
            rows = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise self._error("query", table, exc) from exc

        if not isinstance(rows, list):
            raise RecordStoreError(
                code="record_store_bad_payload",
                message=f"Record store query on '{table}' returned a non-list payload",
                details={"table": table},
            )
        return rows

    async def close(self) -> None:
        await self._client.aclose()
