"""Redis-backed counter store (shared across processes and hosts)."""

from __future__ import annotations

import logging
from typing import Any

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from feedback_api.adapters.counter_store.base import AbstractCounterStore
from feedback_api.core.errors import CounterStoreError, MalformedStateError

logger = logging.getLogger(__name__)


class RedisCounterStore(AbstractCounterStore):
    """Counter store speaking to Redis through ``redis.asyncio``.

    Every Redis failure (connection refused, timeout, server error) is
    re-raised as ``CounterStoreError`` so callers see a single failure type.
    """

    def __init__(
        self,
        redis_url: str | None = None,
        *,
        client: Any | None = None,
        socket_timeout_seconds: float = 2.0,
    ) -> None:
        if client is None and not redis_url:
            raise ValueError("redis_url or client is required")
        self._client = client or aioredis.from_url(
            redis_url,
            decode_responses=True,
            socket_timeout=socket_timeout_seconds,
            socket_connect_timeout=socket_timeout_seconds,
        )

    def _wrap(self, operation: str, key: str, exc: Exception) -> CounterStoreError:
        logger.warning(
            "counter_store.redis_error",
            extra={"operation": operation, "key_prefix": key.split(":", 1)[0], "error_type": type(exc).__name__},
        )
        return CounterStoreError(
            code="counter_store_unavailable",
            message=f"Redis {operation} failed: {exc}",
        )

    async def get(self, key: str) -> str | None:
        try:
            value = await self._client.get(key)
            if isinstance(value, bytes):
                value = value.decode("utf-8")
        except RedisError as exc:
            raise self._wrap("get", key, exc) from exc
        except UnicodeDecodeError as exc:
            raise MalformedStateError(
                code="counter_store_value_undecodable",
                message=f"Value under prefix {key.split(':', 1)[0]!r} is not valid UTF-8",
            ) from exc
        return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            await self._client.set(key, value, ex=ttl_seconds)
        except RedisError as exc:
            raise self._wrap("set", key, exc) from exc

    async def increment_hash_field(self, hash_key: str, field: str, by: int = 1) -> int:
        try:
            return int(await self._client.hincrby(hash_key, field, by))
        except RedisError as exc:
            raise self._wrap("hincrby", hash_key, exc) from exc

    async def expire(self, key: str, ttl_seconds: int) -> None:
        try:
            await self._client.expire(key, ttl_seconds)
        except RedisError as exc:
            raise self._wrap("expire", key, exc) from exc

    async def get_hash(self, hash_key: str) -> dict[str, int]:
        try:
            raw = await self._client.hgetall(hash_key)
        except RedisError as exc:
            raise self._wrap("hgetall", hash_key, exc) from exc

        result: dict[str, int] = {}
        for field, value in raw.items():
            name = field.decode("utf-8") if isinstance(field, bytes) else field
            try:
                result[name] = int(value)
            except (TypeError, ValueError) as exc:
                raise CounterStoreError(
                    code="counter_store_malformed_hash",
                    message=f"Non-integer value in hash field {name!r}",
                ) from exc
        return result

    async def close(self) -> None:
        await self._client.aclose()
