"""Counter store interface.

Calls are network-shaped: each may fail independently and there are no
cross-key transactions. Implementations raise ``CounterStoreError`` for any
transport or server failure so callers can apply their fail-open policy.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class AbstractCounterStore(ABC):
    """Minimal key-value surface used by admission control."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the stored string value, or None when absent/expired.

        Raises:
            MalformedStateError: The stored bytes cannot be decoded as text.
        """
        raise NotImplementedError

    @abstractmethod
    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store ``value`` under ``key``, replacing it, expiring after ``ttl_seconds``."""
        raise NotImplementedError

    @abstractmethod
    async def increment_hash_field(self, hash_key: str, field: str, by: int = 1) -> int:
        """Atomically add ``by`` to ``field`` of the hash at ``hash_key``.

        Returns:
            The field value after the increment.
        """
        raise NotImplementedError

    @abstractmethod
    async def expire(self, key: str, ttl_seconds: int) -> None:
        """Reset the time-to-live of ``key``."""
        raise NotImplementedError

    @abstractmethod
    async def get_hash(self, hash_key: str) -> dict[str, int]:
        """Return all integer fields of the hash at ``hash_key`` (empty when absent)."""
        raise NotImplementedError

    async def close(self) -> None:
        """Release connections held by the backend."""
        return None
