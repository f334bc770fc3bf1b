"""
Key-Value Store Interface
=========================
Shared mutable state (OTP entries, tickets, rate windows, reminder
de-duplication) lives behind this interface so a single instance can keep it
in process memory and a horizontally scaled deployment can move it to Redis.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional, Tuple, TypeVar

T = TypeVar('T')

Value = Dict[str, Any]

# update() callbacks receive the current value (or None) and return
# (new value or None to delete, result handed back to the caller).
Mutator = Callable[[Optional[Value]], Tuple[Optional[Value], T]]


class KeyValueStore(ABC):
    """Key-value store with TTLs and atomic per-key read-modify-write."""

    @abstractmethod
    async def get(self, key: str) -> Optional[Value]:
        """Return the live value for ``key`` or None."""
        pass

    @abstractmethod
    async def set(self, key: str, value: Value, ttl: Optional[float] = None) -> None:
        """
        Store a value.

        Args:
            key: Key
            value: JSON-serializable mapping
            ttl: Seconds until the key is purged (None keeps it forever)
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete ``key``; returns True if it existed."""
        pass

    @abstractmethod
    async def update(self, key: str, mutator: Mutator, ttl: Optional[float] = None) -> T:
        """
        Atomically read, transform and write back one key.

        No other update of the same key interleaves with ``mutator``.
        When ``ttl`` is None an existing expiry is preserved.

        Args:
            key: Key
            mutator: Callback returning ``(new_value, result)``
            ttl: New TTL for the written value

        Returns:
            The ``result`` produced by the mutator
        """
        pass

    @abstractmethod
    async def delete_prefix(self, prefix: str) -> int:
        """Delete every key starting with ``prefix``; returns the count."""
        pass

    async def purge_expired(self) -> int:
        """Drop expired keys. Stores with native expiry return 0."""
        return 0

    async def close(self) -> None:
        """Release connections."""
        pass
