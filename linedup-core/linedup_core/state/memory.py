"""
In-Memory Key-Value Store
=========================
Process-local store for a single-instance deployment and for tests.
"""

import threading
import time
from typing import Callable, Dict, Optional, Tuple

import structlog

from .base import KeyValueStore, Mutator, T, Value

logger = structlog.get_logger(__name__)


class InMemoryKeyValueStore(KeyValueStore):
    """
    Dictionary-backed store with lazy expiry.

    Expired keys are invisible on read and removed by ``purge_expired``.
    State is lost on restart and not shared between processes.
    """

    def __init__(self, time_func: Callable[[], float] = time.time):
        """
        Args:
            time_func: Returns the current Unix timestamp
        """
        self._time = time_func
        self._data: Dict[str, Tuple[Value, Optional[float]]] = {}
        self._lock = threading.Lock()

    def _live(self, key: str, now: float) -> Optional[Tuple[Value, Optional[float]]]:
        item = self._data.get(key)
        if item is None:
            return None
        _, expires_at = item
        if expires_at is not None and now >= expires_at:
            del self._data[key]
            return None
        return item

    def _expiry(self, ttl: Optional[float], now: float) -> Optional[float]:
        return None if ttl is None else now + ttl

    async def get(self, key: str) -> Optional[Value]:
        with self._lock:
            item = self._live(key, self._time())
            return dict(item[0]) if item else None

    async def set(self, key: str, value: Value, ttl: Optional[float] = None) -> None:
        with self._lock:
            self._data[key] = (dict(value), self._expiry(ttl, self._time()))

    async def delete(self, key: str) -> bool:
        with self._lock:
            existed = self._live(key, self._time()) is not None
            self._data.pop(key, None)
            return existed

    async def update(self, key: str, mutator: Mutator, ttl: Optional[float] = None) -> T:
        with self._lock:
            now = self._time()
            item = self._live(key, now)
            current = dict(item[0]) if item else None

            new_value, result = mutator(current)

            if new_value is None:
                self._data.pop(key, None)
            else:
                expires_at = self._expiry(ttl, now) if ttl is not None else (item[1] if item else None)
                self._data[key] = (dict(new_value), expires_at)
            return result

    async def delete_prefix(self, prefix: str) -> int:
        with self._lock:
            doomed = [key for key in self._data if key.startswith(prefix)]
            for key in doomed:
                del self._data[key]
            return len(doomed)

    async def purge_expired(self) -> int:
        with self._lock:
            now = self._time()
            expired = [
                key for key, (_, expires_at) in self._data.items()
                if expires_at is not None and now >= expires_at
            ]
            for key in expired:
                del self._data[key]

        if expired:
            logger.debug("Purged expired keys", count=len(expired))
        return len(expired)

    def __len__(self) -> int:
        return len(self._data)
