"""
Redis Key-Value Store
=====================
Redis-backed store for multi-instance deployments.

Values are JSON documents; expiry uses native Redis TTLs and
``update`` runs as an optimistic WATCH/MULTI transaction.
"""

import json
from typing import Optional

import structlog

from .base import KeyValueStore, Mutator, T, Value

logger = structlog.get_logger(__name__)


class RedisKeyValueStore(KeyValueStore):
    """Key-value store on top of an async Redis client."""

    def __init__(self, redis_client, namespace: str = "linedup"):
        """
        Args:
            redis_client: ``redis.asyncio.Redis`` instance
            namespace: Prefix applied to every key
        """
        self.redis = redis_client
        self.namespace = namespace

    @classmethod
    def from_url(cls, url: str, namespace: str = "linedup") -> "RedisKeyValueStore":
        from redis import asyncio as aioredis

        return cls(aioredis.from_url(url, decode_responses=True), namespace=namespace)

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    async def get(self, key: str) -> Optional[Value]:
        raw = await self.redis.get(self._key(key))
        return json.loads(raw) if raw else None

    async def set(self, key: str, value: Value, ttl: Optional[float] = None) -> None:
        px = int(ttl * 1000) if ttl is not None else None
        await self.redis.set(self._key(key), json.dumps(value), px=px)

    async def delete(self, key: str) -> bool:
        return bool(await self.redis.delete(self._key(key)))

    async def update(self, key: str, mutator: Mutator, ttl: Optional[float] = None) -> T:
        full_key = self._key(key)

        async def _transaction(pipe):
            raw = await pipe.get(full_key)
            current = json.loads(raw) if raw else None

            new_value, result = mutator(current)

            pipe.multi()
            if new_value is None:
                pipe.delete(full_key)
            elif ttl is not None:
                pipe.set(full_key, json.dumps(new_value), px=int(ttl * 1000))
            else:
                pipe.set(full_key, json.dumps(new_value), keepttl=True)
            return result

        # Retries automatically when another client touches the key mid-update
        return await self.redis.transaction(
            _transaction,
            full_key,
            value_from_callable=True,
        )

    async def delete_prefix(self, prefix: str) -> int:
        count = 0
        async for full_key in self.redis.scan_iter(match=f"{self._key(prefix)}*"):
            count += await self.redis.delete(full_key)
        return count

    async def close(self) -> None:
        await self.redis.aclose()
        logger.info("Redis store closed", namespace=self.namespace)
