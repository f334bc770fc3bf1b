"""
Shared State
============
Key-value stores backing OTPs, tickets, rate windows and reminder dedup.
"""

from .base import KeyValueStore, Mutator
from .memory import InMemoryKeyValueStore
from .redis_store import RedisKeyValueStore

__all__ = [
    "KeyValueStore",
    "Mutator",
    "InMemoryKeyValueStore",
    "RedisKeyValueStore",
]
