"""
Store implementations for redlatch.

- redis: RedisStore on redis.asyncio (single node or cluster)
- memory: MemoryStore for tests and single-process use
"""

from .memory import MemoryStore
from .redis import RedisClient, RedisManager, RedisStore

__all__ = ["MemoryStore", "RedisClient", "RedisManager", "RedisStore"]
