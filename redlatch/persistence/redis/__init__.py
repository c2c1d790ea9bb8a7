"""
Redis Module

Provides the Redis client registry, the Redis-backed store and lifecycle
management.
"""

from .redis_client import RedisClient
from .redis_manager import RedisManager
from .redis_store import RedisStore

__all__ = ["RedisClient", "RedisManager", "RedisStore"]
