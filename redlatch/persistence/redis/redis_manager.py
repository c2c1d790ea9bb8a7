"""
Redis Manager for application lifecycle management.

Wraps RedisClient with settings-driven initialization and cleanup, and builds
the Cache and Mutex objects on top of the configured client.
"""

import logging
from typing import Any

from ...cache.cache import Cache
from ...core.config.settings import settings
from ...mutex.mutex import Mutex
from .redis_client import RedisClient
from .redis_store import RedisStore

logger = logging.getLogger(__name__)


class RedisManager:
    """
    Application-level wrapper around RedisClient.

    Example:
        await RedisManager.initialize()
        cache = RedisManager.create_cache()
        mutex = RedisManager.create_mutex(cache)
        ...
        await RedisManager.cleanup(mutex)
    """

    _initialized: bool = False
    _alias: str = "default"

    @classmethod
    async def initialize(
        cls,
        redis_url: str | None = None,
        max_connections: int | None = None,
        cluster: bool | None = None,
        *,
        alias: str = "default",
    ) -> None:
        """
        Set up the Redis client and verify it answers.

        Args:
            redis_url: Redis connection URL (defaults to settings.redis_url)
            max_connections: Pool size (defaults to settings.redis_max_connections)
            cluster: Use a cluster client (defaults to settings.redis_cluster)
            alias: RedisClient alias to register the client under
        """
        if cls._initialized:
            logger.info("Redis already initialized - skipping")
            return

        url = redis_url or settings.redis_url
        connections = max_connections or settings.redis_max_connections
        use_cluster = settings.redis_cluster if cluster is None else cluster

        try:
            logger.info(
                f"Setting up Redis from {url} (max_connections: {connections}, cluster: {use_cluster})"
            )
            RedisClient.setup(
                url, alias=alias, max_connections=connections, cluster=use_cluster
            )
            await RedisClient.get(alias)
            cls._alias = alias
            cls._initialized = True
            logger.info(f"✅ Redis ready ({alias})")
        except Exception as e:
            logger.error(f"❌ Redis initialization failed: {e}", exc_info=True)
            raise

    @classmethod
    def is_initialized(cls) -> bool:
        """Check if Redis is initialized."""
        return cls._initialized

    @classmethod
    async def get_health_status(cls) -> dict[str, Any]:
        """
        Get health status of the Redis client for monitoring.

        Returns:
            Dictionary with initialization status, alias and ping result
        """
        health_status: dict[str, Any] = {
            "initialized": cls._initialized,
            "alias": cls._alias,
        }
        if not cls._initialized:
            health_status["status"] = "unhealthy"
            health_status["error"] = "Redis not initialized"
            return health_status

        try:
            await RedisClient.get(cls._alias)
            health_status["status"] = "healthy"
            health_status["error"] = None
        except Exception as e:
            health_status["status"] = "unhealthy"
            health_status["error"] = str(e)
        return health_status

    @classmethod
    def create_store(cls) -> RedisStore:
        """
        Build a RedisStore on the managed client.

        Raises:
            RuntimeError: If Redis not initialized
        """
        if not cls._initialized:
            raise RuntimeError("RedisManager not initialized. Call initialize() first.")
        return RedisStore(RedisClient.get_nowait(cls._alias))

    @classmethod
    def create_cache(cls, **options: Any) -> Cache:
        """Build a Cache on the managed client using settings defaults."""
        options.setdefault("key_prefix", settings.cache_key_prefix)
        options.setdefault("default_ttl", settings.cache_default_ttl)
        return Cache(cls.create_store(), **options)

    @classmethod
    def create_mutex(cls, cache: Cache | None = None, **options: Any) -> Mutex:
        """Build a Mutex on the given cache, or on a fresh one."""
        return Mutex(cache or cls.create_cache(), **options)

    @classmethod
    async def cleanup(cls, *mutexes: Mutex) -> None:
        """
        Clean shutdown: release held locks, then close the client.

        Should be called during application shutdown.
        """
        for mutex in mutexes:
            await mutex.close()

        if not cls._initialized:
            logger.info("Redis not initialized, skipping cleanup")
            return

        try:
            logger.info("Shutting down Redis...")
            await RedisClient.close(cls._alias)
            cls._initialized = False
            logger.info("Redis shut down successfully")
        except Exception as e:
            logger.error(f"Error during Redis cleanup: {e}", exc_info=True)
            raise
