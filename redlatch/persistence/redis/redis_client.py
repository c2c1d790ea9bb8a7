# redlatch/persistence/redis/redis_client.py

"""
Redis helper that is **fork-safe** and asyncio-native.

Why so elaborate?
-----------------
• Gunicorn / Uvicorn workers often `fork()` after import time.
  Re-using a parent-process connection in the child can leak file
  descriptors and interleave replies between processes.

• Each worker therefore needs its *own* connection-pool.
"""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import ClassVar

from redis.asyncio import ConnectionPool, Redis
from redis.asyncio.cluster import RedisCluster

log = logging.getLogger("RedisClient")

RedisLike = Redis | RedisCluster


class RedisClient:
    """
    Fork-safe, asyncio-native registry of Redis clients keyed by alias.

    Each alias is either a single-node client backed by its own
    ConnectionPool or a cluster client. Every worker process keeps its own
    clients to avoid post-fork descriptor reuse.
    """

    _pools: ClassVar[dict[str, ConnectionPool]] = {}
    _clients: ClassVar[dict[str, RedisLike]] = {}
    _pid: ClassVar[int | None] = None

    # ---------- life-cycle --------------------------------------------------

    @classmethod
    def setup(
        cls,
        url: str,
        *,
        alias: str = "default",
        max_connections: int = 64,
        cluster: bool = False,
        decode_responses: bool = False,
    ) -> None:
        """
        Set up a client for ``alias``.

        Args:
            url: Redis URL (e.g., "redis://localhost:6379/0")
            alias: Name the client is registered under
            max_connections: Max connections of the pool
            cluster: Build a RedisCluster client instead of a single-node one
            decode_responses: Return str instead of bytes (values are bytes by default)

        Example:
            RedisClient.setup("redis://localhost:6379/0")
            RedisClient.setup("redis://cache:7000", alias="cache", cluster=True)
        """
        pid = os.getpid()
        if cls._pid is None:
            cls._pid = pid
        elif cls._pid != pid:
            # process forked – discard inherited clients
            cls._pools.clear()
            cls._clients.clear()
            cls._pid = pid

        if alias in cls._clients:
            log.debug(f"Redis client '{alias}' already exists in PID {pid}")
            return

        log.info(
            f"Initialising Redis {'cluster' if cluster else 'pool'} '{alias}' in PID {pid} ({url})"
        )
        if cluster:
            cls._clients[alias] = RedisCluster.from_url(
                url,
                decode_responses=decode_responses,
                max_connections=max_connections,
            )
            return

        pool = ConnectionPool.from_url(
            url,
            decode_responses=decode_responses,
            encoding="utf-8",
            max_connections=max_connections,
        )
        cls._pools[alias] = pool
        cls._clients[alias] = Redis(connection_pool=pool)

    @classmethod
    async def close(cls, alias: str | None = None) -> None:
        """Close one or all Redis clients for this process."""
        pid = os.getpid()
        if cls._pid != pid:
            log.debug("No Redis client to close for PID %s", pid)
            return

        aliases = [alias] if alias else list(cls._clients.keys())
        for a in aliases:
            client = cls._clients.pop(a, None)
            pool = cls._pools.pop(a, None)
            if client is None:
                continue
            log.info("Closing Redis client '%s' in PID %s", a, pid)
            await client.aclose()
            if pool:
                await pool.disconnect()
        if not cls._clients:
            cls._pid = None

    # ---------- access helpers ---------------------------------------------

    @classmethod
    def is_configured(cls, alias: str = "default") -> bool:
        return alias in cls._clients and cls._pid == os.getpid()

    @classmethod
    def get_nowait(cls, alias: str = "default") -> RedisLike:
        """Return the client for alias without a health check."""
        if not cls.is_configured(alias):
            raise RuntimeError(f"RedisClient must be set up for alias '{alias}' first.")
        return cls._clients[alias]

    @classmethod
    async def get(cls, alias: str = "default") -> RedisLike:
        """Return the Redis client for the given alias."""
        client = cls._clients.get(alias)
        if client is None or cls._pid != os.getpid():
            log.error("RedisClient.get() called before setup() in this process.")
            raise RuntimeError(f"RedisClient must be set up for alias '{alias}' first.")
        # quick health check – keep it cheap
        try:
            await client.ping()
            log.debug("Redis PING successful for '%s'.", alias)
        except Exception as exc:
            log.error("Redis ping failed for '%s': %s", alias, exc, exc_info=True)
            raise
        return client

    @classmethod
    @asynccontextmanager
    async def connection(cls, alias: str = "default") -> AsyncIterator[RedisLike]:
        """
        Async context manager for a Redis client.

        Usage::

            async with RedisClient.connection() as r:
                await r.set("key", "value")
        """
        # Pool handles connection lifecycle - no explicit cleanup needed
        client = await cls.get(alias)
        yield client
