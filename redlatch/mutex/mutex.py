"""
Named distributed mutex backed by the cache's store.

Mutex maps logical lock names to Lock instances. Keys are namespaced with a
prefix (``"<app_id>:lock"`` unless configured) so several applications can
share one backend:

    mutex = Mutex(cache, expire=30)
    if await mutex.acquire("nightly-report", timeout=10):
        try:
            await build_report()
        finally:
            await mutex.release("nightly-report")

    # or
    async with mutex.hold("nightly-report", timeout=10):
        await build_report()

Exclusion across processes and hosts comes from the backend. The table of
locks held by this process is guarded by a threading.Lock; its critical
sections never await, so the guard is safe to share between threads and
event loops.
"""

from __future__ import annotations

import threading
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from ..cache.key_factory import KeyFactory
from ..core.config.settings import settings
from ..core.logging.logger import get_logger
from ..domain.interfaces.store_interface import check_ttl
from .lock import Lock

if TYPE_CHECKING:
    from ..cache.cache import Cache

logger = get_logger(__name__)


class LockNotAcquiredError(Exception):
    """Raised by Mutex.hold() when the lock could not be acquired in time."""


class Mutex:
    """
    Process-level manager of named distributed locks.

    Attributes:
        expire: Seconds after which every lock created here auto-expires
        auto_release: Whether close() releases the locks still held
    """

    def __init__(
        self,
        cache: Cache,
        *,
        key_prefix: str | None = None,
        expire: int | None = None,
        auto_release: bool | None = None,
        retry_delay: float = 0.1,
        retry_max_delay: float = 1.0,
    ):
        self.cache = cache
        self.keys = KeyFactory(
            prefix=settings.mutex_key_prefix if key_prefix is None else key_prefix
        )
        self.expire = check_ttl(settings.mutex_expire if expire is None else expire)
        self.auto_release = (
            settings.mutex_auto_release if auto_release is None else auto_release
        )
        self.retry_delay = retry_delay
        self.retry_max_delay = retry_max_delay

        self._locks: dict[str, Lock] = {}
        self._guard = threading.Lock()

    @property
    def key_prefix(self) -> str:
        return self.keys.prefix

    def lock_name(self, name: str) -> str:
        """Fully qualified backend key for a lock name."""
        return self.keys.lock(name)

    async def acquire(self, name: str, timeout: float = 0) -> bool:
        """
        Acquire a lock by name.

        Args:
            name: Lock name, unique within the key prefix
            timeout: Seconds to wait for the lock. 0 returns immediately

        Returns:
            True if this process now holds the lock
        """
        return await self._acquire(name, timeout) is not None

    async def _acquire(self, name: str, timeout: float) -> Lock | None:
        key = self.lock_name(name)
        lock = self.cache.lock(
            key,
            self.expire,
            name=name,
            retry_delay=self.retry_delay,
            retry_max_delay=self.retry_max_delay,
        )
        acquired = await lock.acquire(timeout)

        with self._guard:
            current = self._locks.get(key)
            # A failed attempt must not hide a lock this process still holds
            if acquired or current is None or not current.held:
                self._locks[key] = lock
        return lock if acquired else None

    async def release(self, name: str) -> bool:
        """
        Release a lock previously acquired by this process.

        The table entry is dropped whatever the outcome.

        Returns:
            False if the lock is unknown here, expired or the backend failed
        """
        key = self.lock_name(name)
        with self._guard:
            lock = self._locks.pop(key, None)

        if lock is None:
            logger.debug(f"No lock to release for name '{name}' (key: '{key}')")
            return False
        return await lock.release()

    def is_acquired(self, name: str) -> bool:
        """Check if this process currently holds the named lock."""
        with self._guard:
            lock = self._locks.get(self.lock_name(name))
        return lock is not None and lock.held

    @property
    def acquired(self) -> list[str]:
        """Names of the locks currently held by this process."""
        with self._guard:
            return [lock.name for lock in self._locks.values() if lock.held]

    async def release_all(self) -> dict[str, bool]:
        """
        Release every lock this process holds.

        Returns:
            Release result per lock name
        """
        with self._guard:
            locks = [lock for lock in self._locks.values() if lock.held]
            self._locks.clear()

        results = {}
        for lock in locks:
            results[lock.name] = await lock.release()
        if results:
            logger.info(f"Released {sum(results.values())}/{len(results)} held locks")
        return results

    async def close(self) -> None:
        """Shutdown hook: release held locks when auto_release is enabled."""
        if self.auto_release:
            await self.release_all()

    @asynccontextmanager
    async def hold(self, name: str, timeout: float = 0) -> AsyncIterator[Lock]:
        """
        Hold a named lock for the duration of the block.

        Raises:
            LockNotAcquiredError: If the lock is not acquired within timeout
        """
        lock = await self._acquire(name, timeout)
        if lock is None:
            raise LockNotAcquiredError(
                f"Failed to acquire lock '{name}' within {timeout}s"
            )
        try:
            yield lock
        finally:
            if not await self.release(name):
                logger.warning(f"Lock '{name}' was no longer owned when the block ended")
