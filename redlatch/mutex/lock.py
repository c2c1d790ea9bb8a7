"""
Single-instance Redis distributed lock (SET NX EX + owner-checked release).

A Lock is one acquisition attempt on one key:

    UNACQUIRED --acquire()--> HELD --release()--> RELEASED

RELEASED is terminal. A lock that is never released expires in the backend
after ``ttl`` seconds; the Lock object itself runs no timer.

See https://redis.io/docs/latest/develop/use/patterns/distributed-locks/
"""

import asyncio
import random
import time
import uuid
from enum import Enum

from ..core.logging.logger import get_logger
from ..domain.interfaces.store_interface import IStore, StoreError, check_ttl

logger = get_logger(__name__)

# Cap for the backoff exponent so the delay maths stays in float range
_MAX_BACKOFF_EXPONENT = 16


class LockState(str, Enum):
    UNACQUIRED = "unacquired"
    HELD = "held"
    RELEASED = "released"


class Lock:
    """
    Distributed lock on a single backend key.

    The token is a fresh uuid4 per Lock instance and is the value stored in
    the backend while the lock is held. Release only deletes the key while
    it still holds this token, so a holder whose lock expired can never
    delete a lock that somebody else acquired afterwards.

    Usage:
        lock = Lock(store, "app:lock:report", ttl=30)
        if await lock.acquire(timeout=5):
            try:
                await build_report()
            finally:
                await lock.release()
    """

    def __init__(
        self,
        store: IStore,
        key: str,
        ttl: int = 0,
        *,
        name: str | None = None,
        retry_delay: float = 0.1,
        retry_max_delay: float = 1.0,
        jitter: float = 0.1,
    ):
        """
        Args:
            store: Backend holding the lock key
            key: Fully qualified backend key
            ttl: Seconds after which the backend frees the lock (0 = never)
            name: Logical lock name, defaults to key
            retry_delay: First delay between attempts while blocking
            retry_max_delay: Upper bound for the exponential backoff
            jitter: Random +/- fraction applied to each delay
        """
        if retry_delay <= 0 or retry_max_delay < retry_delay:
            raise ValueError("retry delays must satisfy 0 < retry_delay <= retry_max_delay")
        self.store = store
        self.key = key
        self.name = name or key
        self.ttl = check_ttl(ttl)
        self.retry_delay = retry_delay
        self.retry_max_delay = retry_max_delay
        self.jitter = jitter

        self.token = uuid.uuid4().hex
        self._state = LockState.UNACQUIRED
        self._acquired_at: float | None = None

    def __repr__(self) -> str:
        return f"Lock(key={self.key!r}, token={self.token[:8]}, state={self._state.value})"

    @property
    def state(self) -> LockState:
        return self._state

    @property
    def held(self) -> bool:
        return self._state is LockState.HELD

    async def acquire(self, timeout: float = 0) -> bool:
        """
        Acquire the lock, waiting up to ``timeout`` seconds.

        With timeout 0 a single attempt is made. Backend errors count as
        failed attempts; they are logged and never raised.

        Returns:
            True if the lock is now held by this instance
        """
        if timeout < 0:
            raise ValueError(f"timeout must be >= 0, got {timeout}")
        if self._state is LockState.HELD:
            return True
        if self._state is LockState.RELEASED:
            logger.warning(f"Cannot re-acquire released lock: key={self.key}")
            return False

        start = time.monotonic()
        deadline = start + timeout
        attempt = 0

        while True:
            attempt += 1
            if await self._try_acquire():
                self._state = LockState.HELD
                self._acquired_at = time.monotonic()
                logger.info(
                    f"Lock acquired: key={self.key}, id={self.token[:8]}, "
                    f"attempts={attempt}, elapsed={self._acquired_at - start:.3f}s"
                )
                return True

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                if timeout:
                    logger.warning(
                        f"Lock acquisition timeout: key={self.key}, timeout={timeout}s, attempts={attempt}"
                    )
                else:
                    logger.debug(f"Lock busy (non-blocking): key={self.key}")
                return False

            delay = min(
                self.retry_delay * 2 ** min(attempt - 1, _MAX_BACKOFF_EXPONENT),
                self.retry_max_delay,
            )
            delay += delay * self.jitter * random.uniform(-1.0, 1.0)
            delay = min(max(delay, 0.0), remaining)

            logger.debug(
                f"Lock busy, retrying in {delay:.3f}s: key={self.key}, attempt={attempt}"
            )
            await asyncio.sleep(delay)

    async def _try_acquire(self) -> bool:
        try:
            return await self.store.set_if_absent(self.key, self.token, self.ttl)
        except StoreError as e:
            logger.error(f"Error acquiring lock: key={self.key}, error={e}")
            return False

    async def release(self) -> bool:
        """
        Release the lock if this instance still owns it.

        Returns:
            True if the backend key was deleted. False if the lock was not
            held, had expired (possibly re-acquired by another holder) or the
            backend failed.
        """
        if self._state is not LockState.HELD:
            logger.debug(f"Release of non-held lock ignored: key={self.key}, state={self._state.value}")
            self._state = LockState.RELEASED
            return False

        try:
            released = await self.store.delete_if_equals(self.key, self.token)
        except StoreError as e:
            logger.error(f"Error releasing lock: key={self.key}, error={e}")
            released = False
        finally:
            self._state = LockState.RELEASED

        if released:
            hold_time = time.monotonic() - self._acquired_at if self._acquired_at else 0.0
            logger.info(
                f"Lock released: key={self.key}, id={self.token[:8]}, hold_time={hold_time:.3f}s"
            )
        else:
            logger.warning(
                f"Lock release failed (not owner or expired): key={self.key}, id={self.token[:8]}"
            )
        return released

    async def is_locked(self) -> bool:
        """Check whether any holder currently owns the key."""
        return await self.store.exists(self.key)
