"""
In-memory IStore with TTL support.

Useful for tests, local development and single-process deployments. All
operations are atomic with respect to each other: every read-modify-write
happens under one asyncio.Lock and never awaits while holding it.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Mapping, Sequence

from ...domain.interfaces.store_interface import IStore, SetOp, Value, check_ttl

logger = logging.getLogger("MemoryStore")


class MemoryStore(IStore):
    """
    Process-local store with Redis-like expiry semantics.

    Storage Structure:
        {key: (value, expires_at)}

    where ``expires_at`` is a ``time.monotonic()`` deadline or None for keys
    that never expire. Expired keys are evicted lazily when touched.
    """

    def __init__(self):
        self._data: dict[str, tuple[Value, float | None]] = {}
        self._lock = asyncio.Lock()

    # ---- internal helpers (call with self._lock held) ---------------------
    def _expires_at(self, ttl: int) -> float | None:
        return time.monotonic() + ttl if ttl else None

    def _live(self, key: str) -> tuple[Value, float | None] | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        _, expires_at = entry
        if expires_at is not None and time.monotonic() >= expires_at:
            del self._data[key]
            return None
        return entry

    def _write(self, op: SetOp) -> bool:
        check_ttl(op.ttl)
        if op.only_if_absent and self._live(op.key) is not None:
            return False
        self._data[op.key] = (op.value, self._expires_at(op.ttl))
        return True

    # ---- IStore -----------------------------------------------------------
    async def exists(self, key: str) -> bool:
        async with self._lock:
            return self._live(key) is not None

    async def get(self, key: str) -> Value | None:
        async with self._lock:
            entry = self._live(key)
            return entry[0] if entry else None

    async def get_many(self, keys: Sequence[str]) -> dict[str, Value | None]:
        async with self._lock:
            result = {}
            for key in keys:
                entry = self._live(key)
                result[key] = entry[0] if entry else None
            return result

    async def set(self, key: str, value: Value, ttl: int = 0) -> bool:
        async with self._lock:
            return self._write(SetOp(key, value, ttl))

    async def set_if_absent(self, key: str, value: Value, ttl: int = 0) -> bool:
        async with self._lock:
            return self._write(SetOp(key, value, ttl, only_if_absent=True))

    async def set_many(self, mapping: Mapping[str, Value]) -> bool:
        async with self._lock:
            for key, value in mapping.items():
                self._data[key] = (value, None)
            return True

    async def set_many_if_absent(self, mapping: Mapping[str, Value]) -> set[str]:
        async with self._lock:
            if any(self._live(key) is not None for key in mapping):
                return set(mapping)
            for key, value in mapping.items():
                self._data[key] = (value, None)
            return set()

    async def delete(self, key: str) -> bool:
        async with self._lock:
            if self._live(key) is None:
                return False
            del self._data[key]
            return True

    async def delete_if_equals(self, key: str, expected: Value) -> bool:
        async with self._lock:
            entry = self._live(key)
            if entry is None or entry[0] != expected:
                return False
            del self._data[key]
            return True

    async def get_ttl(self, key: str) -> int:
        async with self._lock:
            entry = self._live(key)
            if entry is None:
                return -2
            _, expires_at = entry
            if expires_at is None:
                return -1
            return max(0, round(expires_at - time.monotonic()))

    async def flush(self) -> bool:
        async with self._lock:
            count = len(self._data)
            self._data.clear()
        logger.debug(f"Flushed {count} keys from memory store")
        return True

    async def run_pipeline(self, ops: Sequence[SetOp]) -> list[bool]:
        for op in ops:
            check_ttl(op.ttl)
        async with self._lock:
            return [self._write(op) for op in ops]
