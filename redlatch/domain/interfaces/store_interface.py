"""
Store interface definition for redlatch.

IStore is the minimal capability the cache and the mutex need from a
Redis-like backend. Concrete stores (Redis single node, Redis cluster,
in-memory) implement it; nothing above this layer knows which one is active.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

Value = str | bytes


class StoreError(Exception):
    """Raised when the backend or the transport to it fails."""

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause


@dataclass(frozen=True)
class SetOp:
    """A deferred SET executed as part of a pipeline."""

    key: str
    value: Value
    ttl: int = 0
    only_if_absent: bool = False


def check_ttl(ttl: int) -> int:
    """Validate a TTL in seconds; 0 means the key never expires."""
    if ttl < 0:
        raise ValueError(f"ttl must be >= 0, got {ttl}")
    return ttl


class IStore(ABC):
    """
    Capability interface over a Redis-like key/value backend.

    All methods raise StoreError on backend or transport failure.
    A ttl of 0 always means "no expiry".
    """

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Check whether key exists."""

    @abstractmethod
    async def get(self, key: str) -> Value | None:
        """Get the value stored at key, or None if absent."""

    @abstractmethod
    async def get_many(self, keys: Sequence[str]) -> dict[str, Value | None]:
        """
        Get several keys in one round trip.

        Returns:
            Mapping whose keys are exactly ``keys``; absent keys map to None
        """

    @abstractmethod
    async def set(self, key: str, value: Value, ttl: int = 0) -> bool:
        """Unconditionally set key, optionally expiring after ttl seconds."""

    @abstractmethod
    async def set_if_absent(self, key: str, value: Value, ttl: int = 0) -> bool:
        """
        Atomically set key only if it does not exist yet.

        Returns:
            True if the key was written, False if it already existed
        """

    @abstractmethod
    async def set_many(self, mapping: Mapping[str, Value]) -> bool:
        """Set several keys at once without expiry (MSET)."""

    @abstractmethod
    async def set_many_if_absent(self, mapping: Mapping[str, Value]) -> set[str]:
        """
        Set several keys only if none of them exist (MSETNX).

        All-or-nothing: either every key is written or none is.

        Returns:
            The keys that were NOT written (empty on success)
        """

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete key. Returns True if a key was removed."""

    @abstractmethod
    async def delete_if_equals(self, key: str, expected: Value) -> bool:
        """
        Atomically delete key only if its current value equals expected.

        Returns:
            True if the key was removed
        """

    @abstractmethod
    async def get_ttl(self, key: str) -> int:
        """
        Remaining time to live of key in seconds.

        Returns:
            TTL in seconds, -1 if the key has no expiry, -2 if it does not exist
        """

    @abstractmethod
    async def flush(self) -> bool:
        """Remove every key of the selected database."""

    @abstractmethod
    async def run_pipeline(self, ops: Sequence[SetOp]) -> list[bool]:
        """
        Execute ops in one round trip, in order, without a transaction.

        Each op succeeds or fails on its own.

        Returns:
            One boolean per op, in submission order
        """
