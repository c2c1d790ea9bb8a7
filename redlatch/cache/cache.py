"""
Key-value cache on top of an IStore.

Cache adds what a raw store does not know about: key prefixing and
normalisation, the "ttl 0 means forever" rule with a configurable default,
optional value serialisation, and batch writes that report which keys were
not written.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Hashable, Iterable, Mapping
from typing import Any

from pydantic import BaseModel

from ..domain.interfaces.store_interface import IStore, SetOp, Value, check_ttl
from ..mutex.lock import Lock
from .key_factory import KeyFactory
from .serde import dumps, loads

logger = logging.getLogger("Cache")


class Cache:
    """
    Cache facade over a Redis-like store.

    Single-key operations take any logical key: strings are used verbatim,
    other values are hashed (see KeyFactory). Batch operations key their
    inputs and results by the logical key, so those keys must be hashable.

    Example:
        cache = Cache(RedisStore(client), key_prefix="shop:", default_ttl=300)
        await cache.set("cart:42", payload)
        added = await cache.add("welcome-mail:42", "1", ttl=86400)
        failed = await cache.add_many({"a": "1", "b": "2"}, ttl=60)
    """

    def __init__(
        self,
        store: IStore,
        *,
        key_prefix: str = "",
        default_ttl: int = 0,
        serialize: bool = False,
    ):
        self.store = store
        self.keys = KeyFactory(prefix=key_prefix)
        self.default_ttl = check_ttl(default_ttl)
        self.serialize = serialize

    @property
    def key_prefix(self) -> str:
        return self.keys.prefix

    def build_key(self, key: Any) -> str:
        """Build the physical key for a logical key."""
        return self.keys.cache(key)

    # ---- helpers ----------------------------------------------------------
    def _ttl(self, ttl: int | None) -> int:
        return self.default_ttl if ttl is None else check_ttl(ttl)

    def _encode(self, value: Any) -> Value:
        return dumps(value) if self.serialize else value

    def _decode(self, raw: Value | None, model: type[BaseModel] | None) -> Any:
        if not self.serialize or raw is None:
            return raw
        return loads(raw, model)

    def _physical(self, keys: Iterable[Hashable]) -> dict[str, Hashable]:
        return {self.build_key(key): key for key in keys}

    # ---- reads ------------------------------------------------------------
    async def exists(self, key: Any) -> bool:
        return await self.store.exists(self.build_key(key))

    async def get(self, key: Any, model: type[BaseModel] | None = None) -> Any:
        """Get a value, or None if the key is absent or expired."""
        raw = await self.store.get(self.build_key(key))
        return self._decode(raw, model)

    async def get_many(
        self, keys: Iterable[Hashable], model: type[BaseModel] | None = None
    ) -> dict[Hashable, Any]:
        """
        Get several values in one round trip.

        Returns:
            Mapping keyed by exactly the requested keys; absent keys map to None
        """
        physical = self._physical(keys)
        if not physical:
            return {}
        raw = await self.store.get_many(list(physical))
        return {
            logical: self._decode(raw.get(key), model)
            for key, logical in physical.items()
        }

    # ---- writes -----------------------------------------------------------
    async def set(self, key: Any, value: Any, ttl: int | None = None) -> bool:
        """Store value unconditionally. ttl 0 keeps it forever."""
        return await self.store.set(
            self.build_key(key), self._encode(value), self._ttl(ttl)
        )

    async def set_many(
        self, entries: Mapping[Hashable, Any], ttl: int | None = None
    ) -> set[Hashable]:
        """
        Store several values.

        Without expiry this is a single MSET. With a ttl, one SET EX per key is
        pipelined since MSET cannot carry per-key expiry.

        Returns:
            The logical keys that were not written
        """
        if not entries:
            return set()
        ttl = self._ttl(ttl)
        payload = {self.build_key(k): self._encode(v) for k, v in entries.items()}
        physical = self._physical(entries)

        if ttl == 0:
            if await self.store.set_many(payload):
                return set()
            logger.warning(f"MSET refused for {len(payload)} keys")
            return set(entries)

        results = await self.store.run_pipeline(
            [SetOp(key, value, ttl) for key, value in payload.items()]
        )
        return {physical[key] for key, ok in zip(payload, results) if not ok}

    async def add(self, key: Any, value: Any, ttl: int | None = None) -> bool:
        """
        Store value only if the key does not exist yet.

        Returns:
            True if written, False if the key was already present
        """
        return await self.store.set_if_absent(
            self.build_key(key), self._encode(value), self._ttl(ttl)
        )

    async def add_many(
        self, entries: Mapping[Hashable, Any], ttl: int | None = None
    ) -> set[Hashable]:
        """
        Store several values only where the keys do not exist yet.

        The two paths give different guarantees:

        * ttl 0: one MSETNX. All-or-nothing across the batch, so if any key
          already exists nothing is written and every key is reported.
        * ttl > 0: one SET NX EX per key, pipelined. Each key succeeds or
          fails on its own; only the keys that already existed are reported.

        Returns:
            The logical keys that were not written
        """
        if not entries:
            return set()
        ttl = self._ttl(ttl)
        payload = {self.build_key(k): self._encode(v) for k, v in entries.items()}
        physical = self._physical(entries)

        if ttl == 0:
            failed = await self.store.set_many_if_absent(payload)
            return {physical[key] for key in failed}

        results = await self.store.run_pipeline(
            [
                SetOp(key, value, ttl, only_if_absent=True)
                for key, value in payload.items()
            ]
        )
        return {physical[key] for key, ok in zip(payload, results) if not ok}

    async def get_or_set(
        self,
        key: Any,
        factory: Callable[[], Any | Awaitable[Any]],
        ttl: int | None = None,
        model: type[BaseModel] | None = None,
    ) -> Any:
        """
        Return the cached value, computing and storing it on a miss.

        ``factory`` may be a plain callable or a coroutine function.
        """
        value = await self.get(key, model)
        if value is not None:
            return value

        value = factory()
        if inspect.isawaitable(value):
            value = await value
        if not await self.set(key, value, ttl):
            logger.warning(f"Computed value for '{self.build_key(key)}' was not cached")
        return value

    async def delete(self, key: Any) -> bool:
        return await self.store.delete(self.build_key(key))

    async def flush(self) -> bool:
        """Delete every key in the store's database, not only prefixed ones."""
        return await self.store.flush()

    # ---- locking ----------------------------------------------------------
    def lock(self, key: str, ttl: int = 0, **options: Any) -> Lock:
        """
        Create an unacquired Lock on this cache's store.

        ``key`` is used as the backend key as-is; the cache key prefix is
        not applied. Extra keyword options are passed to Lock.
        """
        return Lock(self.store, key, ttl, **options)
