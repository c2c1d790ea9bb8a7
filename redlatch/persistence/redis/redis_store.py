"""
Redis implementation of IStore on top of `redis.asyncio`.

Works with both a single-node ``Redis`` client and a ``RedisCluster``
client. On a cluster, MSET/MSETNX require every key of a batch to hash to
the same slot; use hash tags (``{tag}:key``) for keys that are written
together.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager

from redis.exceptions import RedisError

from ...domain.interfaces.store_interface import (
    IStore,
    SetOp,
    StoreError,
    Value,
    check_ttl,
)
from ...domain.responses import to_bool
from .redis_client import RedisLike

logger = logging.getLogger("RedisStore")

# Lua script for atomic check-and-delete (owner check + DEL)
DELETE_IF_EQUALS_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""


@contextmanager
def _translate_errors(command: str, key: str) -> Iterator[None]:
    try:
        yield
    except (RedisError, UnicodeDecodeError) as e:
        logger.error(f"Redis {command} error for key '{key}': {e}", exc_info=True)
        raise StoreError(f"Redis {command} failed for key '{key}': {e}", e) from e


def _first(keys: Sequence[str] | Mapping[str, Value]) -> str:
    for key in keys:
        return f"{key}..."
    return ""


class RedisStore(IStore):
    """
    IStore backed by a redis-py asyncio client.

    The client is injected and never closed here; its lifecycle belongs to
    RedisClient/RedisManager.

    Example:
        client = await RedisClient.get()
        store = RedisStore(client)
        await store.set_if_absent("lock:report", token, ttl=30)
    """

    def __init__(self, client: RedisLike):
        self._client = client

    @property
    def client(self) -> RedisLike:
        return self._client

    async def exists(self, key: str) -> bool:
        with _translate_errors("EXISTS", key):
            return to_bool(await self._client.exists(key))

    async def get(self, key: str) -> Value | None:
        with _translate_errors("GET", key):
            return await self._client.get(key)

    async def get_many(self, keys: Sequence[str]) -> dict[str, Value | None]:
        keys = list(keys)
        if not keys:
            return {}
        with _translate_errors("MGET", _first(keys)):
            values = await self._client.mget(keys)
        # MGET answers positionally, one slot per requested key
        return dict(zip(keys, values, strict=True))

    async def set(self, key: str, value: Value, ttl: int = 0) -> bool:
        check_ttl(ttl)
        with _translate_errors("SET", key):
            if ttl == 0:
                return to_bool(await self._client.set(key, value))
            return to_bool(await self._client.set(key, value, ex=ttl))

    async def set_if_absent(self, key: str, value: Value, ttl: int = 0) -> bool:
        check_ttl(ttl)
        with _translate_errors("SET NX", key):
            # SET NX answers None when the key already exists
            return to_bool(
                await self._client.set(key, value, ex=ttl or None, nx=True)
            )

    async def set_many(self, mapping: Mapping[str, Value]) -> bool:
        if not mapping:
            return True
        with _translate_errors("MSET", _first(mapping)):
            return to_bool(await self._client.mset(dict(mapping)))

    async def set_many_if_absent(self, mapping: Mapping[str, Value]) -> set[str]:
        if not mapping:
            return set()
        with _translate_errors("MSETNX", _first(mapping)):
            written = to_bool(await self._client.msetnx(dict(mapping)))
        # MSETNX is all-or-nothing: a refusal means no key was written
        return set() if written else set(mapping)

    async def delete(self, key: str) -> bool:
        with _translate_errors("DEL", key):
            return to_bool(await self._client.delete(key))

    async def delete_if_equals(self, key: str, expected: Value) -> bool:
        with _translate_errors("EVAL check-and-delete", key):
            return to_bool(
                await self._client.eval(DELETE_IF_EQUALS_SCRIPT, 1, key, expected)
            )

    async def get_ttl(self, key: str) -> int:
        with _translate_errors("TTL", key):
            return int(await self._client.ttl(key))

    async def flush(self) -> bool:
        with _translate_errors("FLUSHDB", "*"):
            return to_bool(await self._client.flushdb())

    async def run_pipeline(self, ops: Sequence[SetOp]) -> list[bool]:
        if not ops:
            return []
        for op in ops:
            check_ttl(op.ttl)

        with _translate_errors("pipeline SET", _first([op.key for op in ops])):
            async with self._client.pipeline(transaction=False) as pipe:
                for op in ops:
                    pipe.set(
                        op.key,
                        op.value,
                        ex=op.ttl or None,
                        nx=op.only_if_absent,
                    )
                # Per-command errors come back in place instead of aborting the batch
                results = await pipe.execute(raise_on_error=False)

        outcome = []
        for op, result in zip(ops, results, strict=True):
            if isinstance(result, Exception):
                logger.warning(f"Pipelined SET failed for key '{op.key}': {result}")
                outcome.append(False)
            else:
                outcome.append(to_bool(result))
        return outcome
