"""Tests for the in-memory store."""

import asyncio
from typing import get_type_hints

import pytest

from redlatch.domain import IStore, SetOp
from redlatch.persistence.memory import MemoryStore


class TestStoreAnnotations:
    def test_batch_add_returns_builtin_set(self):
        # both classes define a set() method before annotating with set[str]
        assert get_type_hints(IStore.set_many_if_absent)["return"] == set[str]
        assert get_type_hints(MemoryStore.set_many_if_absent)["return"] == set[str]


@pytest.mark.asyncio
class TestMemoryStoreBasics:
    async def test_set_without_ttl_never_expires(self, store):
        assert await store.set("k", "v", 0)
        assert await store.get("k") == "v"
        assert await store.get_ttl("k") == -1

    async def test_missing_key(self, store):
        assert await store.get("nope") is None
        assert not await store.exists("nope")
        assert await store.get_ttl("nope") == -2

    async def test_set_with_ttl_expires(self, store):
        await store.set("k", "v", 1)
        assert await store.get_ttl("k") in (0, 1)
        await asyncio.sleep(1.1)
        assert await store.get("k") is None
        assert not await store.exists("k")

    async def test_set_if_absent(self, store):
        assert await store.set_if_absent("k", "first")
        assert not await store.set_if_absent("k", "second")
        assert await store.get("k") == "first"

    async def test_set_if_absent_after_expiry(self, store):
        await store.set_if_absent("k", "first", 1)
        await asyncio.sleep(1.1)
        assert await store.set_if_absent("k", "second", 1)

    async def test_get_many_keeps_requested_keys(self, store):
        await store.set("a", "1")
        await store.set("c", "3")
        assert await store.get_many(["a", "b", "c"]) == {"a": "1", "b": None, "c": "3"}

    async def test_delete_if_equals(self, store):
        await store.set("lock", "token-a")
        assert not await store.delete_if_equals("lock", "token-b")
        assert await store.get("lock") == "token-a"
        assert await store.delete_if_equals("lock", "token-a")
        assert not await store.exists("lock")

    async def test_delete_and_flush(self, store):
        await store.set("a", "1")
        await store.set("b", "2")
        assert await store.delete("a")
        assert not await store.delete("a")
        assert await store.flush()
        assert not await store.exists("b")

    async def test_negative_ttl_rejected(self, store):
        with pytest.raises(ValueError):
            await store.set("k", "v", -1)


@pytest.mark.asyncio
class TestMemoryStoreBatches:
    async def test_set_many_if_absent_is_all_or_nothing(self, store):
        await store.set("k1", "old")

        failed = await store.set_many_if_absent({"k1": "v1", "k2": "v2"})

        assert failed == {"k1", "k2"}
        assert await store.get("k1") == "old"
        assert not await store.exists("k2")

    async def test_set_many_if_absent_success(self, store):
        assert await store.set_many_if_absent({"k1": "v1", "k2": "v2"}) == set()
        assert await store.get_many(["k1", "k2"]) == {"k1": "v1", "k2": "v2"}

    async def test_pipeline_ops_are_independent(self, store):
        await store.set("k1", "old")

        results = await store.run_pipeline(
            [
                SetOp("k1", "v1", ttl=10, only_if_absent=True),
                SetOp("k2", "v2", ttl=10, only_if_absent=True),
                SetOp("k1", "v3", ttl=10),
            ]
        )

        assert results == [False, True, True]
        # later ops see the effects of earlier ones, in order
        assert await store.get("k1") == "v3"
        assert await store.get("k2") == "v2"
