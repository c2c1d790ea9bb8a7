"""Tests for the named distributed mutex."""

import asyncio
import time

import pytest

from redlatch.cache import Cache
from redlatch.core.config.settings import settings
from redlatch.mutex import LockNotAcquiredError, Mutex


class TestMutexConfig:
    def test_defaults_from_settings(self, store):
        mutex = Mutex(Cache(store))

        assert mutex.expire == settings.mutex_expire
        assert mutex.lock_name("job") == f"{settings.mutex_key_prefix}:job"

    def test_custom_prefix(self, make_mutex):
        assert make_mutex(key_prefix="shop:lock").lock_name("job") == "shop:lock:job"

    def test_empty_prefix_keeps_separator(self, make_mutex):
        assert make_mutex(key_prefix="").lock_name("foo") == ":foo"

    def test_negative_expire_rejected(self, store):
        with pytest.raises(ValueError):
            Mutex(Cache(store), expire=-1)


@pytest.mark.asyncio
class TestMutexAcquire:
    async def test_acquire_twice_without_release(self, make_mutex):
        mutex = make_mutex()
        assert await mutex.acquire("foo", 0)

        started = time.monotonic()
        assert not await mutex.acquire("foo", 0)

        assert time.monotonic() - started < 0.5
        assert mutex.is_acquired("foo")

    async def test_lock_key_and_expiry(self, make_mutex, store):
        mutex = make_mutex(expire=30)
        await mutex.acquire("foo")

        assert await store.exists("test:lock:foo")
        assert 0 < await store.get_ttl("test:lock:foo") <= 30

    async def test_auto_expiry_frees_lock_for_other_process(self, make_mutex):
        first, second = make_mutex(expire=1), make_mutex(expire=1)
        assert await first.acquire("foo", 0)

        await asyncio.sleep(1.1)

        assert await second.acquire("foo", 0)

    async def test_blocking_acquire_waits_for_release(self, make_mutex):
        first, second = make_mutex(), make_mutex()
        await first.acquire("foo")

        async def release_later():
            await asyncio.sleep(0.1)
            return await first.release("foo")

        acquired, released = await asyncio.gather(second.acquire("foo", 2), release_later())

        assert released and acquired
        assert second.is_acquired("foo")

    async def test_different_names_are_independent(self, make_mutex):
        mutex = make_mutex()

        assert await mutex.acquire("a")
        assert await mutex.acquire("b")
        assert sorted(mutex.acquired) == ["a", "b"]


@pytest.mark.asyncio
class TestMutexRelease:
    async def test_release_after_acquire_through_cache(self, store):
        mutex = Mutex(Cache(store), key_prefix="app:lock")

        assert await mutex.acquire("foo", 0)
        assert mutex.acquired == ["foo"]
        assert await store.exists("app:lock:foo")
        assert await mutex.release("foo")
        assert not await store.exists("app:lock:foo")

    async def test_release(self, make_mutex, store):
        mutex = make_mutex()
        await mutex.acquire("foo")

        assert await mutex.release("foo")

        assert not mutex.is_acquired("foo")
        assert not await store.exists("test:lock:foo")
        assert await mutex.acquire("foo", 0)

    async def test_release_never_acquired(self, make_mutex):
        assert not await make_mutex().release("never")

    async def test_release_after_failed_acquire(self, make_mutex):
        first, second = make_mutex(), make_mutex()
        await first.acquire("foo")
        assert not await second.acquire("foo", 0)

        assert not await second.release("foo")
        assert not await second.release("foo")
        assert first.is_acquired("foo")

    async def test_expired_holder_does_not_release_new_holder(self, make_mutex, store):
        a, b = make_mutex(expire=1), make_mutex(expire=30)
        assert await a.acquire("foo")
        await asyncio.sleep(1.1)
        assert await b.acquire("foo", 0)

        assert not await a.release("foo")

        assert await store.exists("test:lock:foo")
        assert b.is_acquired("foo")
        assert await b.release("foo")

    async def test_failed_acquire_keeps_held_entry(self, make_mutex):
        mutex = make_mutex()
        assert await mutex.acquire("foo")
        assert not await mutex.acquire("foo", 0)

        assert await mutex.release("foo")

    async def test_release_all(self, make_mutex, store):
        mutex = make_mutex()
        await mutex.acquire("a")
        await mutex.acquire("b")

        assert await mutex.release_all() == {"a": True, "b": True}
        assert mutex.acquired == []
        assert not await store.exists("test:lock:a")

    async def test_close_respects_auto_release(self, make_mutex, store):
        keeper = make_mutex(auto_release=False)
        await keeper.acquire("kept")
        await keeper.close()
        assert await store.exists("test:lock:kept")

        releaser = make_mutex(auto_release=True)
        await releaser.acquire("freed")
        await releaser.close()
        assert not await store.exists("test:lock:freed")


@pytest.mark.asyncio
class TestMutexHold:
    async def test_hold_releases_on_exit(self, make_mutex, store):
        mutex = make_mutex()

        async with mutex.hold("job") as lock:
            assert lock.held
            assert await store.get("test:lock:job") == lock.token

        assert not await store.exists("test:lock:job")
        assert not mutex.is_acquired("job")

    async def test_hold_releases_on_error(self, make_mutex, store):
        mutex = make_mutex()

        with pytest.raises(RuntimeError):
            async with mutex.hold("job"):
                raise RuntimeError("boom")

        assert not await store.exists("test:lock:job")

    async def test_hold_raises_when_busy(self, make_mutex):
        first, second = make_mutex(), make_mutex()
        await first.acquire("job")

        with pytest.raises(LockNotAcquiredError):
            async with second.hold("job", timeout=0.1):
                pass

    async def test_critical_sections_do_not_overlap(self, make_mutex):
        inside = 0
        overlaps = 0

        async def worker():
            nonlocal inside, overlaps
            async with make_mutex().hold("shared", timeout=5):
                inside += 1
                if inside > 1:
                    overlaps += 1
                await asyncio.sleep(0.02)
                inside -= 1

        await asyncio.gather(*(worker() for _ in range(5)))

        assert overlaps == 0

    async def test_hold_yields_lock_when_entry_dropped_concurrently(self, make_mutex, store):
        class DroppingTable(dict):
            # another thread releasing the name right after it is registered
            def __setitem__(self, key, value):
                pass

        mutex = make_mutex()
        mutex._locks = DroppingTable()

        async with mutex.hold("job") as lock:
            assert lock.held
            assert await store.get("test:lock:job") == lock.token

        assert mutex.acquired == []
