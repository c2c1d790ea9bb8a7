"""
Pytest configuration and common fixtures for redlatch tests.

Behavioural tests run against MemoryStore; RedisStore tests use a mocked
redis.asyncio client.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from redlatch.cache import Cache
from redlatch.core.logging import clear_holder_context
from redlatch.domain import StoreError
from redlatch.mutex import Mutex
from redlatch.persistence import MemoryStore


class FlakyStore(MemoryStore):
    """MemoryStore whose SET NX fails with StoreError a given number of times."""

    def __init__(self, failures: int):
        super().__init__()
        self.failures = failures
        self.calls = 0

    async def set_if_absent(self, key, value, ttl=0):
        self.calls += 1
        if self.calls <= self.failures:
            raise StoreError("connection refused", ConnectionError("refused"))
        return await super().set_if_absent(key, value, ttl)


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def cache(store: MemoryStore) -> Cache:
    return Cache(store)


@pytest.fixture
def make_mutex(cache: Cache):
    """Build Mutex instances sharing one store, as separate processes would."""

    def _make(**options) -> Mutex:
        options.setdefault("key_prefix", "test:lock")
        options.setdefault("expire", 30)
        options.setdefault("retry_delay", 0.02)
        options.setdefault("retry_max_delay", 0.05)
        return Mutex(Cache(cache.store), **options)

    return _make


@pytest.fixture
def mock_redis():
    """Mock redis.asyncio client for testing."""
    mock = MagicMock()
    mock.ping = AsyncMock(return_value=True)
    mock.exists = AsyncMock(return_value=0)
    mock.get = AsyncMock(return_value=None)
    mock.mget = AsyncMock(return_value=[])
    mock.set = AsyncMock(return_value=True)
    mock.mset = AsyncMock(return_value=True)
    mock.msetnx = AsyncMock(return_value=True)
    mock.delete = AsyncMock(return_value=1)
    mock.eval = AsyncMock(return_value=1)
    mock.ttl = AsyncMock(return_value=-1)
    mock.flushdb = AsyncMock(return_value=True)

    pipe = MagicMock()
    pipe.execute = AsyncMock(return_value=[])
    pipe.__aenter__ = AsyncMock(return_value=pipe)
    pipe.__aexit__ = AsyncMock(return_value=False)
    mock.pipeline = MagicMock(return_value=pipe)
    mock.pipe = pipe
    return mock


@pytest.fixture(autouse=True)
def reset_holder_context():
    clear_holder_context()
    yield
    clear_holder_context()


@pytest.fixture
def flaky_store():
    return FlakyStore
