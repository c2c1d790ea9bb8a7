"""
redlatch - Redis cache and distributed mutex for asyncio applications.

Clean Import Interface:
- Cache and Mutex with their store implementations at top level
- Configuration and logging via redlatch.core
"""

from .cache import Cache
from .core.config.settings import settings
from .domain import IStore, SetOp, StoreError
from .mutex import Lock, LockNotAcquiredError, LockState, Mutex
from .persistence import MemoryStore, RedisClient, RedisManager, RedisStore

__version__ = settings.version

__all__ = [
    "Cache",
    "IStore",
    "Lock",
    "LockNotAcquiredError",
    "LockState",
    "MemoryStore",
    "Mutex",
    "RedisClient",
    "RedisManager",
    "RedisStore",
    "SetOp",
    "StoreError",
]
