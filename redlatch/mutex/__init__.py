"""
Distributed mutex for redlatch.
"""

from .lock import Lock, LockState
from .mutex import LockNotAcquiredError, Mutex

__all__ = ["Lock", "LockNotAcquiredError", "LockState", "Mutex"]
