"""
In-memory persistence for redlatch.
"""

from .memory_store import MemoryStore

__all__ = ["MemoryStore"]
