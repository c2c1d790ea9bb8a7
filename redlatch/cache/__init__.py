"""
Key-value cache for redlatch.
"""

from .cache import Cache
from .key_factory import KeyFactory

__all__ = ["Cache", "KeyFactory"]
