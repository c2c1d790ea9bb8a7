"""
Domain interfaces for redlatch.
"""

from .store_interface import IStore, SetOp, StoreError, Value, check_ttl

__all__ = ["IStore", "SetOp", "StoreError", "Value", "check_ttl"]
