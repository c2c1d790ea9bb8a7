"""
Domain layer: the store contract and reply normalisation.
"""

from .interfaces import IStore, SetOp, StoreError, Value
from .responses import to_bool

__all__ = ["IStore", "SetOp", "StoreError", "Value", "to_bool"]
