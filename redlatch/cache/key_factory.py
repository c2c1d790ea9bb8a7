from __future__ import annotations

import hashlib
import json
import logging
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger("CacheKeyFactory")


class KeyFactory(BaseModel):
    """Pure stateless helpers for physical cache and lock key generation."""

    prefix: str = Field(default="")
    separator: str = Field(default=":")

    model_config = {"frozen": True}

    # ---- builders ---------------------------------------------------------
    def normalize(self, key: Any) -> str:
        """
        Turn a logical key into a string.

        Strings are used as-is. Anything else (tuples, dicts, ints, ...) is
        hashed from its canonical JSON form so equal keys map to equal strings;
        hashed keys start with "#" so they never collide with a string key
        that looks like a digest.
        """
        if isinstance(key, str):
            return key
        encoded = json.dumps(key, sort_keys=True, default=str, ensure_ascii=False)
        return "#" + hashlib.md5(encoded.encode("utf-8")).hexdigest()

    def cache(self, key: Any) -> str:
        return f"{self.prefix}{self.normalize(key)}"

    def lock(self, name: str) -> str:
        return f"{self.prefix}{self.separator}{name}"
