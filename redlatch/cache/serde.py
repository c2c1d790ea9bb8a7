from __future__ import annotations

import json
import logging
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel

logger = logging.getLogger("CacheSerde")


def _datetime_handler(obj: Any) -> str:
    """Handle datetime objects during JSON serialization"""
    if isinstance(obj, datetime):
        return obj.isoformat()
    raise TypeError(f"Object of type {type(obj)} is not JSON serializable")


def dumps(obj: Any) -> str:
    """Serialize Python object to a JSON string for the cache"""
    if isinstance(obj, Enum):
        obj = obj.value
    if isinstance(obj, BaseModel):
        return obj.model_dump_json()
    try:
        return json.dumps(obj, ensure_ascii=False, default=_datetime_handler)
    except TypeError as e:
        logger.warning(
            f"Could not JSON serialize value of type {type(obj)}. Falling back to str(). Error: {e}. Value: {obj!r}"
        )
        return json.dumps(str(obj), ensure_ascii=False)


def loads(raw: str | bytes | None, model: type[BaseModel] | None = None) -> Any:
    """Deserialize a cached JSON string back to a Python object or model"""
    if raw is None:
        return None
    if model is not None:
        return model.model_validate_json(raw)
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, TypeError, UnicodeDecodeError):
        logger.warning(f"Cached value is not valid JSON, returning it raw: {raw!r}")
        return raw
