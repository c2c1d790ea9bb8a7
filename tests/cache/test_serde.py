"""Tests for value serialisation."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel

from redlatch.cache.serde import dumps, loads


class Color(Enum):
    RED = "red"


class Item(BaseModel):
    sku: str
    created: datetime


class TestSerde:
    def test_datetime_and_enum(self):
        assert loads(dumps({"at": datetime(2024, 1, 2, 3, 4, 5)})) == {
            "at": "2024-01-02T03:04:05"
        }
        assert loads(dumps(Color.RED)) == "red"

    def test_model(self):
        item = Item(sku="A1", created=datetime(2024, 1, 1))
        assert loads(dumps(item), Item) == item

    def test_invalid_json_returned_raw(self):
        assert loads("not json") == "not json"
        assert loads(None) is None
