"""
Text encoding for list-valued columns (``tasks.tags``, ``tasks.blockers``).

The repository only talks to a ``ListCodec``; swapping the encoding means
swapping the codec, not touching query code.
"""

import json
from typing import Any, List, Sequence

from sqlalchemy import ColumnElement, exists, func, select

from ..errors import DecodeError

EMPTY_LIST = "[]"


class ListCodec:
    """Interface for encoding ordered string lists into a single text column."""

    empty: str = EMPTY_LIST

    def encode(self, values: Sequence[str]) -> str:
        raise NotImplementedError

    def decode(self, text: Any) -> List[str]:
        raise NotImplementedError

    def contains(self, column: ColumnElement, value: str) -> ColumnElement:
        """SQL condition: the list encoded in ``column`` has ``value`` as an element."""
        raise NotImplementedError


class JSONListCodec(ListCodec):
    """Stores lists as JSON arrays of strings, e.g. ``["k8s", "memory"]``."""

    def encode(self, values: Sequence[str]) -> str:
        if not values:
            return self.empty
        items = list(values)
        for item in items:
            if not isinstance(item, str):
                raise TypeError(f"list items must be strings, got {type(item).__name__}")
        return json.dumps(items, ensure_ascii=False)

    def decode(self, text: Any) -> List[str]:
        if not isinstance(text, str):
            raise DecodeError(text, "expected text")
        try:
            value = json.loads(text)
        except json.JSONDecodeError as exc:
            raise DecodeError(text, exc.msg) from exc
        if not isinstance(value, list):
            raise DecodeError(text, "not a JSON array")
        if not all(isinstance(item, str) for item in value):
            raise DecodeError(text, "array items must be strings")
        return value

    def contains(self, column: ColumnElement, value: str) -> ColumnElement:
        elements = func.json_each(column).table_valued("value")
        return exists(select(1).select_from(elements).where(elements.c.value == value))


default_codec = JSONListCodec()
