"""Structured values for the open ``metadata`` / ``spec`` bags.

Sources hand back whatever their backend API returned. Before it is stored,
everything is folded into plain JSON shapes so that a value read back from
the database is exactly the value that was written.
"""
from __future__ import annotations

import enum
import math
from datetime import date, datetime
from typing import Any, Dict, List, Union

JsonValue = Union[str, int, float, bool, None, List["JsonValue"], Dict[str, "JsonValue"]]
JsonObject = Dict[str, JsonValue]


def to_json_value(obj: Any) -> JsonValue:
    """
    Normalize ``obj`` into a JSON-safe value.

    - datetimes and dates become ISO-8601 strings
    - enums become their ``value``
    - tuples, lists and sets become lists (sets sorted for stable output)
    - mapping keys become strings
    - NaN and infinities become ``None`` (JSON has no spelling for them)

    Raises:
        TypeError: for anything else (bytes, arbitrary objects).
    """
    if isinstance(obj, enum.Enum):
        return to_json_value(obj.value)
    if obj is None or isinstance(obj, (str, bool)):
        return obj
    if isinstance(obj, int):
        return obj
    if isinstance(obj, float):
        if math.isnan(obj) or math.isinf(obj):
            return None
        return obj
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, dict):
        return {str(k): to_json_value(v) for k, v in obj.items()}
    if isinstance(obj, (set, frozenset)):
        return [to_json_value(v) for v in sorted(obj, key=repr)]
    if isinstance(obj, (list, tuple)):
        return [to_json_value(v) for v in obj]
    raise TypeError(f"{type(obj).__name__} is not representable as a JSON value")


def to_json_object(obj: Any) -> JsonObject:
    """Normalize a mapping; ``None`` becomes an empty object."""
    if obj is None:
        return {}
    if not isinstance(obj, dict):
        raise TypeError(f"expected a mapping, got {type(obj).__name__}")
    return to_json_value(obj)  # type: ignore[return-value]
