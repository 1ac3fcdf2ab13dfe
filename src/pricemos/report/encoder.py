"""JSON encoding of domain values for HTTP responses and the cache."""

from __future__ import annotations

import json
from dataclasses import fields, is_dataclass
from decimal import Decimal
from enum import Enum
from typing import Any


def to_jsonable(value: Any) -> Any:
    """Recursively convert domain values into JSON-compatible primitives.

    Decimals become floats, enums their value, dataclasses plain dicts
    (including computed ``status`` where the type exposes one).
    """
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return float(value)
    if is_dataclass(value) and not isinstance(value, type):
        data = {f.name: to_jsonable(getattr(value, f.name)) for f in fields(value)}
        status = getattr(type(value), "status", None)
        if isinstance(status, property):
            data["status"] = to_jsonable(value.status)
        return data
    if isinstance(value, dict):
        return {str(key): to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    return value


def dumps(value: Any) -> str:
    return json.dumps(to_jsonable(value))
