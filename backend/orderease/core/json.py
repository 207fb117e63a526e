from __future__ import annotations

from decimal import Decimal

import orjson


def _default(v):
    if isinstance(v, Decimal):
        return float(v)
    raise TypeError(f"Type is not JSON serializable: {type(v).__name__}")


def dumps(v) -> str:
    return orjson.dumps(v, default=_default).decode("utf-8")


def loads(s: str | bytes):
    return orjson.loads(s)
