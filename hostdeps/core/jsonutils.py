# hostdeps/core/jsonutils.py
from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import fields, is_dataclass
from enum import Enum
from pathlib import PurePath
from typing import Any

__all__ = ["safeJsonDumps", "toJsonable"]



def safeJsonDumps(obj: object) -> str:
    """
    Compact JSON (separators ",", ":"), no NaN/Infinity.

    Values json cannot encode directly (versions, categories, paths, entries)
    go through toJsonable() first.
    """
    try:
        return json.dumps(obj, ensure_ascii=False, allow_nan=False, separators=(",", ":"))
    except (TypeError, ValueError):
        return json.dumps(toJsonable(obj), ensure_ascii=False, allow_nan=False, separators=(",", ":"))



def toJsonable(obj: Any, *, _depth: int = 0, _maxDepth: int = 8) -> Any:
    """
    Plain JSON data for log payloads.

    Enums become their value, paths and versions their string form,
    dataclasses a dict of their fields. Anything else unknown is repr()'d
    so a log call never raises.
    """
    if _depth > _maxDepth:
        return f"<max_depth_exceeded {type(obj).__name__}>"

    if obj is None or isinstance(obj, (bool, int, str)):
        return obj

    if isinstance(obj, float):
        return obj if obj == obj and abs(obj) != float("inf") else repr(obj)

    if isinstance(obj, Enum):
        return toJsonable(obj.value, _depth=_depth + 1, _maxDepth=_maxDepth)

    if isinstance(obj, PurePath):
        return str(obj)

    if isinstance(obj, BaseException):
        return {"type": type(obj).__name__, "message": str(obj)}

    if is_dataclass(obj) and not isinstance(obj, type):
        # Dataclasses with their own __str__ (FileVersion) log as text
        if type(obj).__str__ is not object.__str__:
            return str(obj)
        return {
            field.name: toJsonable(getattr(obj, field.name), _depth=_depth + 1, _maxDepth=_maxDepth)
            for field in fields(obj)
        }

    if isinstance(obj, Mapping):
        return {str(key): toJsonable(value, _depth=_depth + 1, _maxDepth=_maxDepth) for key, value in obj.items()}

    if isinstance(obj, (list, tuple, set, frozenset)):
        return [toJsonable(value, _depth=_depth + 1, _maxDepth=_maxDepth) for value in obj]

    return repr(obj)
