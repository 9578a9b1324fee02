# hostdeps/core/dictpath.py
from __future__ import annotations
from typing import Any
from collections.abc import Mapping

__all__ = ["getByPath", "hasPath"]



_MISSING = object()



# ----------------------------------------------
#                  path parsing
# ----------------------------------------------

def _splitPath(path: str) -> list[str]:
    """
    Splits a dotted path where '.' is the segment separator and backslash
    escapes the next character.

    Examples:
      - rid.environmentVariable -> ["rid", "environmentVariable"]
      - a\\.b.c                  -> ["a.b", "c"]
    """
    if not isinstance(path, str) or not path:
        raise ValueError("Path must be a non-empty string")

    parts: list[str] = []
    curr: list[str] = []
    esc = False
    for ch in path:
        if esc:
            curr.append(ch)
            esc = False
            continue
        if ch == "\\":
            esc = True
            continue
        if ch == ".":
            parts.append("".join(curr))
            curr = []
            continue
        curr.append(ch)
    if esc:
        raise ValueError("Path ends with a dangling escape (trailing backslash)")
    parts.append("".join(curr))

    if any(part == "" for part in parts):
        raise ValueError(f"Path '{path}' contains empty segment(s)")
    return parts



def _walk(obj: Any, path: str) -> Any:
    try:
        parts = _splitPath(path)
    except ValueError:
        # Invalid path is treated as "not found"
        return _MISSING

    current: Any = obj
    for part in parts:
        if isinstance(current, Mapping) and part in current:
            current = current[part]
            continue
        return _MISSING
    return current



# ----------------------------------------------
#                   Public API
# ----------------------------------------------

def getByPath(obj: Any, path: str, default: Any | None = None) -> Any:
    """Returns the value at `path` inside nested mappings, or `default` when unreachable."""
    value = _walk(obj, path)
    return default if value is _MISSING else value



def hasPath(obj: Any, path: str) -> bool:
    return _walk(obj, path) is not _MISSING
