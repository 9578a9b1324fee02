# hostdeps/deps/document.py
from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

__all__ = [
    "DepsDocument",
    "depsFileExists",
    "getOptionalPath",
    "getOptionalProperty",
    "getObject",
    "loadDepsDocument",
]



# Parsed manifest root. Always a JSON object when returned by loadDepsDocument().
DepsDocument = Mapping[str, Any]



def depsFileExists(path: Path) -> bool:
    if path.is_file():
        return True
    logger.debug("Dependencies manifest does not exist at [%s]", path)
    return False



def _blankOut(chars: list[str], start: int, end: int) -> None:
    # Keep newlines so parse errors still point at the right line
    for idx in range(start, end):
        if chars[idx] != "\n":
            chars[idx] = " "



def _relaxJson(text: str) -> str:
    """
    Turn the two relaxations manifests may use into plain JSON: `//` and
    `/* */` comments, and a single trailing comma before `}` or `]`.

    Both are replaced by spaces, so positions in later parse errors match
    the original text. Anything else stays invalid.
    """
    chars = list(text)
    length = len(chars)

    # Pass 1: comments
    idx = 0
    inString = False
    while idx < length:
        ch = chars[idx]
        if inString:
            if ch == "\\":
                idx += 2
                continue
            if ch == '"':
                inString = False
            idx += 1
            continue
        if ch == '"':
            inString = True
        elif ch == "/" and idx + 1 < length and chars[idx + 1] == "/":
            end = text.find("\n", idx)
            end = length if end < 0 else end
            _blankOut(chars, idx, end)
            idx = end
            continue
        elif ch == "/" and idx + 1 < length and chars[idx + 1] == "*":
            end = text.find("*/", idx + 2)
            if end < 0:
                raise json.JSONDecodeError("Unterminated comment", text, idx)
            _blankOut(chars, idx, end + 2)
            idx = end + 2
            continue
        idx += 1

    # Pass 2: trailing commas
    idx = 0
    inString = False
    while idx < length:
        ch = chars[idx]
        if inString:
            if ch == "\\":
                idx += 2
                continue
            if ch == '"':
                inString = False
        elif ch == '"':
            inString = True
        elif ch == ",":
            nextIdx = idx + 1
            while nextIdx < length and chars[nextIdx] in " \t\r\n":
                nextIdx += 1
            if nextIdx < length and chars[nextIdx] in "}]":
                chars[idx] = " "
        idx += 1

    return "".join(chars)



def _rejectConstant(name: str) -> Any:
    raise ValueError(f"Invalid JSON constant {name!r}")



def _parseText(text: str, context: str) -> Any:
    """
    Strict JSON, except that comments and trailing commas are accepted.

    Raises ValueError (json.JSONDecodeError for syntax errors) or
    RecursionError for documents nested too deeply; both are logged here.
    """
    try:
        try:
            return json.loads(text, parse_constant=_rejectConstant)
        except json.JSONDecodeError:
            return json.loads(_relaxJson(text), parse_constant=_rejectConstant)
    except json.JSONDecodeError as err:
        logger.error(
            "A JSON parsing exception occurred in [%s], line %d, column %d: %s",
            context,
            err.lineno,
            err.colno,
            err.msg,
        )
        raise
    except ValueError as err:
        logger.error("A JSON parsing exception occurred in [%s]: %s", context, err)
        raise
    except RecursionError:
        logger.error("A JSON parsing exception occurred in [%s]: document is nested too deeply", context)
        raise



def loadDepsDocument(path: Path) -> DepsDocument | None:
    """
    Read and parse a manifest file.

    Returns:
      - the root object on success
      - None when the file cannot be read, is not JSON, or its root is not
        an object (the error is logged)

    The caller is expected to have checked existence with depsFileExists().
    A leading UTF-8 BOM is skipped.
    """
    try:
        text = path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as err:
        logger.error("Cannot read [%s]: %s", path, err)
        return None

    try:
        root = _parseText(text, str(path))
    except (ValueError, RecursionError):
        return None

    if not isinstance(root, Mapping):
        logger.error("Expected a JSON object in [%s]", path)
        return None
    return root



# ------------------------------------------------------------------ #
# Element accessors
# ------------------------------------------------------------------ #

def getObject(value: Any, key: str) -> Mapping[str, Any] | None:
    """value[key] when value is an object and value[key] is an object, else None."""
    if not isinstance(value, Mapping):
        return None
    child = value.get(key)
    if isinstance(child, Mapping):
        return child
    return None



def getOptionalProperty(properties: Any, key: str) -> str:
    """String property or "" when absent, not a string, or properties is not an object."""
    if not isinstance(properties, Mapping):
        return ""
    value = properties.get(key)
    return value if isinstance(value, str) else ""



def getOptionalPath(properties: Any, key: str) -> str:
    """Like getOptionalProperty(), with '/' converted to the host directory separator."""
    path = getOptionalProperty(properties, key)
    if path and os.sep != "/":
        path = path.replace("/", os.sep)
    return path
