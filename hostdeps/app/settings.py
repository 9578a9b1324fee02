# hostdeps/app/settings.py
from __future__ import annotations
import json5, os
from pydantic import JsonValue
from pathlib import Path
from typing import Any, cast
from functools import lru_cache

from hostdeps.app.paths import PACKAGE_DIR, USER_SETTINGS_PATH
from hostdeps.core.dictpath import getByPath

import logging
logger = logging.getLogger(__name__)

__all__ = [
    "SETTINGS_DEFAULT_PATH", "SETTINGS", "SETTINGS_ENV_VAR",
    "loadUserSettings", "loadSettings", "deepMerge",
    "settings", "settingsBool", "runtimeIdEnvVar",
]


SETTINGS_ENV_VAR = "HOSTDEPS_SETTINGS"
SETTINGS_DEFAULT_PATH = PACKAGE_DIR / "settings_default.json5"
SETTINGS: JsonValue = (
    json5.loads(SETTINGS_DEFAULT_PATH.read_text(encoding="utf-8"))
    if SETTINGS_DEFAULT_PATH.exists()
    else {
        "__source": "PACKAGE_DEFAULTS",
        "rid": {"environmentVariable": "DOTNET_RUNTIME_ID"},
        "logging": {"file": None, "maxBytes": 10 * 1024 * 1024, "backupCount": 5},
        "debug": {
            "devModeEnabled": False,
            "suppressRecurringMessages": {"enabled": True, "windowSeconds": 60, "maxPerWindow": 5, "summaryLevel": "INFO"},
        },
    }
)



def _userSettingsPath() -> Path:
    override = os.environ.get(SETTINGS_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return USER_SETTINGS_PATH



def loadUserSettings() -> JsonValue:
    filePath = _userSettingsPath()
    if filePath.exists():
        try:
            return json5.loads(filePath.read_text(encoding="utf-8"))
        except Exception as err:
            logger.error("Failed to parse '%s': %s", filePath, err)
    return {}



@lru_cache(maxsize=1)
def loadSettings():
    return deepMerge(SETTINGS, loadUserSettings())



def deepMerge(first: JsonValue, second: JsonValue) -> JsonValue:
    """
    Returns a new JsonValue where keys from `second` override/extend `first`.
    Only merges recursively when BOTH sides are JSON objects (dicts).
    For all other JSON types the right-hand value `second` replaces `first`.
    """
    if isinstance(first, dict) and isinstance(second, dict):
        out: dict[str, JsonValue] = dict(first)
        for key, value in second.items():
            if key in out:
                out[key] = deepMerge(out[key], cast(JsonValue, value))
            else:
                out[key] = cast(JsonValue, value)
        return cast(JsonValue, out)

    return cast(JsonValue, second)

# ---------- Ergonomic accessors over merged settings ----------

def settings(path: str, default: Any = None) -> Any:
    """Returns value at `path` from merged settings, or `default` if missing."""
    val = getByPath(loadSettings(), path)
    return default if val is None else val



def settingsBool(path: str, default: bool = False) -> bool:
    """Returns bool value at `path` or `default` if missing."""
    val = getByPath(loadSettings(), path)
    if isinstance(val, bool):
        return val
    if val is None:
        return default
    return bool(val)

# --------------------------------------------------------------

def runtimeIdEnvVar() -> str:
    """Name of the environment variable that overrides the host RID."""
    name = settings("rid.environmentVariable", "DOTNET_RUNTIME_ID")
    return str(name).strip() or "DOTNET_RUNTIME_ID"
