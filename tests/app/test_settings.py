# tests/app/test_settings.py
from __future__ import annotations

import json5

from hostdeps.app.settings import (
    deepMerge,
    loadSettings,
    runtimeIdEnvVar,
    settings,
    settingsBool,
)


def test_deepMerge_objects_merge_and_scalars_replace():
    left = {"a": 1, "b": {"x": 1, "y": 2}, "l": [1, 2]}
    right = {"b": {"y": 5, "z": 9}, "c": 7, "l": [3]}
    out = deepMerge(left, right)
    assert out == {"a": 1, "b": {"x": 1, "y": 5, "z": 9}, "c": 7, "l": [3]}
    # Inputs are untouched
    assert left["b"] == {"x": 1, "y": 2}


def test_defaults_without_user_file():
    assert runtimeIdEnvVar() == "DOTNET_RUNTIME_ID"
    assert settings("logging.file") is None
    assert settingsBool("debug.devModeEnabled", True) is False
    assert settings("does.not.exist", "fallback") == "fallback"


def test_user_file_overrides_defaults(monkeypatch, tmp_path):
    userFile = tmp_path / "hostdeps.json5"
    userFile.write_text(
        json5.dumps({"rid": {"environmentVariable": "MY_RID"}, "debug": {"devModeEnabled": True}}),
        encoding="utf-8",
    )
    monkeypatch.setenv("HOSTDEPS_SETTINGS", str(userFile))
    loadSettings.cache_clear()

    assert runtimeIdEnvVar() == "MY_RID"
    assert settingsBool("debug.devModeEnabled") is True
    # Untouched defaults survive the merge
    assert settings("logging.backupCount") == 5


def test_broken_user_file_is_ignored(monkeypatch, tmp_path, caplog):
    userFile = tmp_path / "hostdeps.json5"
    userFile.write_text("{ rid: ", encoding="utf-8")
    monkeypatch.setenv("HOSTDEPS_SETTINGS", str(userFile))
    loadSettings.cache_clear()

    assert runtimeIdEnvVar() == "DOTNET_RUNTIME_ID"
    assert any("Failed to parse" in rec.getMessage() for rec in caplog.records)
