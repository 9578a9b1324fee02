import json
import sys
from pathlib import Path
from typing import Any

import pytest

from hostdeps.app.settings import loadSettings
from hostdeps.host.platform import HostPlatform



def pytest_configure(config: pytest.Config) -> None:
    if sys.flags.optimize:
        raise RuntimeError("Assertions are disabled (optimize > 0)")



@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Never read the developer's ~/.hostdeps settings; start every test with defaults."""
    monkeypatch.setenv("HOSTDEPS_SETTINGS", str(tmp_path / "no-such-settings.json5"))
    monkeypatch.delenv("DOTNET_RUNTIME_ID", raising=False)
    loadSettings.cache_clear()
    yield
    loadSettings.cache_clear()



@pytest.fixture()
def linux_host() -> HostPlatform:
    return HostPlatform(
        osRidPlatform="ubuntu.22.04",
        osFallbackRid="linux",
        arch="x64",
    )



@pytest.fixture()
def write_deps(tmp_path):
    """Write a manifest dict (or raw text) to tmp_path and return its path."""
    def _write(payload: dict[str, Any] | str, name: str = "app.deps.json") -> Path:
        path = tmp_path / name
        if isinstance(payload, str):
            path.write_text(payload, encoding="utf-8")
        else:
            path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        return path
    return _write
