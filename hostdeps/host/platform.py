# hostdeps/host/platform.py
from __future__ import annotations

import logging
import os
import platform as _platform
import sys
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from hostdeps.app.settings import runtimeIdEnvVar

logger = logging.getLogger(__name__)

__all__ = [
    "ANY_RID",
    "HostPlatform",
    "getCurrentArchName",
    "getCurrentOsFallbackRid",
    "getCurrentOsRidPlatform",
    "readOsRelease",
    "tryGetRuntimeIdFromEnv",
]



ANY_RID = "any"
UNIX_RID = "unix"

_OS_RELEASE_PATHS: tuple[Path, ...] = (Path("/etc/os-release"), Path("/usr/lib/os-release"))

_ARCH_NAMES: Mapping[str, str] = {
    "x86_64": "x64",
    "amd64": "x64",
    "x64": "x64",
    "i386": "x86",
    "i486": "x86",
    "i586": "x86",
    "i686": "x86",
    "x86": "x86",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv6l": "arm",
    "armv7l": "arm",
    "armv8l": "arm",
    "arm": "arm",
    "s390x": "s390x",
    "ppc64le": "ppc64le",
    "loongarch64": "loongarch64",
    "riscv64": "riscv64",
}

# Distros whose RID carries only the major part of VERSION_ID.
_MAJOR_ONLY_DISTROS = frozenset({"rhel", "centos", "rocky", "almalinux", "ol"})



# ------------------------------------------------------------------ #
# OS / architecture probes
# ------------------------------------------------------------------ #

def getCurrentArchName(machine: str | None = None) -> str:
    """Map platform.machine() onto the RID architecture vocabulary."""
    raw = (machine if machine is not None else _platform.machine()).strip()
    name = _ARCH_NAMES.get(raw.lower())
    if name is None:
        logger.debug("Unknown machine architecture %r, using it verbatim", raw)
        return raw.lower()
    return name



def _isMusl() -> bool:
    libc, _version = _platform.libc_ver()
    if libc == "glibc":
        return False
    return any(Path("/lib").glob("ld-musl-*"))



def readOsRelease(paths: tuple[Path, ...] = _OS_RELEASE_PATHS) -> dict[str, str]:
    """Parse the first readable os-release file into a dict. Missing file → {}."""
    for path in paths:
        try:
            text = path.read_text(encoding="utf-8")
        except OSError:
            continue

        values: dict[str, str] = {}
        for line in text.splitlines():
            line = line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            key, _, value = line.partition("=")
            values[key.strip()] = value.strip().strip("\"'")
        return values
    return {}



def _linuxRidPlatform(osRelease: Mapping[str, str]) -> str:
    distroId = osRelease.get("ID", "").strip().lower()
    if not distroId:
        return ""

    versionId = osRelease.get("VERSION_ID", "").strip()
    if not versionId:
        return distroId

    parts = versionId.split(".")
    if distroId in _MAJOR_ONLY_DISTROS:
        versionId = parts[0]
    elif distroId == "alpine":
        versionId = ".".join(parts[:2])
    return f"{distroId}.{versionId}"



def _macRidPlatform(release: str) -> str:
    parts = [part for part in release.split(".") if part]
    if not parts:
        return ""
    if parts[0] == "10" and len(parts) > 1:
        return f"osx.10.{parts[1]}"
    return f"osx.{parts[0]}"



def _windowsRidPlatform(version: str) -> str:
    parts = version.split(".")
    try:
        major = int(parts[0])
        minor = int(parts[1]) if len(parts) > 1 else 0
    except ValueError:
        return ""
    if major >= 10:
        return "win10"
    if major == 6 and minor >= 3:
        return "win81"
    if major == 6 and minor == 2:
        return "win8"
    if major == 6 and minor == 1:
        return "win7"
    return ""



def getCurrentOsRidPlatform() -> str:
    """
    The OS part of the machine RID, possibly distro/version specific
    ("ubuntu.22.04", "osx.14", "win10", "freebsd.14"). Empty when unknown.
    """
    if sys.platform.startswith("linux"):
        return _linuxRidPlatform(readOsRelease())
    if sys.platform == "darwin":
        return _macRidPlatform(_platform.mac_ver()[0])
    if sys.platform == "win32":
        return _windowsRidPlatform(_platform.version())
    if sys.platform.startswith("freebsd"):
        major = _platform.release().split(".")[0]
        return f"freebsd.{major}" if major.isdigit() else "freebsd"
    return ""



def getCurrentOsFallbackRid() -> str:
    """The portable OS family name ("linux", "linux-musl", "osx", "win", "freebsd", ...)."""
    if sys.platform.startswith("linux"):
        if hasattr(sys, "getandroidapilevel"):
            return "android"
        return "linux-musl" if _isMusl() else "linux"
    if sys.platform == "darwin":
        return "osx"
    if sys.platform == "win32":
        return "win"
    if sys.platform.startswith("freebsd"):
        return "freebsd"
    if sys.platform.startswith("sunos"):
        return "illumos"
    return sys.platform



def tryGetRuntimeIdFromEnv(environ: Mapping[str, str] | None = None) -> str | None:
    """The RID override from the environment, or None when unset/blank."""
    env = os.environ if environ is None else environ
    value = env.get(runtimeIdEnvVar(), "")
    value = value.strip()
    return value or None



# ------------------------------------------------------------------ #
# HostPlatform
# ------------------------------------------------------------------ #

@dataclass(frozen=True, slots=True, kw_only=True)
class HostPlatform:
    """
    Immutable description of the platform the host is running on.

    Everything RID resolution needs to know about the machine lives here, so
    resolution stays a pure function of (manifest data, HostPlatform, graph).
    Use HostPlatform.detect() for the real machine; tests build one directly.
    """
    # Distro/version-specific OS part ("ubuntu.22.04"); "" when unknown
    osRidPlatform: str
    # Portable OS family ("linux", "linux-musl", "osx", "win", ...)
    osFallbackRid: str
    # RID architecture name ("x64", "arm64", ...)
    arch: str
    # Value of the RID override environment variable, if any
    envRid: str | None = None
    # Broader families tried after the OS itself in the static list,
    # most specific first ("linux-musl" -> ("linux",))
    familyAliases: tuple[str, ...] = field(default_factory=tuple)
    isWindows: bool = False

    @classmethod
    def detect(cls, environ: Mapping[str, str] | None = None) -> HostPlatform:
        fallbackRid = getCurrentOsFallbackRid()
        if fallbackRid in ("linux-musl", "android"):
            aliases: tuple[str, ...] = ("linux",)
        else:
            aliases = ()
        return cls(
            osRidPlatform=getCurrentOsRidPlatform(),
            osFallbackRid=fallbackRid,
            arch=getCurrentArchName(),
            envRid=tryGetRuntimeIdFromEnv(environ),
            familyAliases=aliases,
            isWindows=sys.platform == "win32",
        )

    def machineRid(self) -> str:
        """OS-reported RID ("ubuntu.22.04-x64"), or "" when the OS part is unknown."""
        if not self.osRidPlatform:
            return ""
        return f"{self.osRidPlatform}-{self.arch}"

    def baselineRid(self) -> str:
        """Portable family RID ("linux-x64")."""
        return f"{self.osFallbackRid}-{self.arch}"

    def staticRidList(self) -> tuple[str, ...]:
        """
        Fixed priority list of host RIDs for resolution without a fallback graph:
        <os>-<arch>, <os>, then each family alias the same way, then
        unix-<arch>, unix (non-Windows), then "any".
        """
        names: list[str] = [self.osFallbackRid, *self.familyAliases]
        if not self.isWindows:
            names.append(UNIX_RID)

        rids: list[str] = []
        for name in names:
            for rid in (f"{name}-{self.arch}", name):
                if rid not in rids:
                    rids.append(rid)
        rids.append(ANY_RID)
        return tuple(rids)
