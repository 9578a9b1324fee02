# hostdeps/core/version.py
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import total_ordering

logger = logging.getLogger(__name__)

__all__ = ["FileVersion", "ZERO_VERSION", "parseFileVersion", "tryParseFileVersion"]



_COMPONENT_RE = re.compile(r"[0-9]{1,10}")

# Components are non-negative 32-bit signed integers
MAX_COMPONENT = 2**31 - 1



@total_ordering
@dataclass(frozen=True, slots=True)
class FileVersion:
    """
    Four-part numeric version as found in `assemblyVersion` / `fileVersion`.

    Missing trailing components are zero, so "1.2" == "1.2.0.0".
    """
    major: int = 0
    minor: int = 0
    build: int = 0
    revision: int = 0

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.build}.{self.revision}"

    def asTuple(self) -> tuple[int, int, int, int]:
        return (self.major, self.minor, self.build, self.revision)

    def isZero(self) -> bool:
        return self.asTuple() == (0, 0, 0, 0)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, FileVersion):
            return NotImplemented
        return self.asTuple() < other.asTuple()



ZERO_VERSION = FileVersion()



def tryParseFileVersion(raw: str | None) -> FileVersion | None:
    """
    Parse "major[.minor[.build[.revision]]]".

    Returns None when the text is not a version. Accepted:
        "4"           -> 4.0.0.0
        "4.2"         -> 4.2.0.0
        "4.2.1.7"     -> 4.2.1.7
        " 6.0.0.0 "   -> 6.0.0.0
    Rejected:
        "", "1.", ".1", "1..2", "1.2.3.4.5", "1.2-beta", "-1",
        "1.2147483648" (component above 2**31 - 1)
    """
    if not isinstance(raw, str):
        return None

    text = raw.strip()
    if not text:
        return None

    parts = text.split(".")
    if len(parts) > 4:
        return None

    numbers: list[int] = []
    for part in parts:
        if not _COMPONENT_RE.fullmatch(part):
            return None
        number = int(part)
        if number > MAX_COMPONENT:
            return None
        numbers.append(number)

    while len(numbers) < 4:
        numbers.append(0)

    major, minor, build, revision = numbers
    return FileVersion(major, minor, build, revision)



def parseFileVersion(raw: str | None) -> FileVersion:
    """Best-effort parse. Anything unparsable is the zero version."""
    parsed = tryParseFileVersion(raw)
    if parsed is None:
        if raw:
            logger.debug("Ignoring malformed version string %r", raw)
        return ZERO_VERSION
    return parsed
