# hostdeps/deps/assets.py
from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import PurePosixPath

from hostdeps.core.version import FileVersion, ZERO_VERSION

__all__ = [
    "ASSET_CATEGORIES",
    "AssetCategory",
    "DepsAsset",
    "ResolvedEntry",
    "TargetAssets",
    "RidTargetAssets",
    "NATIVE_IMAGE_SUFFIX",
    "assetNameFromFileName",
    "makeLibraryKey",
    "splitLibraryKey",
    "stripNativeImageSuffix",
]



NATIVE_IMAGE_SUFFIX = ".ni"



class AssetCategory(Enum):
    """
    The asset sections a manifest library can declare.

    Member order is the fixed ordinal order used for all per-library storage.
    """
    RUNTIME = "runtime"
    RESOURCES = "resources"
    NATIVE = "native"

    @property
    def index(self) -> int:
        return _CATEGORY_INDEX[self]

    @classmethod
    def fromName(cls, name: str, *, ignoreCase: bool = False) -> AssetCategory | None:
        """Category for a manifest section name, or None when unrecognized."""
        if not isinstance(name, str):
            return None
        key = name.lower() if ignoreCase else name
        for category in cls:
            if category.value == key:
                return category
        return None



ASSET_CATEGORIES: tuple[AssetCategory, ...] = tuple(AssetCategory)
_CATEGORY_INDEX: dict[AssetCategory, int] = {category: idx for idx, category in enumerate(ASSET_CATEGORIES)}



# ------------------------------------------------------------------ #
# Names and keys
# ------------------------------------------------------------------ #

def assetNameFromFileName(fileName: str) -> str:
    """File name without directory and extension ("lib/net8.0/Foo.Bar.dll" -> "Foo.Bar")."""
    baseName = PurePosixPath(fileName.replace("\\", "/")).name
    stem, dot, _ext = baseName.rpartition(".")
    if not dot or not stem:
        return baseName
    return stem



def stripNativeImageSuffix(name: str) -> str:
    """Drop a trailing ".ni" (any case): "Foo.ni" -> "Foo"."""
    if name.lower().endswith(NATIVE_IMAGE_SUFFIX):
        return name[: -len(NATIVE_IMAGE_SUFFIX)]
    return name



def makeLibraryKey(name: str, version: str) -> str:
    return f"{name}/{version}"



def splitLibraryKey(libraryKey: str) -> tuple[str, str]:
    """
    Split "name/version" on the first '/'.

    A key without '/' is used whole for both parts ("odd" -> ("odd", "odd")).
    """
    name, sep, version = libraryKey.partition("/")
    if not sep:
        return libraryKey, libraryKey
    return name, version



# ------------------------------------------------------------------ #
# Value types
# ------------------------------------------------------------------ #

@dataclass(frozen=True, slots=True)
class DepsAsset:
    # Logical name: file name without extension (and without native image marker)
    name: str
    # Path exactly as declared in the manifest
    relativePath: str
    assemblyVersion: FileVersion = ZERO_VERSION
    fileVersion: FileVersion = ZERO_VERSION

    def withName(self, name: str) -> DepsAsset:
        return replace(self, name=name)



@dataclass(frozen=True, slots=True, kw_only=True)
class ResolvedEntry:
    """One resolved asset of one library, ready for probing."""
    libraryName: str
    libraryVersion: str
    # Lower-cased "type" from the libraries section ("package", "project", ...)
    libraryType: str
    libraryHash: str
    isServiceable: bool
    # Declared "path" / "hashPath", using the host directory separator
    libraryPath: str
    libraryHashPath: str
    runtimeStoreManifestList: str
    # File name of the manifest this entry came from
    depsFile: str
    assetType: AssetCategory
    isRidSpecific: bool
    asset: DepsAsset

    @property
    def libraryKey(self) -> str:
        return makeLibraryKey(self.libraryName, self.libraryVersion)



# ------------------------------------------------------------------ #
# Per-library asset buckets
# ------------------------------------------------------------------ #

class TargetAssets:
    """
    Flat asset lists from a target's generic sections:
    library key -> one ordered list per AssetCategory.
    """

    def __init__(self) -> None:
        self.libs: dict[str, tuple[list[DepsAsset], ...]] = {}

    def __contains__(self, libraryKey: object) -> bool:
        return libraryKey in self.libs

    def __iter__(self) -> Iterator[str]:
        return iter(self.libs)

    def bucket(self, libraryKey: str, category: AssetCategory) -> list[DepsAsset]:
        """Mutable list for (library, category), created on first use."""
        slots = self.libs.get(libraryKey)
        if slots is None:
            slots = tuple([] for _ in ASSET_CATEGORIES)
            self.libs[libraryKey] = slots
        return slots[category.index]

    def get(self, libraryKey: str, category: AssetCategory) -> tuple[DepsAsset, ...]:
        slots = self.libs.get(libraryKey)
        if slots is None:
            return ()
        return tuple(slots[category.index])

    def hasAssets(self, libraryKey: str) -> bool:
        slots = self.libs.get(libraryKey)
        return slots is not None and any(slots)



class RidTargetAssets:
    """
    RID-keyed asset lists from a target's `runtimeTargets` sections:
    library key -> one {rid: ordered list} per AssetCategory.

    After RID resolution each {rid: list} holds at most one RID.
    """

    def __init__(self) -> None:
        self.libs: dict[str, tuple[dict[str, list[DepsAsset]], ...]] = {}

    def __contains__(self, libraryKey: object) -> bool:
        return libraryKey in self.libs

    def __iter__(self) -> Iterator[str]:
        return iter(self.libs)

    def ridBuckets(self, libraryKey: str, category: AssetCategory) -> dict[str, list[DepsAsset]]:
        """Mutable {rid: list} for (library, category), created on first use."""
        slots = self.libs.get(libraryKey)
        if slots is None:
            slots = tuple({} for _ in ASSET_CATEGORIES)
            self.libs[libraryKey] = slots
        return slots[category.index]

    def add(self, libraryKey: str, category: AssetCategory, rid: str, asset: DepsAsset) -> None:
        self.ridBuckets(libraryKey, category).setdefault(rid, []).append(asset)

    def getResolved(self, libraryKey: str, category: AssetCategory) -> tuple[DepsAsset, ...]:
        """The surviving RID's assets for (library, category), or () when none."""
        slots = self.libs.get(libraryKey)
        if slots is None:
            return ()
        buckets = slots[category.index]
        if not buckets:
            return ()
        return tuple(next(iter(buckets.values())))

    def hasAssets(self, libraryKey: str) -> bool:
        slots = self.libs.get(libraryKey)
        return slots is not None and any(slots)
