# hostdeps/deps/reconciler.py
from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from hostdeps.deps.assets import (
    ASSET_CATEGORIES,
    AssetCategory,
    DepsAsset,
    ResolvedEntry,
    RidTargetAssets,
    TargetAssets,
    splitLibraryKey,
    stripNativeImageSuffix,
)
from hostdeps.deps.document import getObject, getOptionalPath, getOptionalProperty

logger = logging.getLogger(__name__)

__all__ = [
    "AssetsGetter",
    "LibraryHasAssets",
    "frameworkDependentAccessors",
    "reconcileLibrariesWithTargets",
    "selfContainedAccessors",
]



# (libraryKey) -> whether any asset map knows the library
LibraryHasAssets = Callable[[str], bool]
# (libraryKey, category) -> (resolved assets, whether they came from runtimeTargets)
AssetsGetter = Callable[[str, AssetCategory], tuple[tuple[DepsAsset, ...], bool]]



# ------------------------------------------------------------------ #
# Mode-specific accessors
# ------------------------------------------------------------------ #

def frameworkDependentAccessors(
    assets: TargetAssets,
    ridAssets: RidTargetAssets,
) -> tuple[LibraryHasAssets, AssetsGetter]:
    """
    RID-specific assets win when the resolved RID bucket is non-empty;
    otherwise the generic bucket of the same category is used.
    """
    def libraryHasAssets(libraryKey: str) -> bool:
        return libraryKey in ridAssets or libraryKey in assets

    def getAssets(libraryKey: str, category: AssetCategory) -> tuple[tuple[DepsAsset, ...], bool]:
        if libraryKey in ridAssets:
            resolved = ridAssets.getResolved(libraryKey, category)
            if resolved:
                return resolved, True
            logger.debug("There were no rid specific %s asset for %s", category.value, libraryKey)
        return assets.get(libraryKey, category), False

    return libraryHasAssets, getAssets



def selfContainedAccessors(assets: TargetAssets) -> tuple[LibraryHasAssets, AssetsGetter]:
    """Only the generic buckets are consulted; nothing is RID-specific."""
    def libraryHasAssets(libraryKey: str) -> bool:
        return libraryKey in assets

    def getAssets(libraryKey: str, category: AssetCategory) -> tuple[tuple[DepsAsset, ...], bool]:
        return assets.get(libraryKey, category), False

    return libraryHasAssets, getAssets



# ------------------------------------------------------------------ #
# Reconciliation
# ------------------------------------------------------------------ #

def reconcileLibrariesWithTargets(
    document: Mapping[str, Any],
    depsFile: str,
    libraryHasAssets: LibraryHasAssets,
    getAssets: AssetsGetter,
) -> list[ResolvedEntry]:
    """
    Merge the `libraries` metadata section with resolved asset lists.

    Order: libraries (document order) -> categories (fixed order) -> assets
    (declared order). Libraries missing from `libraries`, or without assets
    anywhere, produce nothing.
    """
    entries: list[ResolvedEntry] = []

    libraries = getObject(document, "libraries")
    if libraries is None:
        return entries

    for libraryKey, properties in libraries.items():
        logger.debug("Reconciling library %s", libraryKey)
        if not libraryHasAssets(libraryKey):
            logger.debug("  No assets for library %s", libraryKey)
            continue

        libraryHash = getOptionalProperty(properties, "sha512")
        serviceable = isinstance(properties, Mapping) and properties.get("serviceable") is True
        libraryPath = getOptionalPath(properties, "path")
        libraryHashPath = getOptionalPath(properties, "hashPath")
        runtimeStoreManifestList = getOptionalPath(properties, "runtimeStoreManifestName")
        libraryType = getOptionalProperty(properties, "type").lower()
        libraryName, libraryVersion = splitLibraryKey(libraryKey)

        logger.debug("  %s: %s, version: %s", libraryType, libraryName, libraryVersion)

        for category in ASSET_CATEGORIES:
            assets, isRidSpecific = getAssets(libraryKey, category)
            if not assets:
                continue

            logger.debug("  Adding %s assets", category.value)
            for asset in assets:
                if category is AssetCategory.RUNTIME:
                    asset = asset.withName(stripNativeImageSuffix(asset.name))

                entry = ResolvedEntry(
                    libraryName=libraryName,
                    libraryVersion=libraryVersion,
                    libraryType=libraryType,
                    libraryHash=libraryHash,
                    isServiceable=serviceable,
                    libraryPath=libraryPath,
                    libraryHashPath=libraryHashPath,
                    runtimeStoreManifestList=runtimeStoreManifestList,
                    depsFile=depsFile,
                    assetType=category,
                    isRidSpecific=isRidSpecific,
                    asset=asset,
                )
                logger.debug(
                    "    Entry %d for asset name: %s, relpath: %s, assemblyVersion %s, fileVersion %s",
                    len(entries),
                    entry.asset.name,
                    entry.asset.relativePath,
                    entry.asset.assemblyVersion,
                    entry.asset.fileVersion,
                )
                entries.append(entry)

    return entries
