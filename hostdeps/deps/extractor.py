# hostdeps/deps/extractor.py
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from hostdeps.core.version import parseFileVersion
from hostdeps.deps.assets import (
    ASSET_CATEGORIES,
    AssetCategory,
    DepsAsset,
    RidTargetAssets,
    TargetAssets,
    assetNameFromFileName,
    makeLibraryKey,
    stripNativeImageSuffix,
)
from hostdeps.deps.document import getObject, getOptionalProperty

logger = logging.getLogger(__name__)

__all__ = [
    "getTargetLibraries",
    "makeAsset",
    "processDependencies",
    "processRuntimeTargets",
    "processTargets",
]



def getTargetLibraries(document: Mapping[str, Any], targetName: str) -> Mapping[str, Any] | None:
    """document["targets"][targetName] when it is a non-empty object, else None."""
    targets = getObject(document, "targets")
    if targets is None:
        return None
    target = getObject(targets, targetName)
    if not target:
        return None
    return target



def makeAsset(fileName: str, properties: Any) -> DepsAsset:
    """Asset for one file entry. Missing or malformed versions are the zero version."""
    assemblyVersion = parseFileVersion(getOptionalProperty(properties, "assemblyVersion"))
    fileVersion = parseFileVersion(getOptionalProperty(properties, "fileVersion"))
    return DepsAsset(
        name=assetNameFromFileName(fileName),
        relativePath=fileName,
        assemblyVersion=assemblyVersion,
        fileVersion=fileVersion,
    )



# ------------------------------------------------------------------ #
# Generic assets: targets[target][library][runtime|resources|native]
# ------------------------------------------------------------------ #

def processTargets(document: Mapping[str, Any], targetName: str, assets: TargetAssets) -> None:
    """
    Collect the flat per-category asset lists of every library in the target.

    Category names are matched case-sensitively; unknown sections (and
    `runtimeTargets`, `dependencies`, ...) are ignored. A missing target is
    not an error.
    """
    libraries = getTargetLibraries(document, targetName)
    if libraries is None:
        logger.debug("No target %r in manifest, skipping generic assets", targetName)
        return

    for libraryKey, sections in libraries.items():
        logger.debug("Processing package %s", libraryKey)
        if not isinstance(sections, Mapping):
            continue

        for category in ASSET_CATEGORIES:
            files = getObject(sections, category.value)
            if not files:
                continue

            logger.debug("  Adding %s assets", category.value)
            bucket = assets.bucket(libraryKey, category)
            for fileName, properties in files.items():
                asset = makeAsset(fileName, properties)
                logger.debug(
                    "    %s assemblyVersion=%s fileVersion=%s",
                    asset.relativePath,
                    asset.assemblyVersion,
                    asset.fileVersion,
                )
                bucket.append(asset)



# ------------------------------------------------------------------ #
# RID-specific assets: targets[target][library].runtimeTargets
# ------------------------------------------------------------------ #

def processRuntimeTargets(document: Mapping[str, Any], targetName: str, assets: RidTargetAssets) -> None:
    """
    Collect RID-keyed assets declared under each library's `runtimeTargets`.

    An entry is used only when it has a string `assetType` naming a known
    category (any case) and a string `rid`. The logical name drops a
    trailing native image marker (".ni").
    """
    libraries = getTargetLibraries(document, targetName)
    if libraries is None:
        logger.debug("No target %r in manifest, skipping runtimeTargets", targetName)
        return

    for libraryKey, sections in libraries.items():
        runtimeTargets = getObject(sections, "runtimeTargets")
        if runtimeTargets is None:
            continue

        logger.debug("Processing runtimeTargets for package %s", libraryKey)
        for fileName, properties in runtimeTargets.items():
            if not isinstance(properties, Mapping):
                continue

            category = AssetCategory.fromName(properties.get("assetType"), ignoreCase=True)
            if category is None:
                continue

            rid = properties.get("rid")
            if not isinstance(rid, str) or not rid:
                continue

            asset = makeAsset(fileName, properties)
            asset = asset.withName(stripNativeImageSuffix(asset.name))
            logger.debug(
                "  %s asset: %s rid=%s assemblyVersion=%s fileVersion=%s",
                category.value,
                asset.relativePath,
                rid,
                asset.assemblyVersion,
                asset.fileVersion,
            )
            assets.add(libraryKey, category, rid, asset)



# ------------------------------------------------------------------ #
# Declared dependencies: targets[target][library].dependencies
# ------------------------------------------------------------------ #

def processDependencies(document: Mapping[str, Any], targetName: str) -> dict[str, tuple[str, ...]]:
    """
    Library key -> its declared dependencies as "name/version" keys, in
    document order. Entries whose version is not a string are skipped.
    """
    result: dict[str, tuple[str, ...]] = {}
    libraries = getTargetLibraries(document, targetName)
    if libraries is None:
        return result

    for libraryKey, sections in libraries.items():
        dependencies = getObject(sections, "dependencies")
        if not dependencies:
            continue
        result[libraryKey] = tuple(
            makeLibraryKey(name, version)
            for name, version in dependencies.items()
            if isinstance(version, str)
        )
    return result
