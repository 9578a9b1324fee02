# hostdeps/deps/__init__.py
from .assets import AssetCategory, DepsAsset, ResolvedEntry
from .manifest import (
    DepsLoadState,
    DepsManifest,
    createForFrameworkDependent,
    createForSelfContained,
)
from .rid_graph import RidFallbackGraph, RidResolutionOptions, getRidFallbackGraph

__all__ = [
    "AssetCategory",
    "DepsAsset",
    "ResolvedEntry",
    "DepsLoadState",
    "DepsManifest",
    "createForFrameworkDependent",
    "createForSelfContained",
    "RidFallbackGraph",
    "RidResolutionOptions",
    "getRidFallbackGraph",
]
