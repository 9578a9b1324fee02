# hostdeps/deps/manifest.py
from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from enum import Enum
from pathlib import Path
from typing import Any

from hostdeps.core.errors import DepsManifestStateError, RidFallbackGraphError
from hostdeps.core.logging import resetLogContext, setLogContext
from hostdeps.deps.assets import (
    ASSET_CATEGORIES,
    AssetCategory,
    ResolvedEntry,
    RidTargetAssets,
    TargetAssets,
    makeLibraryKey,
)
from hostdeps.deps.document import DepsDocument, depsFileExists, loadDepsDocument
from hostdeps.deps.extractor import processDependencies, processRuntimeTargets, processTargets
from hostdeps.deps.reconciler import (
    frameworkDependentAccessors,
    reconcileLibrariesWithTargets,
    selfContainedAccessors,
)
from hostdeps.deps.rid_graph import RidResolutionOptions
from hostdeps.deps.rid_resolver import performRidFallback
from hostdeps.host.platform import HostPlatform

logger = logging.getLogger(__name__)

__all__ = [
    "DepsLoadState",
    "DepsManifest",
    "createForFrameworkDependent",
    "createForSelfContained",
    "readRuntimeTarget",
]



class DepsLoadState(Enum):
    UNLOADED = "unloaded"
    VALID_EMPTY = "validEmpty"
    INVALID = "invalid"
    PARSED = "parsed"
    EXTRACTED = "extracted"
    RESOLVED = "resolved"
    RECONCILED = "reconciled"
    VALID = "valid"



_TERMINAL_STATES = frozenset({DepsLoadState.VALID_EMPTY, DepsLoadState.INVALID, DepsLoadState.VALID})

_TRANSITIONS: Mapping[DepsLoadState, frozenset[DepsLoadState]] = {
    DepsLoadState.UNLOADED: frozenset({DepsLoadState.VALID_EMPTY, DepsLoadState.INVALID, DepsLoadState.PARSED}),
    DepsLoadState.PARSED: frozenset({DepsLoadState.EXTRACTED}),
    DepsLoadState.EXTRACTED: frozenset({DepsLoadState.RESOLVED}),
    DepsLoadState.RESOLVED: frozenset({DepsLoadState.RECONCILED}),
    DepsLoadState.RECONCILED: frozenset({DepsLoadState.VALID}),
}



def readRuntimeTarget(document: Mapping[str, Any]) -> tuple[str, str]:
    """
    (name, signature) of `runtimeTarget`.

    Accepts the string form ("name") and the object form
    ({"name": ..., "signature": ...}). Missing parts are "".
    """
    runtimeTarget = document.get("runtimeTarget")
    if isinstance(runtimeTarget, str):
        return runtimeTarget, ""
    if isinstance(runtimeTarget, Mapping):
        name = runtimeTarget.get("name")
        signature = runtimeTarget.get("signature")
        return (
            name if isinstance(name, str) else "",
            signature if isinstance(signature, str) else "",
        )
    return "", ""



class DepsManifest:
    """
    Resolved view of one dependencies manifest (`*.deps.json`).

    Lifecycle:
        UNLOADED -> VALID_EMPTY            (file does not exist)
        UNLOADED -> INVALID                (file exists but is not a JSON object)
        UNLOADED -> PARSED -> EXTRACTED -> RESOLVED -> RECONCILED -> VALID

    A manifest loads exactly once. A missing file is valid and empty. An
    invalid manifest answers every query with nothing; callers decide at a
    higher level whether missing dependency information is fatal.

    Resolved entries are immutable and safe to share between threads.
    """

    def __init__(
        self,
        depsPath: str | Path,
        ridResolutionOptions: RidResolutionOptions | None = None,
        *,
        hostPlatform: HostPlatform | None = None,
    ) -> None:
        self._depsPath = Path(depsPath)
        self._ridResolutionOptions = ridResolutionOptions or RidResolutionOptions()
        self._hostPlatform = hostPlatform

        self._state = DepsLoadState.UNLOADED
        self._fileExists = False
        self._isFrameworkDependent = False
        self._runtimeTarget = ""
        self._runtimeTargetSignature = ""
        self._hostRid: str | None = None

        self._assets = TargetAssets()
        self._ridAssets = RidTargetAssets()
        self._dependencies: dict[str, tuple[str, ...]] = {}
        self._entries: tuple[ResolvedEntry, ...] = ()
        self._entriesByCategory: dict[AssetCategory, tuple[ResolvedEntry, ...]] = {
            category: () for category in ASSET_CATEGORIES
        }

    # ----- State -----

    def _advance(self, state: DepsLoadState) -> None:
        allowed = _TRANSITIONS.get(self._state, frozenset())
        if state not in allowed:
            raise DepsManifestStateError(
                f"Illegal manifest state transition {self._state.value} -> {state.value} for '{self._depsPath}'"
            )
        self._state = state

    @property
    def state(self) -> DepsLoadState:
        return self._state

    @property
    def isValid(self) -> bool:
        return self._state in (DepsLoadState.VALID, DepsLoadState.VALID_EMPTY)

    @property
    def fileExists(self) -> bool:
        return self._fileExists

    @property
    def depsPath(self) -> Path:
        return self._depsPath

    @property
    def depsFile(self) -> str:
        return self._depsPath.name

    @property
    def isFrameworkDependent(self) -> bool:
        return self._isFrameworkDependent

    @property
    def runtimeTarget(self) -> str:
        return self._runtimeTarget

    @property
    def runtimeTargetSignature(self) -> str:
        return self._runtimeTargetSignature

    @property
    def hostRid(self) -> str | None:
        """Host RID used for fallback-graph matching during load, if any."""
        return self._hostRid

    # ----- Loading -----

    def load(
        self,
        isFrameworkDependent: bool,
        postProcess: Callable[[DepsDocument], None] | None = None,
    ) -> DepsDocument | None:
        """
        Load, extract, resolve and reconcile the manifest.

        Returns the parsed document (so callers can read further sections,
        e.g. `runtimes`), or None when the file is missing or invalid.
        `postProcess`, when given, is called with the parsed document after
        reconciliation.

        Raises:
            DepsManifestStateError if this manifest was already loaded.
            RidFallbackGraphError if graph matching was requested without a graph.
        """
        if self._state is not DepsLoadState.UNLOADED:
            raise DepsManifestStateError(f"Manifest '{self._depsPath}' is already loaded ({self._state.value})")

        mode = "frameworkDependent" if isFrameworkDependent else "selfContained"
        token = setLogContext(depsFile=self.depsFile, mode=mode)
        try:
            return self._load(isFrameworkDependent, postProcess)
        finally:
            resetLogContext(token)

    def _load(
        self,
        isFrameworkDependent: bool,
        postProcess: Callable[[DepsDocument], None] | None,
    ) -> DepsDocument | None:
        self._isFrameworkDependent = isFrameworkDependent
        self._fileExists = depsFileExists(self._depsPath)
        if not self._fileExists:
            # A manifest is optional
            self._advance(DepsLoadState.VALID_EMPTY)
            return None

        document = loadDepsDocument(self._depsPath)
        if document is None:
            self._advance(DepsLoadState.INVALID)
            return None
        self._advance(DepsLoadState.PARSED)

        self._runtimeTarget, self._runtimeTargetSignature = readRuntimeTarget(document)
        if not self._runtimeTarget:
            logger.warning("Manifest '%s' declares no runtimeTarget name", self._depsPath)

        logger.debug(
            "Loading deps file... [%s]: isFrameworkDependent=%s, useFallbackGraph=%s",
            self._depsPath,
            isFrameworkDependent,
            self._ridResolutionOptions.useFallbackGraph,
        )

        processTargets(document, self._runtimeTarget, self._assets)
        if isFrameworkDependent:
            processRuntimeTargets(document, self._runtimeTarget, self._ridAssets)
        self._dependencies = processDependencies(document, self._runtimeTarget)
        self._advance(DepsLoadState.EXTRACTED)

        if isFrameworkDependent:
            host = self._hostPlatform or HostPlatform.detect()
            self._hostRid = performRidFallback(self._ridAssets, self._ridResolutionOptions, host)
        self._advance(DepsLoadState.RESOLVED)

        if isFrameworkDependent:
            libraryHasAssets, getAssets = frameworkDependentAccessors(self._assets, self._ridAssets)
        else:
            libraryHasAssets, getAssets = selfContainedAccessors(self._assets)
        entries = reconcileLibrariesWithTargets(document, self.depsFile, libraryHasAssets, getAssets)
        self._entries = tuple(entries)
        self._entriesByCategory = {
            category: tuple(entry for entry in entries if entry.assetType is category)
            for category in ASSET_CATEGORIES
        }
        self._advance(DepsLoadState.RECONCILED)

        if postProcess is not None:
            postProcess(document)

        self._advance(DepsLoadState.VALID)
        logger.debug("Loaded %d entries from [%s]", len(self._entries), self._depsPath)
        return document

    # ----- Queries -----

    def hasPackage(self, name: str, version: str) -> bool:
        """True iff name/version has assets in at least one category."""
        if self._state is not DepsLoadState.VALID:
            return False
        libraryKey = makeLibraryKey(name, version)
        return self._ridAssets.hasAssets(libraryKey) or self._assets.hasAssets(libraryKey)

    @property
    def entries(self) -> tuple[ResolvedEntry, ...]:
        """All entries in library -> category -> asset order."""
        if self._state is not DepsLoadState.VALID:
            return ()
        return self._entries

    def getEntries(self, category: AssetCategory) -> tuple[ResolvedEntry, ...]:
        if self._state is not DepsLoadState.VALID:
            return ()
        return self._entriesByCategory[category]

    def iterEntriesByCategory(self) -> Iterator[tuple[AssetCategory, tuple[ResolvedEntry, ...]]]:
        for category in ASSET_CATEGORIES:
            yield category, self.getEntries(category)

    def getDependencies(self, libraryKey: str) -> tuple[str, ...]:
        """Declared dependencies ("name/version") of a library in the runtime target."""
        if self._state is not DepsLoadState.VALID:
            return ()
        return self._dependencies.get(libraryKey, ())

    def getAssetPaths(self, category: AssetCategory, baseDir: str | Path) -> Iterator[Path]:
        """
        Candidate file paths for every entry of a category:
        baseDir / libraryPath / relativePath, or baseDir / relativePath when
        the library declares no path.
        """
        base = Path(baseDir)
        for entry in self.getEntries(category):
            relativePath = entry.asset.relativePath.replace("\\", "/")
            if entry.libraryPath:
                yield base / entry.libraryPath / relativePath
            else:
                yield base / relativePath

    def __repr__(self) -> str:
        return f"DepsManifest(path={str(self._depsPath)!r}, state={self._state.value})"



# ------------------------------------------------------------------ #
# Factories
# ------------------------------------------------------------------ #

def createForSelfContained(
    depsPath: str | Path,
    ridResolutionOptions: RidResolutionOptions,
    *,
    hostPlatform: HostPlatform | None = None,
) -> DepsManifest:
    """
    Load an application manifest in self-contained mode.

    When ridResolutionOptions.useFallbackGraph is set, the supplied graph must
    still be unpopulated; it is published from this manifest's `runtimes`
    section so later framework-dependent loads can share it.

    Raises:
        RidFallbackGraphError if graph mode is requested without an
        unpopulated graph.
    """
    deps = DepsManifest(depsPath, ridResolutionOptions, hostPlatform=hostPlatform)

    if not ridResolutionOptions.useFallbackGraph:
        deps.load(False)
        return deps

    graph = ridResolutionOptions.requireGraph()
    if graph.isPublished:
        raise RidFallbackGraphError("The RID fallback graph to publish must be unpopulated")

    document = deps.load(False)
    if document is not None:
        graph.populateFrom(document)
    return deps



def createForFrameworkDependent(
    depsPath: str | Path,
    ridResolutionOptions: RidResolutionOptions,
    *,
    hostPlatform: HostPlatform | None = None,
) -> DepsManifest:
    """Load a framework manifest, including RID-specific `runtimeTargets` assets."""
    deps = DepsManifest(depsPath, ridResolutionOptions, hostPlatform=hostPlatform)
    deps.load(True)
    return deps
