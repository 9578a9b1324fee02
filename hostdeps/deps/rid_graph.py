# hostdeps/deps/rid_graph.py
from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from hostdeps.core.errors import RidFallbackGraphError
from hostdeps.deps.document import depsFileExists, getObject, loadDepsDocument

logger = logging.getLogger(__name__)

__all__ = [
    "RidFallbackGraph",
    "RidResolutionOptions",
    "getRidFallbackGraph",
]



class RidFallbackGraph(Mapping[str, tuple[str, ...]]):
    """
    RID -> ordered fallback RIDs (closest compatible first), read from a
    manifest's `runtimes` section.

    A graph is written once and then only read. An empty graph can be handed
    to createForSelfContained() which publishes it from the loaded manifest;
    every later resolution shares it read-only. Concurrent population is not
    supported, callers serialize that themselves (build it at startup).

    Fallback lists are taken as declared; nothing checks them for cycles.
    """

    def __init__(self, graph: Mapping[str, Iterable[str]] | None = None) -> None:
        self._graph: dict[str, tuple[str, ...]] = {}
        self._published = False
        if graph is not None:
            for rid, fallbacks in graph.items():
                self._graph[str(rid)] = tuple(str(fallback) for fallback in fallbacks)
            self._published = True

    # ----- Mapping -----

    def __getitem__(self, rid: str) -> tuple[str, ...]:
        return self._graph[rid]

    def __iter__(self) -> Iterator[str]:
        return iter(self._graph)

    def __len__(self) -> int:
        return len(self._graph)

    def __repr__(self) -> str:
        return f"RidFallbackGraph({self._graph!r})"

    # ----- Population -----

    @property
    def isPublished(self) -> bool:
        return self._published

    @classmethod
    def fromDocument(cls, document: Mapping[str, Any]) -> RidFallbackGraph:
        graph = cls()
        graph.populateFrom(document)
        return graph

    def populateFrom(self, document: Mapping[str, Any]) -> None:
        """
        Fill the graph from document["runtimes"] and publish it.

        A missing or non-object `runtimes` section publishes an empty graph.
        A RID whose value is not an array maps to no fallbacks; non-string
        array items are skipped.

        Raises:
            RidFallbackGraphError if the graph was already published.
        """
        if self._published:
            raise RidFallbackGraphError("RID fallback graph is already populated")

        runtimes = getObject(document, "runtimes")
        if runtimes is not None:
            for rid, value in runtimes.items():
                fallbacks: list[str] = []
                if isinstance(value, list):
                    for fallback in value:
                        if isinstance(fallback, str):
                            fallbacks.append(fallback)
                        else:
                            logger.debug("Skipping non-string fallback %r for RID %s", fallback, rid)
                self._graph[rid] = tuple(fallbacks)

        self._published = True

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("RID fallback graph = {")
            for rid, fallbacks in self._graph.items():
                logger.debug("%s => [%s]", rid, ", ".join(fallbacks))
            logger.debug("}")



@dataclass(slots=True)
class RidResolutionOptions:
    """
    How RID-specific assets are matched to the host.

    useFallbackGraph:
        True  - match the computed machine RID through ridFallbackGraph.
        False - match against the static host RID list.
    ridFallbackGraph:
        Shared graph handle. Required when useFallbackGraph is set.
    """
    useFallbackGraph: bool = False
    ridFallbackGraph: RidFallbackGraph | None = None

    def requireGraph(self) -> RidFallbackGraph:
        if self.ridFallbackGraph is None:
            raise RidFallbackGraphError("useFallbackGraph is set but no RID fallback graph was supplied")
        return self.ridFallbackGraph



def getRidFallbackGraph(depsPath: str | Path) -> RidFallbackGraph:
    """
    Read only the `runtimes` section of a manifest.

    A missing or unparsable manifest gives an empty graph.
    """
    path = Path(depsPath)
    logger.debug("Getting RID fallback graph for deps file... %s", path)

    if not depsFileExists(path):
        return RidFallbackGraph({})

    document = loadDepsDocument(path)
    if document is None:
        return RidFallbackGraph({})

    return RidFallbackGraph.fromDocument(document)
