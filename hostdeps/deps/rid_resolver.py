# hostdeps/deps/rid_resolver.py
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from hostdeps.deps.assets import ASSET_CATEGORIES, RidTargetAssets
from hostdeps.deps.rid_graph import RidFallbackGraph, RidResolutionOptions
from hostdeps.host.platform import HostPlatform

logger = logging.getLogger(__name__)

__all__ = [
    "getCurrentMachineRid",
    "performRidFallback",
    "tryGetMatchingRid",
    "tryGetMatchingRidWithFallbackGraph",
]



# ------------------------------------------------------------------ #
# Host RID
# ------------------------------------------------------------------ #

def getCurrentMachineRid(host: HostPlatform, ridFallbackGraph: RidFallbackGraph | None) -> str:
    """
    The RID of the machine, as used for fallback-graph matching.

    Rules:
      - The environment override, when set, is the RID.
      - Otherwise the OS-reported RID ("ubuntu.22.04-x64").
      - If that is empty, or the graph does not know it, use the portable
        family RID ("linux-x64") instead. Older manifests rarely list every
        distro/version RID but do list the family ones.
    """
    currentRid = host.envRid or host.machineRid()
    logger.info("HostRID is %s", currentRid or "not available")

    if not currentRid or (ridFallbackGraph is not None and currentRid not in ridFallbackGraph):
        currentRid = host.baselineRid()
        logger.info("Falling back to base HostRID: %s", currentRid)

    return currentRid



# ------------------------------------------------------------------ #
# Matching
# ------------------------------------------------------------------ #

def tryGetMatchingRid(ridAssets: Mapping[str, Any], host: HostPlatform) -> str | None:
    """
    Static-list matching (no fallback graph).

    The environment override wins when it has assets; otherwise the first
    RID of host.staticRidList() that has assets.
    """
    if host.envRid and host.envRid in ridAssets:
        return host.envRid

    for rid in host.staticRidList():
        if rid in ridAssets:
            return rid
    return None



def tryGetMatchingRidWithFallbackGraph(
    ridAssets: Mapping[str, Any],
    hostRid: str,
    ridFallbackGraph: RidFallbackGraph,
) -> str | None:
    """
    Fallback-graph matching.

    Exact host RID first; then the host RID's fallbacks in declared order.
    Only the host RID's own fallback list is consulted (no transitive walk),
    so a cyclic graph cannot loop.
    """
    if hostRid in ridAssets:
        return hostRid

    fallbacks = ridFallbackGraph.get(hostRid)
    if fallbacks is None:
        logger.warning(
            "The targeted framework does not support the runtime '%s'. "
            "Some libraries may fail to load on this platform.",
            hostRid,
        )
        return None

    for rid in fallbacks:
        if rid in ridAssets:
            return rid
    return None



def _logHostRidList(host: HostPlatform) -> None:
    if not logger.isEnabledFor(logging.DEBUG):
        return
    logger.debug("Host RID list = [")
    if host.envRid:
        logger.debug("  %s,", host.envRid)
    for rid in host.staticRidList():
        logger.debug("  %s,", rid)
    logger.debug("]")



def performRidFallback(
    assets: RidTargetAssets,
    options: RidResolutionOptions,
    host: HostPlatform,
) -> str | None:
    """
    Collapse every (library, category) RID map to the single best RID.

    A (library, category) with no matching RID is emptied; the other
    categories of the same library, and other libraries, are unaffected.

    Returns the host RID used for graph matching, or None in static-list mode.

    Raises:
        RidFallbackGraphError if options ask for graph mode without a graph.
    """
    hostRid: str | None = None
    graph: RidFallbackGraph | None = None
    if options.useFallbackGraph:
        graph = options.requireGraph()
        hostRid = getCurrentMachineRid(host, graph)
    else:
        _logHostRidList(host)

    for libraryKey in assets:
        logger.debug("Filtering RID assets for %s", libraryKey)
        for category in ASSET_CATEGORIES:
            ridBuckets = assets.ridBuckets(libraryKey, category)
            if not ridBuckets:
                continue

            if graph is not None and hostRid is not None:
                matchedRid = tryGetMatchingRidWithFallbackGraph(ridBuckets, hostRid, graph)
            else:
                matchedRid = tryGetMatchingRid(ridBuckets, host)

            if matchedRid is None:
                logger.debug("  No matching %s assets for package %s", category.value, libraryKey)
                ridBuckets.clear()
                continue

            logger.debug("  Matched RID %s for %s assets", matchedRid, category.value)
            for rid in [rid for rid in ridBuckets if rid != matchedRid]:
                logger.debug("    Removing %s assets", rid)
                del ridBuckets[rid]

    return hostRid
