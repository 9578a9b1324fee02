# hostdeps/core/errors.py
from __future__ import annotations

__all__ = ["HostDepsError", "DepsManifestStateError", "RidFallbackGraphError"]



class HostDepsError(Exception):
    """Base class for misuse of the hostdeps API. Manifest data problems never raise."""
    pass



class DepsManifestStateError(HostDepsError):
    """Raised when a DepsManifest is asked to load more than once."""
    pass



class RidFallbackGraphError(HostDepsError):
    """Raised when the shared RID fallback graph is missing or populated twice."""
    pass
