# hostdeps/__init__.py
"""Dependency manifest (deps.json) asset resolution for a running host."""
from __future__ import annotations

__version__ = "0.1.0"
