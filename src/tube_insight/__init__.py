"""tube-insight: YouTube analytics and AI content toolkit for creators."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("tube-insight")
except PackageNotFoundError:
    __version__ = "0.1.0"

__all__ = ["__version__"]
