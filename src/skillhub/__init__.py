"""
skillhub - portable skill bundle manager.

Acquires skill bundles from local paths or git repositories, keeps one
canonical copy of each, and propagates it into every AI-assistant tool's
private skill directory.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("skillhub")
except PackageNotFoundError:
    __version__ = "0.3.0"

__all__ = [
    "__version__",
]
