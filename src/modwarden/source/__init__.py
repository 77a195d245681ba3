"""Package sources for installing missing or stale capabilities.

Public API::

    from modwarden.source import PackageSource, PipPackageSource
"""

from __future__ import annotations

from modwarden.source.base import DEFAULT_INSTALL_TIMEOUT, PackageSource
from modwarden.source.pip_source import DEFAULT_INDEX_URL, PipPackageSource

__all__ = [
    "DEFAULT_INDEX_URL",
    "DEFAULT_INSTALL_TIMEOUT",
    "PackageSource",
    "PipPackageSource",
]
