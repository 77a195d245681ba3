"""Versions and the capability registry.

Public names are re-exported here so callers can write
``from modwarden.core.versions import CapabilitySpec, SemanticVersion``.
"""

from modwarden.core.versions.registry import (
    DEFAULT_REGISTRY,
    CapabilitySpec,
    VersionRegistry,
    normalize_distribution,
)
from modwarden.core.versions.semver import (
    SemanticVersion,
    parse_version,
    sort_descending,
    try_parse_version,
)

__all__ = [
    "DEFAULT_REGISTRY",
    "CapabilitySpec",
    "SemanticVersion",
    "VersionRegistry",
    "normalize_distribution",
    "parse_version",
    "sort_descending",
    "try_parse_version",
]
