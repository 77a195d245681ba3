"""Version Registry: the static table of capabilities and their minimums.

A capability is a named requirement on one installed distribution, imported
under a primary module name and optionally under alias module names. The
registry is read-only shared configuration: built once at process start
and never mutated afterwards.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field

from modwarden.core.versions.semver import SemanticVersion

_NORMALIZE_RE = re.compile(r"[-_.]+")


def normalize_distribution(name: str) -> str:
    """Normalize a distribution name per PEP 503 (``Foo_Bar`` -> ``foo-bar``)."""
    return _NORMALIZE_RE.sub("-", name).lower()


# ---------------------------------------------------------------------------
# CapabilitySpec
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CapabilitySpec:
    """Declared requirement for one capability.

    Attributes:
        name: Capability name used throughout the host (e.g. ``"auth"``).
        min_version: Minimum acceptable version (inclusive). Strings are
            parsed on construction.
        distribution: Installed distribution name. Defaults to ``name``.
        modules: Import names; the first is the primary module, the rest
            are aliases the capability may already be loaded under.
            Defaults to ``name`` with dashes replaced by underscores.
    """

    name: str
    min_version: SemanticVersion
    distribution: str = ""
    modules: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Capability name must not be empty")
        if not isinstance(self.min_version, SemanticVersion):
            object.__setattr__(
                self, "min_version", SemanticVersion.parse(self.min_version)
            )
        if not self.distribution:
            object.__setattr__(self, "distribution", self.name)
        if not self.modules:
            object.__setattr__(self, "modules", (self.name.replace("-", "_"),))
        else:
            object.__setattr__(self, "modules", tuple(self.modules))

    @property
    def primary_module(self) -> str:
        return self.modules[0]

    @property
    def requirement(self) -> str:
        """pip requirement string, e.g. ``"msgraph-auth>=2.29.1"``."""
        return f"{self.distribution}>={self.min_version}"

    def accepts(self, version: SemanticVersion | None) -> bool:
        """True if *version* satisfies the minimum."""
        return version is not None and version >= self.min_version


# ---------------------------------------------------------------------------
# VersionRegistry
# ---------------------------------------------------------------------------


class VersionRegistry:
    """Immutable, ordered collection of ``CapabilitySpec`` keyed by name.

    Iteration order is declaration order, which is also the order in which
    reports and recommendations are generated.
    """

    def __init__(self, specs: Iterable[CapabilitySpec] = ()) -> None:
        ordered: dict[str, CapabilitySpec] = {}
        for spec in specs:
            if spec.name in ordered:
                raise ValueError(f"Duplicate capability: {spec.name!r}")
            ordered[spec.name] = spec
        self._specs = ordered

    @classmethod
    def from_mapping(cls, minimums: Mapping[str, str]) -> VersionRegistry:
        """Build a registry from ``{name: min_version}`` pairs."""
        return cls(
            CapabilitySpec(name=name, min_version=version)
            for name, version in minimums.items()
        )

    @property
    def specs(self) -> tuple[CapabilitySpec, ...]:
        return tuple(self._specs.values())

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._specs)

    def get(self, name: str) -> CapabilitySpec | None:
        return self._specs.get(name)

    def __getitem__(self, name: str) -> CapabilitySpec:
        return self._specs[name]

    def __contains__(self, name: object) -> bool:
        return name in self._specs

    def __iter__(self) -> Iterator[CapabilitySpec]:
        return iter(self._specs.values())

    def __len__(self) -> int:
        return len(self._specs)

    def __repr__(self) -> str:
        pairs = ", ".join(f"{s.name}>={s.min_version}" for s in self)
        return f"VersionRegistry({pairs})"


# Baked-in table used when the host supplies no configuration file.
DEFAULT_REGISTRY = VersionRegistry([
    CapabilitySpec(
        name="identity",
        min_version="1.15.0",
        distribution="azure-identity",
        modules=("azure.identity",),
    ),
    CapabilitySpec(
        name="graph-core",
        min_version="1.0.0",
        distribution="msgraph-core",
        modules=("msgraph_core",),
    ),
    CapabilitySpec(
        name="graph",
        min_version="1.2.0",
        distribution="msgraph-sdk",
        modules=("msgraph",),
    ),
])
