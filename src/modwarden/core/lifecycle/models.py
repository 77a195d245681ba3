"""Data models for the capability lifecycle.

Probe states, conflicts, reports, remediation outcomes and resolution
results. These are intentionally decoupled from the components that
produce them so the CLI formatters and the manager façade can import them
without pulling in the environment or package-source machinery.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum

from modwarden.core.versions import SemanticVersion


# ---------------------------------------------------------------------------
# Capability status and probe state
# ---------------------------------------------------------------------------


class CapabilityStatus(str, Enum):
    """Where a capability stands relative to its minimum version."""

    LOADED_COMPATIBLE = "loaded-compatible"
    LOADED_INCOMPATIBLE = "loaded-incompatible"
    AVAILABLE_COMPATIBLE = "available-compatible"
    AVAILABLE_INCOMPATIBLE = "available-incompatible"
    NOT_AVAILABLE = "not-available"


def classify_status(
    loaded_version: SemanticVersion | None,
    installed_versions: tuple[SemanticVersion, ...],
    min_version: SemanticVersion,
) -> CapabilityStatus:
    """Total classification of a capability from its observable facts.

    A loaded instance always decides the status; otherwise the installed
    versions do.
    """
    if loaded_version is not None:
        if loaded_version >= min_version:
            return CapabilityStatus.LOADED_COMPATIBLE
        return CapabilityStatus.LOADED_INCOMPATIBLE
    if any(v >= min_version for v in installed_versions):
        return CapabilityStatus.AVAILABLE_COMPATIBLE
    if installed_versions:
        return CapabilityStatus.AVAILABLE_INCOMPATIBLE
    return CapabilityStatus.NOT_AVAILABLE


@dataclass(frozen=True)
class CapabilityState:
    """Snapshot of one capability, rebuilt on every probe.

    ``status`` is computed from the other fields rather than stored, so a
    state can never disagree with its own facts.

    Attributes:
        name: Capability name.
        min_version: Minimum version from the registry.
        loaded_version: Version of the resident instance, if any.
        loaded_as: Module name the resident instance was found under.
        installed_versions: Installed versions, unique, newest first.
    """

    name: str
    min_version: SemanticVersion
    loaded_version: SemanticVersion | None = None
    loaded_as: str | None = None
    installed_versions: tuple[SemanticVersion, ...] = ()

    @property
    def status(self) -> CapabilityStatus:
        return classify_status(
            self.loaded_version, self.installed_versions, self.min_version
        )

    @property
    def is_loaded(self) -> bool:
        return self.loaded_version is not None

    @property
    def best_compatible(self) -> SemanticVersion | None:
        """Highest installed version that meets the minimum, if any."""
        for version in self.installed_versions:
            if version >= self.min_version:
                return version
        return None


# ---------------------------------------------------------------------------
# Conflicts and the conflict report
# ---------------------------------------------------------------------------


class ConflictKind(str, Enum):
    BELOW_MINIMUM = "below-minimum"
    ABOVE_MINIMUM = "above-minimum"


class ConflictSeverity(IntEnum):
    """LOW is advisory; HIGH blocks safe operation."""

    LOW = 1
    HIGH = 2


@dataclass(frozen=True)
class Conflict:
    """A loaded capability whose version differs from the declared minimum."""

    name: str
    loaded_version: SemanticVersion
    required_version: SemanticVersion
    kind: ConflictKind
    severity: ConflictSeverity
    loaded_as: str | None = None


@dataclass(frozen=True)
class MissingDependency:
    """A capability that is not loaded and has no installed version >= minimum."""

    name: str
    required_version: SemanticVersion
    status: CapabilityStatus
    installed_versions: tuple[SemanticVersion, ...] = ()


@dataclass
class ConflictReport:
    """Output of the Conflict Detector.

    Attributes:
        conflicts: HIGH and LOW conflicts, in registry order.
        missing: Capabilities that need an install before they can load.
        states: The probe states the report was derived from.
        recommendations: One human-readable remediation line per HIGH
            conflict and per missing dependency.
    """

    conflicts: list[Conflict] = field(default_factory=list)
    missing: list[MissingDependency] = field(default_factory=list)
    states: dict[str, CapabilityState] = field(default_factory=dict)
    recommendations: list[str] = field(default_factory=list)

    @property
    def high_conflicts(self) -> list[Conflict]:
        return [c for c in self.conflicts if c.severity is ConflictSeverity.HIGH]

    @property
    def safe_to_proceed(self) -> bool:
        """True iff no HIGH severity conflict is present."""
        return not self.high_conflicts

    @property
    def needs_remediation(self) -> bool:
        return bool(self.conflicts or self.missing)

    @property
    def is_resolved(self) -> bool:
        """Safe to proceed and every capability is loadable."""
        return self.safe_to_proceed and not self.missing


# ---------------------------------------------------------------------------
# Remediation and resolution results
# ---------------------------------------------------------------------------


@dataclass
class RemediationOutcome:
    """What a single remediation pass did.

    Attributes:
        attempted: False when nothing was done (nothing to do, or declined).
        succeeded: Every HIGH conflict was unloaded. False after a refusal
            or a failed unload; install failures only show in ``errors``.
        actions_performed: One line per unload/install, including failures.
        requires_process_restart: A stale instance may still be resident.
        declined: The operator refused a destructive action.
        errors: The failing subset of ``actions_performed``.
    """

    attempted: bool = False
    succeeded: bool = True
    actions_performed: list[str] = field(default_factory=list)
    requires_process_restart: bool = False
    declined: bool = False
    errors: list[str] = field(default_factory=list)


class ResolutionState(str, Enum):
    """States of the resolution loop; the last four are terminal."""

    PROBING = "probing"
    DETECTING = "detecting"
    CLEAN = "clean"
    REMEDIATING = "remediating"
    VERIFYING = "verifying"
    RESOLVED = "resolved"
    RETRY_EXHAUSTED = "retry-exhausted"
    USER_DECLINED = "user-declined"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATES


_TERMINAL_STATES = frozenset({
    ResolutionState.RESOLVED,
    ResolutionState.RETRY_EXHAUSTED,
    ResolutionState.USER_DECLINED,
    ResolutionState.CANCELLED,
})


@dataclass
class ResolutionResult:
    """Terminal output of the resolution loop.

    Attributes:
        success: True only for RESOLVED.
        retry_count: Number of failed attempts (failed probes and failed
            verifications).
        errors: Every error collected along the way.
        requires_restart: The caller should restart the process.
        final_state: The terminal ``ResolutionState``.
        recommendations: What the operator should do next.
        actions: Every remediation action performed, in order.
        report: The last conflict report produced, if any.
    """

    success: bool
    retry_count: int = 0
    errors: list[str] = field(default_factory=list)
    requires_restart: bool = False
    final_state: ResolutionState = ResolutionState.RESOLVED
    recommendations: list[str] = field(default_factory=list)
    actions: list[str] = field(default_factory=list)
    report: ConflictReport | None = None
