"""Capability lifecycle: probe, detect, remediate, resolve, load.

All public names are re-exported here so callers can import them from
``modwarden.core.lifecycle`` without knowing the module layout.

Components (leaf to root):

- ``AvailabilityProber``: what is loaded, installed, absent.
- ``ConflictDetector``: compatible / stale (HIGH) / newer (LOW).
- ``Remediator``: unload stale, install missing.
- ``ResolutionLoop``: bounded retry state machine over the three above.
- ``CapabilityLoader``: idempotent just-in-time import.
"""

from modwarden.core.lifecycle.detector import ConflictDetector
from modwarden.core.lifecycle.environment import ENVIRONMENT_LOCK, Environment
from modwarden.core.lifecycle.loader import (
    CapabilityLoader,
    LoadResult,
    LoadStateTable,
    LoadStatus,
)
from modwarden.core.lifecycle.models import (
    CapabilityState,
    CapabilityStatus,
    Conflict,
    ConflictKind,
    ConflictReport,
    ConflictSeverity,
    MissingDependency,
    RemediationOutcome,
    ResolutionResult,
    ResolutionState,
    classify_status,
)
from modwarden.core.lifecycle.process_env import ProcessEnvironment
from modwarden.core.lifecycle.prober import AvailabilityProber
from modwarden.core.lifecycle.remediator import Remediator
from modwarden.core.lifecycle.resolution import (
    RESOLUTION_LOCK,
    RESTART_RECOMMENDATION,
    CancellationToken,
    ResolutionLoop,
)

__all__ = [
    "ENVIRONMENT_LOCK",
    "RESOLUTION_LOCK",
    "RESTART_RECOMMENDATION",
    "AvailabilityProber",
    "CancellationToken",
    "CapabilityLoader",
    "CapabilityState",
    "CapabilityStatus",
    "Conflict",
    "ConflictDetector",
    "ConflictKind",
    "ConflictReport",
    "ConflictSeverity",
    "Environment",
    "LoadResult",
    "LoadStateTable",
    "LoadStatus",
    "MissingDependency",
    "ProcessEnvironment",
    "Remediator",
    "RemediationOutcome",
    "ResolutionLoop",
    "ResolutionResult",
    "ResolutionState",
    "classify_status",
]
