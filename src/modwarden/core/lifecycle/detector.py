"""Conflict Detector: compare probe states against the registry.

Classification per capability:

=======================  =========================  ======================
Observation              Status                     Report entry
=======================  =========================  ======================
loaded, == minimum       LOADED_COMPATIBLE          none
loaded, > minimum        LOADED_COMPATIBLE          LOW ABOVE_MINIMUM
loaded, < minimum        LOADED_INCOMPATIBLE        HIGH BELOW_MINIMUM
not loaded, installed    AVAILABLE_COMPATIBLE       none
>= minimum
not loaded, only older   AVAILABLE_INCOMPATIBLE     missing dependency
installed
nothing                  NOT_AVAILABLE              missing dependency
=======================  =========================  ======================

Recommendations are derived deterministically from the entries, in
registry order.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import replace

from modwarden.core.lifecycle.models import (
    CapabilityState,
    CapabilityStatus,
    Conflict,
    ConflictKind,
    ConflictReport,
    ConflictSeverity,
    MissingDependency,
)
from modwarden.core.versions import CapabilitySpec

logger = logging.getLogger(__name__)


def unload_recommendation(conflict: Conflict) -> str:
    return (
        f"Unload capability {conflict.name} "
        f"(loaded {conflict.loaded_version}, requires >= {conflict.required_version})"
    )


def install_recommendation(spec: CapabilitySpec, state: CapabilityState) -> str:
    line = f"Install capability {spec.name} at version >= {spec.min_version}"
    if state.status is CapabilityStatus.AVAILABLE_INCOMPATIBLE:
        installed = ", ".join(str(v) for v in state.installed_versions)
        line += f" (installed: {installed})"
    return line


class ConflictDetector:
    """Stateless classifier producing a ``ConflictReport``."""

    def detect(
        self,
        specs: Iterable[CapabilitySpec],
        states: Mapping[str, CapabilityState],
    ) -> ConflictReport:
        """Classify every capability and assemble the report.

        Args:
            specs: The registry entries to check.
            states: Probe output keyed by capability name. A spec with no
                entry is treated as not available.

        Returns:
            The ``ConflictReport``; ``safe_to_proceed`` is False iff a HIGH
            conflict is present.
        """
        report = ConflictReport()
        for spec in specs:
            state = states.get(spec.name) or CapabilityState(
                name=spec.name, min_version=spec.min_version,
            )
            if state.min_version != spec.min_version:
                state = replace(state, min_version=spec.min_version)
            report.states[spec.name] = state
            self._classify(spec, state, report)
        return report

    def _classify(
        self, spec: CapabilitySpec, state: CapabilityState, report: ConflictReport,
    ) -> None:
        status = state.status
        if status is CapabilityStatus.LOADED_INCOMPATIBLE:
            conflict = Conflict(
                name=spec.name,
                loaded_version=state.loaded_version,
                required_version=spec.min_version,
                kind=ConflictKind.BELOW_MINIMUM,
                severity=ConflictSeverity.HIGH,
                loaded_as=state.loaded_as,
            )
            report.conflicts.append(conflict)
            report.recommendations.append(unload_recommendation(conflict))
            if state.best_compatible is None:
                report.recommendations.append(install_recommendation(spec, state))
            logger.warning(
                "%s %s is loaded but below minimum %s",
                spec.name, state.loaded_version, spec.min_version,
            )
        elif status is CapabilityStatus.LOADED_COMPATIBLE:
            if state.loaded_version > spec.min_version:
                report.conflicts.append(Conflict(
                    name=spec.name,
                    loaded_version=state.loaded_version,
                    required_version=spec.min_version,
                    kind=ConflictKind.ABOVE_MINIMUM,
                    severity=ConflictSeverity.LOW,
                    loaded_as=state.loaded_as,
                ))
                logger.info(
                    "%s %s is newer than minimum %s",
                    spec.name, state.loaded_version, spec.min_version,
                )
        elif status in (
            CapabilityStatus.AVAILABLE_INCOMPATIBLE,
            CapabilityStatus.NOT_AVAILABLE,
        ):
            report.missing.append(MissingDependency(
                name=spec.name,
                required_version=spec.min_version,
                status=status,
                installed_versions=state.installed_versions,
            ))
            report.recommendations.append(install_recommendation(spec, state))
