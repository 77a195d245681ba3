"""Remediator: unload stale capabilities and install missing ones.

Remediation is best-effort, not all-or-nothing. Each unload and each
install is attempted independently; a failure is recorded in the outcome
and the remaining items are still processed.

Consent
-------
Unloading is destructive (other code may hold references to the module).
Without ``auto_approve`` the ``confirm`` callback is asked once for the
whole batch; no callback means a non-interactive caller, which counts as a
refusal. A refusal performs no action at all.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from modwarden.core.lifecycle.environment import ENVIRONMENT_LOCK, Environment
from modwarden.core.lifecycle.loader import LoadStateTable
from modwarden.core.lifecycle.models import (
    Conflict,
    ConflictReport,
    RemediationOutcome,
)
from modwarden.core.versions import CapabilitySpec, VersionRegistry
from modwarden.source.base import DEFAULT_INSTALL_TIMEOUT, PackageSource

logger = logging.getLogger(__name__)

ConfirmCallback = Callable[[str], bool]


class Remediator:
    """Applies the corrective actions a ``ConflictReport`` calls for.

    Args:
        registry: Capability definitions (distribution and module names).
        environment: Where unloads happen.
        source: Where installs come from.
        load_state: LoadState entries are reset for unloaded capabilities.
        confirm: Asks the operator a yes/no question; None when there is
            nobody to ask.
        install_timeout: Seconds allowed per installation attempt.
    """

    def __init__(
        self,
        registry: VersionRegistry,
        environment: Environment,
        source: PackageSource,
        load_state: LoadStateTable,
        *,
        confirm: ConfirmCallback | None = None,
        install_timeout: float = DEFAULT_INSTALL_TIMEOUT,
    ) -> None:
        self._registry = registry
        self._environment = environment
        self._source = source
        self._load_state = load_state
        self._confirm = confirm
        self._install_timeout = install_timeout

    def remediate(
        self, report: ConflictReport, auto_approve: bool = False,
    ) -> RemediationOutcome:
        """Resolve what *report* found, as far as possible.

        Args:
            report: Output of the Conflict Detector.
            auto_approve: Skip confirmation for unloads and source trust.

        Returns:
            A ``RemediationOutcome``. ``succeeded`` is True iff every HIGH
            conflict was unloaded; install failures are reported in
            ``errors`` but do not clear it.
        """
        unloads = report.high_conflicts
        installs = self._installs_needed(report)
        if not unloads and not installs:
            return RemediationOutcome()

        if unloads and not auto_approve:
            names = ", ".join(c.name for c in unloads)
            if not self._ask(f"Unload stale capabilities ({names}) from this process?"):
                logger.warning("Unload of %s declined; a restart is required", names)
                return RemediationOutcome(
                    attempted=False,
                    succeeded=False,
                    requires_process_restart=True,
                    declined=True,
                    errors=[f"user declined to unload: {names}"],
                )

        if installs:
            self._ensure_source_trusted(auto_approve)

        outcome = RemediationOutcome(attempted=True)
        with ENVIRONMENT_LOCK:
            unloaded = [self._unload(conflict, outcome) for conflict in unloads]
            for spec in installs:
                self._install(spec, outcome)

        outcome.succeeded = all(unloaded)
        return outcome

    # -- Planning ----------------------------------------------------------

    def _installs_needed(self, report: ConflictReport) -> list[CapabilitySpec]:
        names: list[str] = []
        for conflict in report.high_conflicts:
            state = report.states.get(conflict.name)
            if state is None or state.best_compatible is None:
                names.append(conflict.name)
        names.extend(m.name for m in report.missing if m.name not in names)

        specs: list[CapabilitySpec] = []
        for name in names:
            spec = self._registry.get(name)
            if spec is None:
                logger.warning("Cannot install unknown capability %s", name)
                continue
            specs.append(spec)
        return specs

    def _ask(self, prompt: str) -> bool:
        if self._confirm is None:
            return False
        return bool(self._confirm(prompt))

    # -- Actions -----------------------------------------------------------

    def _unload(self, conflict: Conflict, outcome: RemediationOutcome) -> bool:
        spec = self._registry.get(conflict.name)
        module = conflict.loaded_as or (spec.primary_module if spec else conflict.name)
        try:
            self._environment.unload(module)
        except Exception as exc:
            message = f"failed to unload {conflict.name} ({module}): {exc}"
            logger.warning("Unload of %s failed", module, exc_info=True)
            outcome.actions_performed.append(message)
            outcome.errors.append(message)
            outcome.requires_process_restart = True
            return False
        self._load_state.force_reset(conflict.name)
        outcome.actions_performed.append(
            f"unloaded {conflict.name} {conflict.loaded_version} ({module})"
        )
        return True

    def _ensure_source_trusted(self, auto_approve: bool) -> None:
        if self._source.trusted:
            return
        if auto_approve or self._ask(f"Trust package source {self._source.name}?"):
            self._source.trust()

    def _install(self, spec: CapabilitySpec, outcome: RemediationOutcome) -> None:
        try:
            version = self._source.install(spec, timeout=self._install_timeout)
        except Exception as exc:
            message = f"failed to install {spec.name}: {exc}"
            logger.warning("Install of %s failed: %s", spec.requirement, exc)
            outcome.actions_performed.append(message)
            outcome.errors.append(message)
            return
        installed = str(version) if version is not None else f">={spec.min_version}"
        outcome.actions_performed.append(f"installed {spec.name} {installed}")
