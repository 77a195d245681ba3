"""Availability Prober: what is loaded, what is installed, what is absent.

Discovery Algorithm:
    1. Enumerate installed distributions once for the whole probe. Failure
       here is the only fatal error (``EnvironmentUnavailableError``).
    2. For each capability, check its modules in order (primary first,
       then aliases); the first loaded module with a known version wins.
    3. Collect the capability's installed versions, unique, newest first.

Absence is a valid state: a capability with nothing loaded and nothing
installed yields a ``NOT_AVAILABLE`` state, not an error.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from modwarden.core.lifecycle.environment import Environment
from modwarden.core.lifecycle.models import CapabilityState
from modwarden.core.versions import (
    CapabilitySpec,
    SemanticVersion,
    normalize_distribution,
    sort_descending,
)

logger = logging.getLogger(__name__)


class AvailabilityProber:
    """Builds fresh ``CapabilityState`` snapshots from an ``Environment``.

    Usage::

        prober = AvailabilityProber(ProcessEnvironment())
        states = prober.probe(registry)
        for name, state in states.items():
            print(name, state.status.value)
    """

    def __init__(self, environment: Environment) -> None:
        self._environment = environment

    def probe(self, specs: Iterable[CapabilitySpec]) -> dict[str, CapabilityState]:
        """Probe every capability in *specs*.

        Args:
            specs: Capabilities to inspect (a ``VersionRegistry`` works).

        Returns:
            Mapping of capability name to its current state.

        Raises:
            EnvironmentUnavailableError: If installed distributions cannot
                be enumerated.
        """
        installed = self._environment.enumerate_installed()
        states: dict[str, CapabilityState] = {}
        for spec in specs:
            loaded_as, loaded_version = self._find_loaded(spec)
            versions = sort_descending(
                installed.get(normalize_distribution(spec.distribution), [])
            )
            states[spec.name] = CapabilityState(
                name=spec.name,
                min_version=spec.min_version,
                loaded_version=loaded_version,
                loaded_as=loaded_as,
                installed_versions=versions,
            )
            logger.debug(
                "Probed %s: loaded=%s installed=%s",
                spec.name, loaded_version, [str(v) for v in versions],
            )
        return states

    def _find_loaded(
        self, spec: CapabilitySpec,
    ) -> tuple[str | None, SemanticVersion | None]:
        for module in spec.modules:
            try:
                version = self._environment.loaded_version(module)
            except Exception:
                logger.debug("Could not read version of %s", module, exc_info=True)
                continue
            if version is not None:
                return module, version
        return None, None
