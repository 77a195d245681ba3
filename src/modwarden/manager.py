"""ModuleManager: the façade a host process uses.

Wires the registry, environment, package source, prober, detector,
remediator, resolution loop and loader together. A host typically resolves
once at start-up and then loads capabilities on demand::

    manager = build_manager(load_config())
    result = manager.resolve(auto_approve=True)
    if result.success:
        graph = manager.require("graph")
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from types import ModuleType

from modwarden.config import WardenConfig
from modwarden.core.lifecycle import (
    AvailabilityProber,
    CancellationToken,
    CapabilityLoader,
    CapabilityState,
    ConflictDetector,
    ConflictReport,
    Environment,
    LoadResult,
    LoadStateTable,
    ProcessEnvironment,
    Remediator,
    ResolutionLoop,
    ResolutionResult,
)
from modwarden.core.versions import VersionRegistry
from modwarden.source import PackageSource, PipPackageSource

logger = logging.getLogger(__name__)


class ModuleManager:
    """Owns one set of lifecycle components for a registry.

    Args:
        registry: Capabilities to manage.
        environment: Interpreter abstraction.
        source: Where installs come from.
        confirm: Yes/no prompt for destructive actions; None when
            non-interactive.
        max_retries: Default retry budget for ``resolve``.
        retry_delay: Initial backoff delay (seconds).
        max_retry_delay: Backoff ceiling (seconds).
        install_timeout: Seconds per installation attempt.
        sleep: Delay function used between attempts.
    """

    def __init__(
        self,
        registry: VersionRegistry,
        environment: Environment,
        source: PackageSource,
        *,
        confirm: Callable[[str], bool] | None = None,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        max_retry_delay: float = 30.0,
        install_timeout: float = 120.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.registry = registry
        self.environment = environment
        self.source = source
        self.load_state = LoadStateTable()
        self.prober = AvailabilityProber(environment)
        self.detector = ConflictDetector()
        self.remediator = Remediator(
            registry, environment, source, self.load_state,
            confirm=confirm, install_timeout=install_timeout,
        )
        self.loader = CapabilityLoader(registry, environment, self.load_state)
        self._max_retries = max_retries
        self._retry_delay = retry_delay
        self._max_retry_delay = max_retry_delay
        self._sleep = sleep

    def probe(self) -> dict[str, CapabilityState]:
        return self.prober.probe(self.registry)

    def check(self) -> ConflictReport:
        """Probe and detect without changing anything."""
        return self.detector.detect(self.registry, self.probe())

    def resolve(
        self,
        *,
        auto_approve: bool = False,
        max_retries: int | None = None,
        cancel: CancellationToken | None = None,
    ) -> ResolutionResult:
        """Run the resolution loop over the whole registry."""
        loop = ResolutionLoop(
            self.prober,
            self.detector,
            self.remediator,
            max_retries=max_retries if max_retries is not None else self._max_retries,
            retry_delay=self._retry_delay,
            max_retry_delay=self._max_retry_delay,
            sleep=self._sleep,
        )
        return loop.run(self.registry, auto_approve=auto_approve, cancel=cancel)

    def load(self, name: str) -> LoadResult:
        return self.loader.load(name)

    def require(self, name: str) -> ModuleType:
        return self.loader.require(name)


def build_manager(
    config: WardenConfig,
    *,
    confirm: Callable[[str], bool] | None = None,
) -> ModuleManager:
    """Create a manager for the running interpreter from *config*."""
    environment = ProcessEnvironment(
        distributions={
            module: spec.distribution
            for spec in config.registry
            for module in spec.modules
        },
    )
    source = PipPackageSource(
        config.source.index_url,
        trusted=config.source.trusted,
        user_fallback=config.source.user_fallback,
        query_index=config.source.query_index,
    )
    logger.debug("Managing %d capabilities from %s", len(config.registry), source.name)
    return ModuleManager(
        config.registry,
        environment,
        source,
        confirm=confirm,
        max_retries=config.max_retries,
        retry_delay=config.retry_delay,
        max_retry_delay=config.max_retry_delay,
        install_timeout=config.install_timeout,
    )
