"""Capability Loader: just-in-time, idempotent import of one capability.

The loader owns ``LoadStateTable``, the process-wide record of which
capabilities it has imported. Calls for the same capability are serialized
by a per-name lock (single flight); calls for different capabilities run
concurrently.

Load sequence for a capability not yet ``LOADED``:
    1. Adopt a compatible instance already resident under the primary or
       an alias module name, without importing anything.
    2. Refuse a resident stale instance: resolution must unload it first.
    3. Import the highest installed version that meets the minimum.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from types import ModuleType

from modwarden.core.lifecycle.environment import Environment
from modwarden.core.versions import CapabilitySpec, SemanticVersion, VersionRegistry
from modwarden.exceptions import ErrorKind, LoadFailureError, ModWardenError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# LoadState
# ---------------------------------------------------------------------------


class LoadStatus(str, Enum):
    UNLOADED = "unloaded"
    LOADED = "loaded"
    FAILED = "failed"


class LoadStateTable:
    """Thread-safe map of capability name -> ``LoadStatus``.

    Entries start absent (read as ``UNLOADED``) and are written only by the
    loader, except ``force_reset`` which the remediator calls after it
    unloads a capability.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._states: dict[str, LoadStatus] = {}

    def get(self, name: str) -> LoadStatus:
        with self._lock:
            return self._states.get(name, LoadStatus.UNLOADED)

    def set(self, name: str, status: LoadStatus) -> None:
        with self._lock:
            self._states[name] = status

    def force_reset(self, name: str) -> None:
        """Mark *name* as ``UNLOADED`` regardless of its previous status."""
        with self._lock:
            if name in self._states:
                self._states[name] = LoadStatus.UNLOADED

    def snapshot(self) -> dict[str, LoadStatus]:
        with self._lock:
            return dict(self._states)


# ---------------------------------------------------------------------------
# LoadResult
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LoadResult:
    """Outcome of ``CapabilityLoader.load``.

    Attributes:
        name: Capability name.
        ok: True if the capability is loaded.
        version: Loaded version when ``ok``.
        module_name: Module name the capability is loaded under.
        error_kind: ``ErrorKind.LOAD_FAILURE`` when not ``ok``.
        cause: Human-readable failure cause.
    """

    name: str
    ok: bool
    version: SemanticVersion | None = None
    module_name: str | None = None
    error_kind: ErrorKind | None = None
    cause: str = ""


# ---------------------------------------------------------------------------
# CapabilityLoader
# ---------------------------------------------------------------------------


class CapabilityLoader:
    """Loads capabilities on demand once resolution has completed."""

    def __init__(
        self,
        registry: VersionRegistry,
        environment: Environment,
        load_state: LoadStateTable,
    ) -> None:
        self._registry = registry
        self._environment = environment
        self._load_state = load_state
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()
        self._results: dict[str, LoadResult] = {}
        self._modules: dict[str, ModuleType | None] = {}

    @property
    def load_state(self) -> LoadStateTable:
        return self._load_state

    def load(self, name: str) -> LoadResult:
        """Load capability *name*, at most once.

        Returns:
            A ``LoadResult``; failures carry ``ErrorKind.LOAD_FAILURE``.
        """
        spec = self._registry.get(name)
        if spec is None:
            return self._failure(name, f"Unknown capability: {name!r}", record=False)

        with self._lock_for(name):
            if self._load_state.get(name) is LoadStatus.LOADED:
                cached = self._results.get(name)
                if cached is not None:
                    return cached
            return self._load_locked(spec)

    def require(self, name: str) -> ModuleType:
        """Load *name* and return its module object.

        Raises:
            LoadFailureError: If the capability cannot be loaded.
        """
        result = self.load(name)
        if not result.ok:
            raise LoadFailureError(result.cause)
        module_obj = self._modules.get(name)
        if module_obj is None:
            raise LoadFailureError(f"{result.module_name} is no longer resident")
        return module_obj

    # -- Internals ---------------------------------------------------------

    def _lock_for(self, name: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(name)
            if lock is None:
                lock = self._locks[name] = threading.Lock()
            return lock

    def _load_locked(self, spec: CapabilitySpec) -> LoadResult:
        for module in spec.modules:
            try:
                resident = self._environment.loaded_version(module)
            except ModWardenError as exc:
                return self._failure(spec.name, str(exc))
            if resident is None:
                continue
            if spec.accepts(resident):
                logger.debug("Adopting resident %s %s as %s", module, resident, spec.name)
                return self._success(
                    spec, resident, module, self._environment.resident_module(module),
                )
            return self._failure(
                spec.name,
                f"{module} {resident} is loaded but below minimum "
                f"{spec.min_version}; run resolution first",
            )

        try:
            installed = self._environment.installed_versions(spec.distribution)
        except ModWardenError as exc:
            return self._failure(spec.name, str(exc))
        candidates = [v for v in installed if spec.accepts(v)]
        if not candidates:
            return self._failure(
                spec.name,
                f"No installed version of {spec.distribution} >= {spec.min_version}",
            )

        version = candidates[0]
        try:
            module_obj = self._environment.import_module(spec.primary_module, version)
        except Exception as exc:
            logger.warning("Loading %s failed", spec.name, exc_info=True)
            return self._failure(spec.name, str(exc) or exc.__class__.__name__)
        return self._success(spec, version, spec.primary_module, module_obj)

    def _success(
        self,
        spec: CapabilitySpec,
        version: SemanticVersion,
        module: str,
        module_obj: ModuleType | None,
    ) -> LoadResult:
        result = LoadResult(name=spec.name, ok=True, version=version, module_name=module)
        self._results[spec.name] = result
        self._modules[spec.name] = module_obj
        self._load_state.set(spec.name, LoadStatus.LOADED)
        logger.info("Capability %s loaded (%s %s)", spec.name, module, version)
        return result

    def _failure(self, name: str, cause: str, record: bool = True) -> LoadResult:
        if record:
            self._load_state.set(name, LoadStatus.FAILED)
            self._results.pop(name, None)
            self._modules.pop(name, None)
        return LoadResult(
            name=name, ok=False, error_kind=ErrorKind.LOAD_FAILURE, cause=cause,
        )
