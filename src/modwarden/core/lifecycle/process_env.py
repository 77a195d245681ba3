"""Environment implementation backed by the running interpreter.

Installed distributions come from ``importlib.metadata``; loaded modules
come from ``sys.modules``. Unloading removes a module and all of its
submodules from ``sys.modules``: objects that already hold references to
the old module keep them, which is why a failed or partial remediation
recommends a process restart.

Version of a loaded module
--------------------------
The version recorded when this environment imported the module wins,
then the module's ``__version__`` attribute, then the installed
distribution metadata. Metadata comes last because an in-place upgrade
changes it without changing the code already resident in memory.
"""

from __future__ import annotations

import importlib
import importlib.metadata
import logging
import sys
from collections.abc import Iterable
from types import ModuleType

from modwarden.core.lifecycle.environment import ENVIRONMENT_LOCK, Environment
from modwarden.core.versions import (
    SemanticVersion,
    normalize_distribution,
    try_parse_version,
)
from modwarden.exceptions import (
    EnvironmentUnavailableError,
    LoadFailureError,
    UnloadRefusedError,
)

logger = logging.getLogger(__name__)

_ALWAYS_PROTECTED = frozenset({"modwarden", "builtins", "sys", "importlib"})


class ProcessEnvironment(Environment):
    """The interpreter this code runs in.

    Args:
        path: Search path for distribution metadata. Defaults to
            ``sys.path`` at call time.
        protected: Extra top-level module names that must never be
            unloaded. Built-ins, the standard library and modwarden itself
            are always protected.
        distributions: Module name -> distribution name, used to read
            metadata versions for modules without ``__version__``.
    """

    def __init__(
        self,
        path: list[str] | None = None,
        protected: Iterable[str] = (),
        distributions: dict[str, str] | None = None,
    ) -> None:
        self._path = path
        self._protected = _ALWAYS_PROTECTED | frozenset(protected)
        self._distributions = dict(distributions or {})
        self._imported: dict[str, tuple[ModuleType, SemanticVersion]] = {}

    # -- Read side ---------------------------------------------------------

    def enumerate_installed(self) -> dict[str, list[SemanticVersion]]:
        try:
            if self._path is None:
                dists = list(importlib.metadata.distributions())
            else:
                dists = list(importlib.metadata.distributions(path=self._path))
        except (OSError, ValueError) as exc:
            raise EnvironmentUnavailableError(
                f"Cannot enumerate installed distributions: {exc}"
            ) from exc

        installed: dict[str, list[SemanticVersion]] = {}
        for dist in dists:
            try:
                name = dist.metadata["Name"]
                raw_version = dist.version
            except Exception:
                logger.debug("Unreadable distribution metadata", exc_info=True)
                continue
            if not name:
                continue
            version = try_parse_version(raw_version)
            if version is None:
                logger.debug("Skipping %s: unparseable version %r", name, raw_version)
                continue
            installed.setdefault(normalize_distribution(name), []).append(version)
        return installed

    def loaded_version(self, module: str) -> SemanticVersion | None:
        resident = sys.modules.get(module)
        if resident is None:
            return None

        recorded = self._imported.get(module)
        if recorded is not None and recorded[0] is resident:
            return recorded[1]

        version = try_parse_version(getattr(resident, "__version__", None))
        if version is not None:
            return version

        distribution = self._distributions.get(module)
        if distribution is None:
            logger.debug("No version information for loaded module %s", module)
            return None
        try:
            return try_parse_version(importlib.metadata.version(distribution))
        except importlib.metadata.PackageNotFoundError:
            logger.debug("Loaded module %s has no distribution %s", module, distribution)
            return None

    def resident_module(self, module: str) -> ModuleType | None:
        return sys.modules.get(module)

    def register_distribution(self, module: str, distribution: str) -> None:
        self._distributions[module] = distribution

    # -- Write side --------------------------------------------------------

    def import_module(self, module: str, version: SemanticVersion) -> ModuleType:
        with ENVIRONMENT_LOCK:
            importlib.invalidate_caches()
            try:
                imported = importlib.import_module(module)
            except Exception as exc:
                raise LoadFailureError(f"Import of {module} failed: {exc}") from exc

            actual = try_parse_version(getattr(imported, "__version__", None))
            if actual is not None and actual != version:
                self._drop(module)
                raise LoadFailureError(
                    f"Imported {module} {actual} but expected {version}; "
                    "another copy shadows it on sys.path"
                )
            self._imported[module] = (imported, version)
            logger.info("Imported %s %s", module, version)
            return imported

    def unload(self, module: str) -> None:
        top_level = module.split(".", 1)[0]
        stdlib = getattr(sys, "stdlib_module_names", frozenset())
        if (
            top_level in self._protected
            or top_level in stdlib
            or module in sys.builtin_module_names
        ):
            raise UnloadRefusedError(f"Module {module} is protected and cannot be unloaded")

        with ENVIRONMENT_LOCK:
            removed = self._drop(module)
            importlib.invalidate_caches()
        logger.info("Unloaded %s (%d modules removed)", module, removed)

    def _drop(self, module: str) -> int:
        prefix = module + "."
        doomed = [
            name for name in list(sys.modules)
            if name == module or name.startswith(prefix)
        ]
        for name in doomed:
            sys.modules.pop(name, None)
            self._imported.pop(name, None)
        return len(doomed)
