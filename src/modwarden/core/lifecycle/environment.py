"""The Environment abstraction over the interpreter's module state.

Which modules are imported, which distributions are installed, and what it
takes to import or drop one are process-wide facts. Components never touch
them directly; they go through an injected ``Environment`` so the prober,
remediator and loader can be exercised against an in-memory fake.

Locks
-----
``ENVIRONMENT_LOCK`` serializes every operation that writes to the shared
module environment (unload, install, import). The environment has no
per-capability isolation, so a single coarse lock is used.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from types import ModuleType

from modwarden.core.versions import (
    SemanticVersion,
    normalize_distribution,
    sort_descending,
)

ENVIRONMENT_LOCK = threading.RLock()


class Environment(ABC):
    """Probe/import/unload primitives for one interpreter.

    Implementations must be side-effect free for the read operations
    (``enumerate_installed``, ``loaded_version``).
    """

    @abstractmethod
    def enumerate_installed(self) -> dict[str, list[SemanticVersion]]:
        """Return every installed distribution and its visible versions.

        Keys are PEP 503 normalized distribution names.

        Raises:
            EnvironmentUnavailableError: If enumeration is impossible.
        """

    @abstractmethod
    def loaded_version(self, module: str) -> SemanticVersion | None:
        """Return the version of *module* if it is currently imported."""

    @abstractmethod
    def resident_module(self, module: str) -> ModuleType | None:
        """Return the module object for *module* if it is imported."""

    @abstractmethod
    def import_module(self, module: str, version: SemanticVersion) -> ModuleType:
        """Import *module*, expecting the given installed *version*.

        Raises:
            LoadFailureError: If the import fails or yields another version.
        """

    @abstractmethod
    def unload(self, module: str) -> None:
        """Remove *module* and its submodules from the process.

        Raises:
            UnloadRefusedError: If the module cannot be removed.
        """

    def installed_versions(self, distribution: str) -> tuple[SemanticVersion, ...]:
        """Installed versions of one distribution, newest first."""
        installed = self.enumerate_installed()
        return sort_descending(
            installed.get(normalize_distribution(distribution), [])
        )
