"""Base class for remote package sources.

A package source performs one operation: "install capability X at a version
>= its minimum". Concrete sources (pip against a package index, or an
in-memory fake in tests) implement ``install``; trust handling is shared.

Trust
-----
A source must be trusted before its first install, analogous to enabling a
package registry. The remediator asks for consent (or takes it from the
auto-approve flag) and calls ``trust()``; an untrusted source refuses to
install with ``PermissionDeniedError``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from modwarden.core.versions import CapabilitySpec, SemanticVersion

logger = logging.getLogger(__name__)

# Per-attempt installation timeout (seconds).
DEFAULT_INSTALL_TIMEOUT: float = 120.0


class PackageSource(ABC):
    """Abstract base class for installation sources.

    Args:
        trusted: Whether consent to install from this source was already
            given (e.g. in configuration).
    """

    def __init__(self, *, trusted: bool = False) -> None:
        self._trusted = trusted

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable source identifier (e.g. the index URL)."""

    @property
    def trusted(self) -> bool:
        return self._trusted

    def trust(self) -> None:
        """Record consent to install from this source."""
        if not self._trusted:
            logger.info("Package source %s marked as trusted", self.name)
        self._trusted = True

    @abstractmethod
    def install(
        self, spec: CapabilitySpec, *, timeout: float = DEFAULT_INSTALL_TIMEOUT,
    ) -> SemanticVersion | None:
        """Install *spec* at a version >= its minimum.

        Args:
            spec: The capability to install.
            timeout: Seconds allowed for this attempt.

        Returns:
            The installed version when known, else None.

        Raises:
            SourceUnavailableError: Source unreachable, no satisfying
                release, failed install, or timeout.
            PermissionDeniedError: Source not trusted or insufficient
                privilege.
        """
