"""modwarden exception hierarchy.

All public exceptions inherit from ModWardenError, giving callers a single
base class to catch when they want to handle any modwarden-specific failure
without swallowing unrelated errors. Each exception carries the
``ErrorKind`` it maps to, so results can report failures as plain values.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Failure taxonomy shared by exceptions and result objects."""

    ENVIRONMENT_UNAVAILABLE = "environment_unavailable"
    LOAD_FAILURE = "load_failure"
    SOURCE_UNAVAILABLE = "source_unavailable"
    PERMISSION_DENIED = "permission_denied"
    USER_DECLINED = "user_declined"
    RETRY_EXHAUSTED = "retry_exhausted"


class ModWardenError(Exception):
    """Base exception for all modwarden errors."""

    kind: ErrorKind | None = None


class EnvironmentUnavailableError(ModWardenError):
    """Raised when the installed distributions cannot be enumerated at all.

    Fatal for the current probe. The resolution loop counts it as a
    failed attempt rather than aborting outright.
    """

    kind = ErrorKind.ENVIRONMENT_UNAVAILABLE


class LoadFailureError(ModWardenError):
    """Raised when importing a specific capability fails."""

    kind = ErrorKind.LOAD_FAILURE


class SourceUnavailableError(ModWardenError):
    """Raised when the package source cannot deliver a capability.

    Covers unreachable indexes, missing releases, failed pip runs and
    installation attempts that exceed their timeout.
    """

    kind = ErrorKind.SOURCE_UNAVAILABLE


class PermissionDeniedError(ModWardenError):
    """Raised when an install is refused for lack of privilege or consent.

    Covers system-wide installs without write access (after the user-scoped
    fallback also failed) and sources the operator declined to trust.
    """

    kind = ErrorKind.PERMISSION_DENIED


class UnloadRefusedError(ModWardenError):
    """Raised when the environment refuses to unload a module.

    Built-in and protected modules cannot be removed from the process.
    """

    kind = ErrorKind.LOAD_FAILURE


class ConfigError(ModWardenError):
    """Raised for unreadable or malformed configuration files."""
