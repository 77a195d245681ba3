"""pip-backed package source.

Installs capabilities with ``python -m pip install`` in a subprocess of the
current interpreter. When the index exposes the PyPI JSON API, the highest
published, non-yanked release at or above the minimum is pinned exactly;
otherwise pip is given the ``>=`` requirement and picks for itself.

Privilege fallback
------------------
A system-wide install into a read-only site-packages fails with a
permission error. With ``user_fallback`` enabled the install is retried
once with ``--user``; only if that also fails is ``PermissionDeniedError``
raised.

Usage::

    source = PipPackageSource(trusted=True)
    version = source.install(registry["auth"], timeout=120)
"""

from __future__ import annotations

import importlib
import logging
import site
import subprocess
import sys
from typing import Any

from modwarden.core.versions import (
    CapabilitySpec,
    SemanticVersion,
    sort_descending,
    try_parse_version,
)
from modwarden.exceptions import PermissionDeniedError, SourceUnavailableError
from modwarden.source.base import DEFAULT_INSTALL_TIMEOUT, PackageSource
from modwarden.source.http_client import fetch_json

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_INDEX_URL: str = "https://pypi.org"

JSON_API: str = "{index}/pypi/{package}/json"

_PERMISSION_MARKERS: tuple[str, ...] = (
    "permission denied",
    "[errno 13]",
    "consider using the `--user` option",
)


# ---------------------------------------------------------------------------
# PipPackageSource
# ---------------------------------------------------------------------------


class PipPackageSource(PackageSource):
    """Install capabilities from a Python package index via pip.

    Args:
        index_url: Base URL of the index (``/simple`` and ``/pypi`` live
            under it).
        trusted: Consent already given for this index.
        user_fallback: Retry with ``--user`` on permission errors.
        query_index: Use the JSON API to pick an exact release.
        python: Interpreter whose environment receives the install.
    """

    def __init__(
        self,
        index_url: str = DEFAULT_INDEX_URL,
        *,
        trusted: bool = False,
        user_fallback: bool = True,
        query_index: bool = True,
        python: str | None = None,
    ) -> None:
        super().__init__(trusted=trusted)
        self._index_url = index_url.rstrip("/")
        self._user_fallback = user_fallback
        self._query_index = query_index
        self._python = python or sys.executable

    @property
    def name(self) -> str:
        return self._index_url

    def available_versions(self, distribution: str) -> tuple[SemanticVersion, ...]:
        """Published, non-yanked releases of *distribution*, newest first."""
        url = JSON_API.format(index=self._index_url, package=distribution)
        data = fetch_json(url)
        if not isinstance(data, dict):
            return ()
        return sort_descending(_parse_releases(data.get("releases") or {}))

    def install(
        self, spec: CapabilitySpec, *, timeout: float = DEFAULT_INSTALL_TIMEOUT,
    ) -> SemanticVersion | None:
        if not self.trusted:
            raise PermissionDeniedError(
                f"Package source {self.name} is not trusted; consent is required"
            )

        target = self._select_version(spec) if self._query_index else None
        requirement = (
            f"{spec.distribution}=={target}" if target is not None else spec.requirement
        )

        result = self._run_pip(requirement, user=False, timeout=timeout)
        if result.returncode != 0 and _is_permission_error(result):
            if not self._user_fallback:
                raise PermissionDeniedError(
                    f"Installing {requirement} requires elevated privilege"
                )
            logger.warning(
                "System-wide install of %s denied; retrying with --user", requirement,
            )
            result = self._run_pip(requirement, user=True, timeout=timeout)
            if result.returncode != 0 and _is_permission_error(result):
                raise PermissionDeniedError(
                    f"Installing {requirement} was denied, even with --user"
                )
            if result.returncode == 0:
                _activate_user_site()

        if result.returncode != 0:
            raise SourceUnavailableError(
                f"pip install {requirement} failed: {_last_line(result.stderr)}"
            )
        logger.info("Installed %s from %s", requirement, self.name)
        return target

    # -- Internals ---------------------------------------------------------

    def _select_version(self, spec: CapabilitySpec) -> SemanticVersion | None:
        versions = self.available_versions(spec.distribution)
        if not versions:
            logger.info(
                "No release list for %s on %s; letting pip resolve %s",
                spec.distribution, self.name, spec.requirement,
            )
            return None
        allow_pre = spec.min_version.is_prerelease
        for version in versions:
            if spec.accepts(version) and (allow_pre or not version.is_prerelease):
                return version
        raise SourceUnavailableError(
            f"No release of {spec.distribution} >= {spec.min_version} on {self.name} "
            f"(latest: {versions[0]})"
        )

    def _run_pip(
        self, requirement: str, *, user: bool, timeout: float,
    ) -> subprocess.CompletedProcess[str]:
        cmd = [
            self._python, "-m", "pip", "install",
            "--disable-pip-version-check", "--no-input",
            "--index-url", f"{self._index_url}/simple",
        ]
        if user:
            cmd.append("--user")
        cmd.append(requirement)
        logger.debug("Running %s", " ".join(cmd))
        try:
            return subprocess.run(
                cmd, capture_output=True, text=True, timeout=timeout, check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise SourceUnavailableError(
                f"Installing {requirement} timed out after {timeout:g}s"
            ) from exc
        except OSError as exc:
            raise SourceUnavailableError(f"Could not run pip: {exc}") from exc


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _parse_releases(releases: dict[str, Any]) -> list[SemanticVersion]:
    """Parse the ``releases`` section of a JSON API response.

    Releases with no files, or whose files are all yanked, are skipped.
    """
    versions: list[SemanticVersion] = []
    for raw, files in releases.items():
        if not files or all(f.get("yanked", False) for f in files):
            continue
        version = try_parse_version(raw)
        if version is not None:
            versions.append(version)
    return versions


def _activate_user_site() -> None:
    """Make a fresh ``--user`` install visible to this interpreter.

    ``site`` only adds the user site directory at startup, and only if it
    existed then.
    """
    user_site = site.getusersitepackages()
    if user_site not in sys.path:
        site.addsitedir(user_site)
        logger.debug("Added user site %s to sys.path", user_site)
    importlib.invalidate_caches()


def _is_permission_error(result: subprocess.CompletedProcess[str]) -> bool:
    output = f"{result.stdout or ''}\n{result.stderr or ''}".lower()
    return any(marker in output for marker in _PERMISSION_MARKERS)


def _last_line(text: str | None) -> str:
    lines = [line.strip() for line in (text or "").splitlines() if line.strip()]
    return lines[-1] if lines else "no output"
