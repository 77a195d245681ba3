"""Shared fixtures for modwarden tests.

Provides an in-memory ``Environment`` and ``PackageSource`` so the prober,
remediator, loop and loader can be exercised without touching the real
interpreter's module state or the network.
"""

from __future__ import annotations

from types import ModuleType
from typing import Callable

import pytest

from modwarden.core.lifecycle import Environment, LoadStateTable
from modwarden.core.versions import (
    CapabilitySpec,
    SemanticVersion,
    VersionRegistry,
    normalize_distribution,
)
from modwarden.exceptions import (
    EnvironmentUnavailableError,
    LoadFailureError,
    PermissionDeniedError,
    UnloadRefusedError,
)
from modwarden.manager import ModuleManager
from modwarden.source import PackageSource


class FakeEnvironment(Environment):
    """Dictionary-backed interpreter.

    Attributes:
        installed: normalized distribution -> versions.
        loaded: module name -> resident version.
        refuse_unload: module names whose unload raises.
        fail_import: module name -> exception raised on import.
        unavailable_probes: number of upcoming enumerations that fail;
            -1 means every enumeration fails.
    """

    def __init__(self) -> None:
        self.installed: dict[str, list[SemanticVersion]] = {}
        self.loaded: dict[str, SemanticVersion] = {}
        self.modules: dict[str, ModuleType] = {}
        self.refuse_unload: set[str] = set()
        self.fail_import: dict[str, Exception] = {}
        self.unavailable_probes = 0
        self.enumerations = 0
        self.import_calls: list[tuple[str, SemanticVersion]] = []
        self.unload_calls: list[str] = []

    # -- Test setup helpers --------------------------------------------------

    def add_installed(self, distribution: str, *versions: str) -> None:
        key = normalize_distribution(distribution)
        for version in versions:
            self.installed.setdefault(key, []).append(SemanticVersion.parse(version))

    def add_loaded(self, module: str, version: str) -> None:
        self.loaded[module] = SemanticVersion.parse(version)
        self.modules[module] = ModuleType(module)

    # -- Environment ---------------------------------------------------------

    def enumerate_installed(self) -> dict[str, list[SemanticVersion]]:
        self.enumerations += 1
        if self.unavailable_probes:
            if self.unavailable_probes > 0:
                self.unavailable_probes -= 1
            raise EnvironmentUnavailableError("site-packages unreadable")
        return {name: list(versions) for name, versions in self.installed.items()}

    def loaded_version(self, module: str) -> SemanticVersion | None:
        return self.loaded.get(module)

    def resident_module(self, module: str) -> ModuleType | None:
        return self.modules.get(module)

    def import_module(self, module: str, version: SemanticVersion) -> ModuleType:
        self.import_calls.append((module, version))
        if module in self.fail_import:
            raise LoadFailureError(str(self.fail_import[module]))
        self.loaded[module] = version
        self.modules[module] = ModuleType(module)
        return self.modules[module]

    def unload(self, module: str) -> None:
        self.unload_calls.append(module)
        if module in self.refuse_unload:
            raise UnloadRefusedError(f"{module} is in use")
        self.loaded.pop(module, None)
        self.modules.pop(module, None)


class FakePackageSource(PackageSource):
    """Installs into a ``FakeEnvironment``.

    Attributes:
        releases: distribution -> version the next install provides
            (defaults to the capability's minimum).
        failures: capability name -> exception raised by ``install``.
    """

    def __init__(self, environment: FakeEnvironment, *, trusted: bool = True) -> None:
        super().__init__(trusted=trusted)
        self.environment = environment
        self.releases: dict[str, str] = {}
        self.failures: dict[str, Exception] = {}
        self.install_calls: list[tuple[str, float]] = []

    @property
    def name(self) -> str:
        return "fake://index"

    def install(self, spec: CapabilitySpec, *, timeout: float = 120.0) -> SemanticVersion:
        self.install_calls.append((spec.name, timeout))
        if not self.trusted:
            raise PermissionDeniedError(f"{self.name} is not trusted")
        if spec.name in self.failures:
            raise self.failures[spec.name]
        version = SemanticVersion.parse(
            self.releases.get(spec.distribution, str(spec.min_version))
        )
        self.environment.add_installed(spec.distribution, str(version))
        return version


@pytest.fixture
def fake_env() -> FakeEnvironment:
    """An empty in-memory environment."""
    return FakeEnvironment()


@pytest.fixture
def fake_source(fake_env: FakeEnvironment) -> FakePackageSource:
    """A trusted source installing into ``fake_env``."""
    return FakePackageSource(fake_env)


@pytest.fixture
def untrusted_source(fake_env: FakeEnvironment) -> FakePackageSource:
    """A source that has not been granted consent yet."""
    return FakePackageSource(fake_env, trusted=False)


@pytest.fixture
def load_state() -> LoadStateTable:
    return LoadStateTable()


@pytest.fixture
def auth_registry() -> VersionRegistry:
    """Registry = {"auth": "2.29.1"}."""
    return VersionRegistry.from_mapping({"auth": "2.29.1"})


@pytest.fixture
def auth_groups_registry() -> VersionRegistry:
    """Registry = {"auth": "2.29.1", "groups": "2.29.1"}."""
    return VersionRegistry.from_mapping({"auth": "2.29.1", "groups": "2.29.1"})


@pytest.fixture
def sleeps() -> list[float]:
    """Collects delays requested by the resolution loop."""
    return []


@pytest.fixture
def make_manager(
    fake_env: FakeEnvironment,
    fake_source: FakePackageSource,
    sleeps: list[float],
) -> Callable[..., ModuleManager]:
    """Factory for a ``ModuleManager`` wired to the fakes."""

    def _make(registry: VersionRegistry, **kwargs: object) -> ModuleManager:
        kwargs.setdefault("sleep", sleeps.append)
        return ModuleManager(registry, fake_env, fake_source, **kwargs)

    return _make
