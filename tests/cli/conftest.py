"""Shared fixtures for CLI tests.

Commands build their manager through ``build_manager``; the fixtures here
patch it to return a manager wired to the in-memory fakes, and write a
small configuration file naming the capabilities under test.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from modwarden.core.versions import VersionRegistry
from modwarden.manager import ModuleManager


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a stray ./modwarden.yaml from leaking into commands."""
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def runner() -> CliRunner:
    """Create a Click CliRunner for invoking commands."""
    return CliRunner()


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """A config declaring ``auth`` at 2.29.1."""
    path = tmp_path / "modwarden.yaml"
    path.write_text("capabilities:\n  auth: 2.29.1\n")
    return path


@pytest.fixture
def patched_manager(
    make_manager: Callable[..., ModuleManager],
    auth_registry: VersionRegistry,
) -> Iterator[ModuleManager]:
    """Route every command's ``build_manager`` to one fake-backed manager."""
    manager = make_manager(auth_registry)
    targets = [
        "modwarden.cli.status_cmd.build_manager",
        "modwarden.cli.resolve_cmd.build_manager",
        "modwarden.cli.load_cmd.build_manager",
    ]
    patchers = [patch(target, return_value=manager) for target in targets]
    for patcher in patchers:
        patcher.start()
    yield manager
    for patcher in patchers:
        patcher.stop()
