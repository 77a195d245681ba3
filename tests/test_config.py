"""Tests for YAML configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from modwarden.config import WardenConfig, load_config, parse_config
from modwarden.core.versions import DEFAULT_REGISTRY, parse_version
from modwarden.exceptions import ConfigError

FULL_CONFIG = """\
max_retries: 5
retry_delay: 0.5
max_retry_delay: 10
install_timeout: 60
source:
  index_url: https://mirror.example/
  trusted: true
  user_fallback: false
capabilities:
  auth:
    min_version: 2.29.1
    distribution: msgraph-auth
    modules: [msgraph_auth, auth_compat]
  groups: 2.29.1
  mail:
    min_version: "1.0"
    modules: msgraph_mail
"""


class TestLoadConfig:
    def test_full_file(self, tmp_path: Path) -> None:
        path = tmp_path / "modwarden.yaml"
        path.write_text(FULL_CONFIG)
        config = load_config(path)

        assert config.max_retries == 5
        assert config.retry_delay == 0.5
        assert config.max_retry_delay == 10.0
        assert config.install_timeout == 60.0
        assert config.source.index_url == "https://mirror.example/"
        assert config.source.trusted is True
        assert config.source.user_fallback is False
        assert config.source.query_index is True

        registry = config.registry
        assert registry.names == ("auth", "groups", "mail")
        auth = registry["auth"]
        assert auth.distribution == "msgraph-auth"
        assert auth.modules == ("msgraph_auth", "auth_compat")
        assert registry["groups"].min_version == parse_version("2.29.1")
        assert registry["mail"].modules == ("msgraph_mail",)

    def test_defaults_without_file(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)
        config = load_config()
        assert config.registry is DEFAULT_REGISTRY
        assert config.max_retries == WardenConfig().max_retries

    def test_discovers_file_in_working_directory(self, tmp_path: Path, monkeypatch) -> None:
        (tmp_path / "modwarden.yml").write_text("capabilities:\n  auth: 2.29.1\n")
        monkeypatch.chdir(tmp_path)
        assert load_config().registry.names == ("auth",)

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "modwarden.yaml"
        path.write_text("")
        assert load_config(path).registry is DEFAULT_REGISTRY

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Cannot read"):
            load_config(tmp_path / "absent.yaml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "modwarden.yaml"
        path.write_text("capabilities: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(path)


class TestParseConfig:
    """Validation of already-parsed data."""

    def test_not_a_mapping(self) -> None:
        with pytest.raises(ConfigError, match="mapping"):
            parse_config(["auth"])

    def test_zero_retries_rejected(self) -> None:
        with pytest.raises(ConfigError, match="max_retries"):
            parse_config({"max_retries": 0})

    def test_non_numeric_setting(self) -> None:
        with pytest.raises(ConfigError, match="numeric"):
            parse_config({"retry_delay": "soon"})

    def test_empty_capabilities(self) -> None:
        with pytest.raises(ConfigError, match="non-empty"):
            parse_config({"capabilities": {}})

    def test_missing_min_version(self) -> None:
        with pytest.raises(ConfigError, match="min_version"):
            parse_config({"capabilities": {"auth": {"distribution": "x"}}})

    def test_invalid_version(self) -> None:
        with pytest.raises(ConfigError, match="auth"):
            parse_config({"capabilities": {"auth": "latest"}})

    def test_source_must_be_mapping(self) -> None:
        with pytest.raises(ConfigError, match="source"):
            parse_config({"source": "pypi"})
