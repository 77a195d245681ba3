"""Configuration: the capability table and the resolution tuning knobs.

Configuration lives in a YAML file. Capabilities may use the short form
(``name: "2.29.1"``) or the long form with distribution and module names::

    max_retries: 3
    retry_delay: 1.0
    install_timeout: 120
    source:
      index_url: https://pypi.org
      trusted: false
      user_fallback: true
    capabilities:
      auth:
        min_version: 2.29.1
        distribution: msgraph-auth
        modules: [msgraph_auth]
      groups: 2.29.1

Without a file, ``WardenConfig()`` uses the built-in ``DEFAULT_REGISTRY``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from modwarden.core.lifecycle.resolution import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_MAX_RETRY_DELAY,
    DEFAULT_RETRY_DELAY,
)
from modwarden.core.versions import DEFAULT_REGISTRY, CapabilitySpec, VersionRegistry
from modwarden.exceptions import ConfigError
from modwarden.source import DEFAULT_INDEX_URL, DEFAULT_INSTALL_TIMEOUT

CONFIG_FILENAMES: tuple[str, ...] = ("modwarden.yaml", "modwarden.yml")


@dataclass
class SourceConfig:
    """Package index settings."""

    index_url: str = DEFAULT_INDEX_URL
    trusted: bool = False
    user_fallback: bool = True
    query_index: bool = True


@dataclass
class WardenConfig:
    """Everything needed to build a ``ModuleManager``."""

    registry: VersionRegistry = field(default_factory=lambda: DEFAULT_REGISTRY)
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay: float = DEFAULT_RETRY_DELAY
    max_retry_delay: float = DEFAULT_MAX_RETRY_DELAY
    install_timeout: float = DEFAULT_INSTALL_TIMEOUT
    source: SourceConfig = field(default_factory=SourceConfig)


def load_config(path: Path | str | None = None) -> WardenConfig:
    """Load configuration from *path*, or the current directory's default file.

    Args:
        path: Explicit config file. When None, ``modwarden.yaml`` /
            ``modwarden.yml`` in the working directory is used if present,
            otherwise the built-in defaults.

    Raises:
        ConfigError: If the file cannot be read or is malformed.
    """
    if path is None:
        for candidate in CONFIG_FILENAMES:
            if Path(candidate).is_file():
                path = candidate
                break
        else:
            return WardenConfig()

    file_path = Path(path)
    try:
        raw = file_path.read_text(encoding="utf-8")
        data = yaml.safe_load(raw)
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Cannot read {file_path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {file_path}: {exc}") from exc
    return parse_config(data or {})


def parse_config(data: Any) -> WardenConfig:
    """Build a ``WardenConfig`` from already-parsed YAML/JSON data.

    Raises:
        ConfigError: On unknown structure or invalid values.
    """
    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a mapping")

    config = WardenConfig()
    if "capabilities" in data:
        config.registry = _parse_registry(data["capabilities"])
    try:
        config.max_retries = int(data.get("max_retries", config.max_retries))
        config.retry_delay = float(data.get("retry_delay", config.retry_delay))
        config.max_retry_delay = float(
            data.get("max_retry_delay", config.max_retry_delay)
        )
        config.install_timeout = float(
            data.get("install_timeout", config.install_timeout)
        )
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid numeric setting: {exc}") from exc
    if config.max_retries < 1:
        raise ConfigError("max_retries must be at least 1")

    source = data.get("source") or {}
    if not isinstance(source, dict):
        raise ConfigError("'source' must be a mapping")
    config.source = SourceConfig(
        index_url=str(source.get("index_url", DEFAULT_INDEX_URL)),
        trusted=bool(source.get("trusted", False)),
        user_fallback=bool(source.get("user_fallback", True)),
        query_index=bool(source.get("query_index", True)),
    )
    return config


def _parse_registry(entries: Any) -> VersionRegistry:
    if not isinstance(entries, dict) or not entries:
        raise ConfigError("'capabilities' must be a non-empty mapping")
    specs: list[CapabilitySpec] = []
    for name, entry in entries.items():
        try:
            if isinstance(entry, dict):
                modules = entry.get("modules") or ()
                if isinstance(modules, str):
                    modules = (modules,)
                specs.append(CapabilitySpec(
                    name=str(name),
                    min_version=str(entry["min_version"]),
                    distribution=str(entry.get("distribution", "")),
                    modules=tuple(str(m) for m in modules),
                ))
            else:
                specs.append(CapabilitySpec(name=str(name), min_version=str(entry)))
        except KeyError as exc:
            raise ConfigError(f"Capability {name!r} is missing {exc}") from exc
        except ValueError as exc:
            raise ConfigError(f"Capability {name!r}: {exc}") from exc
    try:
        return VersionRegistry(specs)
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc
