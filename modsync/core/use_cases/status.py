"""
Status use case — read-only view of installed vs. published versions.

Answers "what would sync do?" without planning or prompting: for each
name it reports the best installed version, its origin, whether that
origin is trusted, and the latest version in the repository.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from modsync.adapters.base import AdapterError, PackageAdapter
from modsync.adapters.registry import AdapterRegistry
from modsync.core.config.loader import ConfigError, load_config
from modsync.core.engine.planner import origin_is_trusted, select_installed
from modsync.core.models.config import SyncConfig
from modsync.core.use_cases.sync import DEFAULT_ADAPTER, default_registry, resolve_names

logger = logging.getLogger(__name__)


@dataclass
class PackageStatus:
    """One row of the status table."""

    name: str
    installed_version: str | None = None
    origin: str = ""
    trusted: bool | None = None
    latest_version: str | None = None
    update_available: bool = False
    error: str | None = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "installed_version": self.installed_version,
            "origin": self.origin,
            "trusted": self.trusted,
            "latest_version": self.latest_version,
            "update_available": self.update_available,
            "error": self.error,
        }


@dataclass
class StatusResult:
    """Result of a status query."""

    packages: list[PackageStatus] = field(default_factory=list)
    backend: dict | None = None
    config: SyncConfig | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {
            "backend": self.backend,
            "repository": self.config.repository.model_dump() if self.config else None,
            "packages": [p.to_dict() for p in self.packages],
        }


def check_package(name: str, adapter: PackageAdapter, config: SyncConfig) -> PackageStatus:
    """Collect the status row for one package. Never raises."""
    row = PackageStatus(name=name)
    try:
        installed = select_installed(adapter.query_installed(name))
    except AdapterError as e:
        row.error = f"query installed failed: {e.record.message}"
        return row

    if installed is not None:
        row.installed_version = installed.version
        row.origin = installed.origin
        row.trusted = origin_is_trusted(installed, config.repository.trusted_host)
        if not row.trusted:
            return row

    try:
        remote = adapter.find_latest(name, config.repository.name)
    except AdapterError as e:
        row.error = f"find latest failed: {e.record.message}"
        return row

    row.latest_version = remote.version
    if installed is not None:
        row.update_available = remote.is_newer_than(installed)
    return row


def get_status(
    names: list[str] | None = None,
    config_path: Path | None = None,
    registry: AdapterRegistry | None = None,
    adapter_name: str = DEFAULT_ADAPTER,
) -> StatusResult:
    """Report installed and latest versions for each name.

    Args:
        names: Package names. None/empty = the configured defaults.
        config_path: Optional explicit path to modsync.yml.
        registry: Optional pre-configured adapter registry.
        adapter_name: Which registered adapter to query.
    """
    result = StatusResult()

    try:
        config = load_config(config_path)
    except ConfigError as e:
        result.error = str(e)
        return result
    result.config = config

    if registry is None:
        registry = default_registry(config)

    adapter = registry.get(adapter_name)
    if adapter is None:
        result.error = f"No adapter registered for '{adapter_name}'"
        return result

    result.backend = registry.adapter_status().get(adapter_name)
    if result.backend and not result.backend["available"]:
        result.error = f"Package manager backend '{adapter_name}' is not available"
        return result

    for name in resolve_names(names, config):
        result.packages.append(check_package(name, adapter, config))

    return result
