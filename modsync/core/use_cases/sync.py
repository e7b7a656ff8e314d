"""
Sync use case — install and update a list of modules.

The full vertical slice from user intent to report: load config, resolve
the names, build the adapter registry, run the synchronizer.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from modsync.adapters.registry import AdapterRegistry
from modsync.core.config.loader import ConfigError, load_config
from modsync.core.engine.synchronizer import Confirm, SyncOptions, SyncReport, sync_packages
from modsync.core.models.config import SyncConfig
from modsync.core.models.outcome import PackageOutcome
from modsync.core.models.package import InstallScope

logger = logging.getLogger(__name__)

DEFAULT_ADAPTER = "powershellget"


@dataclass
class SyncResult:
    """Result of a sync run."""

    report: SyncReport | None = None
    config: SyncConfig | None = None
    names: list[str] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict:
        result: dict = {}
        if self.error:
            result["error"] = self.error
            return result
        result["names"] = self.names
        if self.report:
            result["report"] = self.report.to_dict()
        return result


def resolve_names(names: list[str] | None, config: SyncConfig) -> list[str]:
    """Caller-supplied names, else the configured default list."""
    cleaned = [n.strip() for n in names or [] if n.strip()]
    return cleaned or list(config.packages)


def default_registry(config: SyncConfig) -> AdapterRegistry:
    """Registry with the real PowerShellGet backend."""
    from modsync.adapters.powershell.powershellget import PowerShellGetAdapter

    registry = AdapterRegistry()
    registry.register(PowerShellGetAdapter(executable=config.powershell, timeout=config.timeout))
    return registry


def run_sync(
    names: list[str] | None = None,
    config_path: Path | None = None,
    install: bool | None = None,
    update: bool | None = None,
    scope: InstallScope | None = None,
    dry_run: bool = False,
    force: bool = False,
    confirm: Confirm | None = None,
    registry: AdapterRegistry | None = None,
    adapter_name: str = DEFAULT_ADAPTER,
    on_outcome: Callable[[PackageOutcome], None] | None = None,
) -> SyncResult:
    """Synchronize packages with the trusted repository.

    Args:
        names: Package names. None/empty = the configured defaults.
        config_path: Optional explicit path to modsync.yml.
        install: Install missing packages (None = config value).
        update: Update outdated packages (None = config value).
        scope: Install scope (None = config value).
        dry_run: Report intended actions without changing anything.
        force: Skip confirmation prompts.
        confirm: Interactive confirmation callback.
        registry: Optional pre-configured adapter registry.
        adapter_name: Which registered adapter to use.
        on_outcome: Called after each package is processed.

    Returns:
        SyncResult with the report, or an error message.
    """
    result = SyncResult()

    # ── Load config ──────────────────────────────────────────────
    try:
        config = load_config(config_path)
    except ConfigError as e:
        result.error = str(e)
        return result
    result.config = config

    result.names = resolve_names(names, config)
    if not result.names:
        result.error = "No packages to process: pass names or set 'packages' in modsync.yml."
        return result

    # ── Set up adapter registry ──────────────────────────────────
    if registry is None:
        registry = default_registry(config)

    options = SyncOptions.from_config(
        config,
        install=install,
        update=update,
        scope=scope,
        dry_run=dry_run,
        force=force,
    )

    # ── Synchronize ──────────────────────────────────────────────
    try:
        result.report = sync_packages(
            result.names,
            registry=registry,
            adapter_name=adapter_name,
            options=options,
            confirm=confirm,
            on_outcome=on_outcome,
        )
    except ValueError as e:
        result.error = str(e)

    return result
