"""
Config check use case — validate modsync.yml and report issues.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from modsync.core.config.loader import ConfigError, find_config_file, load_config
from modsync.core.models.config import SyncConfig


@dataclass
class ConfigCheckResult:
    """Result of configuration validation."""

    valid: bool = False
    config: SyncConfig | None = None
    config_path: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "config_path": str(self.config_path) if self.config_path else None,
            "errors": self.errors,
            "warnings": self.warnings,
            "config": self.config.model_dump(mode="json") if self.config else None,
        }


def check_config(config_path: Path | None = None) -> ConfigCheckResult:
    """Validate the configuration and report issues.

    A missing file is valid (defaults apply) but produces a warning.
    """
    result = ConfigCheckResult()

    if config_path is None:
        config_path = find_config_file()
        if config_path is None:
            result.warnings.append("No modsync.yml found; using built-in defaults.")
    result.config_path = config_path

    try:
        config = load_config(config_path)
    except ConfigError as e:
        result.errors.append(str(e))
        return result
    result.config = config

    # Semantic checks
    if not config.packages:
        result.warnings.append("No default packages configured; names must be given on the command line.")

    lowered = [n.lower() for n in config.packages]
    dupes = sorted({n for n in config.packages if lowered.count(n.lower()) > 1})
    if dupes:
        result.warnings.append(f"Duplicate package names (each is processed separately): {', '.join(dupes)}")

    if config.install and config.update and not config.force_overwrite:
        result.warnings.append("force_overwrite is off; updates over an existing install may be refused.")

    result.valid = True
    return result
