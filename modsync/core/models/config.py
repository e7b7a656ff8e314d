"""
Sync configuration model — loaded from modsync.yml.

Every field has a default, so an absent config file still yields a
usable configuration: the built-in package list against the PowerShell
Gallery, current-user scope, and no installs or updates unless asked.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from modsync.core.models.package import InstallScope

# Used when the caller names no packages and the config file names none
DEFAULT_PACKAGES: tuple[str, ...] = (
    "PackageManagement",
    "PowerShellGet",
    "PSReadLine",
    "Pester",
    "PSScriptAnalyzer",
)

DEFAULT_REPOSITORY = "PSGallery"
TRUSTED_HOST = "www.powershellgallery.com"


class RepositoryConfig(BaseModel):
    """The single repository packages are installed from and trusted to."""

    name: str = DEFAULT_REPOSITORY
    trusted_host: str = TRUSTED_HOST

    @field_validator("trusted_host")
    @classmethod
    def normalize_host(cls, v: str) -> str:
        v = v.strip().lower()
        if not v:
            raise ValueError("trusted_host must not be empty")
        return v


class SyncConfig(BaseModel):
    """Effective settings for a sync run (CLI flags override these)."""

    packages: list[str] = Field(default_factory=lambda: list(DEFAULT_PACKAGES))
    repository: RepositoryConfig = Field(default_factory=RepositoryConfig)
    scope: InstallScope = InstallScope.CURRENT_USER
    install: bool = False
    update: bool = False
    force_overwrite: bool = True
    allow_clobber: bool = True
    powershell: str = "pwsh"
    timeout: int | None = Field(default=None, gt=0)

    @field_validator("packages")
    @classmethod
    def non_blank_names(cls, v: list[str]) -> list[str]:
        names = [n.strip() for n in v]
        if any(not n for n in names):
            raise ValueError("package names must not be blank")
        return names
