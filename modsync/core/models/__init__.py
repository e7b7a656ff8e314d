"""
Domain models — Pydantic types for the synchronizer.

All models are re-exported here for convenient access:

    from modsync.core.models import PackageRequest, InstalledPackage, Receipt
"""

from modsync.core.models.action import Action, Receipt
from modsync.core.models.config import DEFAULT_PACKAGES, RepositoryConfig, SyncConfig
from modsync.core.models.errors import ErrorRecord
from modsync.core.models.outcome import IssueKind, PackageOutcome, Severity, SyncIssue
from modsync.core.models.package import (
    InstalledPackage,
    InstallScope,
    ModuleVersion,
    PackageRequest,
    PlannedAction,
    RemotePackage,
    parse_version,
)

__all__ = [
    # action.py
    "Action",
    "Receipt",
    # config.py
    "DEFAULT_PACKAGES",
    "RepositoryConfig",
    "SyncConfig",
    # errors.py
    "ErrorRecord",
    # outcome.py
    "IssueKind",
    "PackageOutcome",
    "Severity",
    "SyncIssue",
    # package.py
    "InstallScope",
    "InstalledPackage",
    "ModuleVersion",
    "PackageRequest",
    "PlannedAction",
    "RemotePackage",
    "parse_version",
]
