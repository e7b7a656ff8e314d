"""
Planner — pure decisions, no I/O.

Given the fresh snapshots for one package, these functions decide what
(if anything) should change. They never call the package manager and
never prompt; the synchronizer feeds their output to ``apply_action``.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from modsync.core.models.action import Action
from modsync.core.models.package import (
    InstalledPackage,
    PackageRequest,
    PlannedAction,
    RemotePackage,
)


def generate_operation_id() -> str:
    """Generate a unique operation ID for one sync run."""
    now = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
    short = uuid.uuid4().hex[:6]
    return f"sync-{now}-{short}"


def select_installed(installed: list[InstalledPackage]) -> InstalledPackage | None:
    """Pick the highest installed version, or None when nothing is installed."""
    if not installed:
        return None
    return max(installed, key=lambda p: p.parsed_version)


def origin_is_trusted(installed: InstalledPackage, trusted_host: str) -> bool:
    """Whether the installation's recorded origin authority is the trusted host."""
    return installed.is_from(trusted_host)


def plan_install(request: PackageRequest) -> PlannedAction | None:
    """Plan a fresh install of the latest version, if installs are allowed."""
    if not request.install:
        return None
    return PlannedAction(
        kind="install",
        name=request.name,
        version=None,
        scope=request.scope,
    )


def plan_update(
    request: PackageRequest,
    installed: InstalledPackage,
    remote: RemotePackage,
) -> PlannedAction | None:
    """Plan an upgrade to exactly the remote's version.

    Returns None unless the remote is strictly newer *and* updates are
    allowed. Callers distinguish "newer but not allowed" with
    ``remote.is_newer_than(installed)``.
    """
    if not request.update or not remote.is_newer_than(installed):
        return None
    return PlannedAction(
        kind="update",
        name=request.name,
        version=remote.version,
        from_version=installed.version,
        scope=request.scope,
    )


def build_action(
    planned: PlannedAction,
    *,
    adapter: str,
    repository: str,
    operation_id: str,
    force: bool = True,
    allow_clobber: bool = True,
    index: int = 0,
) -> Action:
    """Turn a planned change into an adapter Action.

    ``index`` keeps ids unique when the same name is requested twice.
    """
    return Action(
        id=f"{operation_id}:{index}:{planned.name}:{planned.kind}",
        kind=planned.kind,
        adapter=adapter,
        params={
            "name": planned.name,
            "version": planned.version,
            "repository": repository,
            "scope": planned.scope.value,
            "force": force,
            "allow_clobber": allow_clobber,
        },
    )
