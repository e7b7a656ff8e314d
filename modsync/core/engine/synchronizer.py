"""
Module synchronizer — the per-package check / install / update loop.

Flow for each requested name (fresh snapshots every time):

    query installed ──► none ──────► plan install ─► confirm ─► apply
                    └─► untrusted ─► UnsupportedSource (stop)
                    └─► trusted ───► find latest ─► newer? ─► plan update ─► confirm ─► apply

Failures become ``SyncIssue`` values on the package's outcome. An
``error`` issue stops that package only; the loop always moves on.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from modsync.adapters.base import AdapterError, PackageAdapter
from modsync.adapters.registry import AdapterRegistry
from modsync.core.engine.planner import (
    build_action,
    generate_operation_id,
    origin_is_trusted,
    plan_install,
    plan_update,
    select_installed,
)
from modsync.core.models.action import Receipt
from modsync.core.models.config import DEFAULT_REPOSITORY, TRUSTED_HOST, SyncConfig
from modsync.core.models.errors import ErrorRecord
from modsync.core.models.outcome import IssueKind, PackageOutcome, SyncIssue
from modsync.core.models.package import InstallScope, PackageRequest, PlannedAction
from modsync.core.observability.logging_config import set_operation_id

logger = logging.getLogger(__name__)

# Receives the confirmation question, returns the user's answer
Confirm = Callable[[str], bool]


@dataclass
class SyncOptions:
    """Run-wide switches shared by every package in one pass."""

    install: bool = False
    update: bool = False
    scope: InstallScope = InstallScope.CURRENT_USER
    dry_run: bool = False
    force: bool = False
    repository: str = DEFAULT_REPOSITORY
    trusted_host: str = TRUSTED_HOST
    force_overwrite: bool = True
    allow_clobber: bool = True

    @classmethod
    def from_config(
        cls,
        config: SyncConfig,
        *,
        install: bool | None = None,
        update: bool | None = None,
        scope: InstallScope | None = None,
        dry_run: bool = False,
        force: bool = False,
    ) -> SyncOptions:
        """Config values, overridden by any flag the caller set explicitly."""
        return cls(
            install=config.install if install is None else install,
            update=config.update if update is None else update,
            scope=config.scope if scope is None else scope,
            dry_run=dry_run,
            force=force,
            repository=config.repository.name,
            trusted_host=config.repository.trusted_host,
            force_overwrite=config.force_overwrite,
            allow_clobber=config.allow_clobber,
        )


@dataclass
class SyncReport:
    """Result of one sync pass over a list of names."""

    operation_id: str = ""
    dry_run: bool = False
    outcomes: list[PackageOutcome] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if o.failed)

    @property
    def warnings(self) -> int:
        return sum(len(o.warnings) for o in self.outcomes)

    @property
    def changed(self) -> int:
        return sum(1 for o in self.outcomes if o.changed)

    @property
    def unattended_declines(self) -> list[PackageOutcome]:
        """Changes skipped only because no confirmation source was available."""
        return [
            o for o in self.outcomes
            if o.status == "declined" and o.receipt is not None
            and o.receipt.metadata.get("unattended")
        ]

    @property
    def all_ok(self) -> bool:
        return self.failed == 0

    @property
    def status(self) -> str:
        if self.failed == 0:
            return "ok"
        if self.failed < self.total:
            return "partial"
        return "failed"

    def to_dict(self) -> dict:
        return {
            "operation_id": self.operation_id,
            "dry_run": self.dry_run,
            "status": self.status,
            "total": self.total,
            "failed": self.failed,
            "warnings": self.warnings,
            "changed": self.changed,
            "outcomes": [o.model_dump(mode="json") for o in self.outcomes],
        }


# ── Apply ───────────────────────────────────────────────────────


def is_confirmed(planned: PlannedAction, options: SyncOptions, confirm: Confirm | None) -> bool:
    """Resolve the confirmation gate for one planned change.

    Dry-run never confirms, ``force`` always does, otherwise the
    ``confirm`` callback decides. No callback means no consent.
    """
    if options.dry_run:
        return False
    if options.force:
        return True
    if confirm is None:
        logger.info("No confirmation source for '%s', skipping", planned.describe())
        return False
    return confirm(planned.prompt)


def apply_action(
    planned: PlannedAction,
    *,
    confirmed: bool,
    registry: AdapterRegistry,
    adapter_name: str,
    options: SyncOptions,
    operation_id: str,
    index: int = 0,
    unattended: bool = False,
) -> Receipt:
    """Perform a planned change, gated on ``confirmed`` and dry-run.

    Dry-run goes through the registry so the action is still validated,
    but nothing is executed. ``unattended`` marks a decline that happened
    because nobody could be asked.
    """
    action = build_action(
        planned,
        adapter=adapter_name,
        repository=options.repository,
        operation_id=operation_id,
        force=options.force_overwrite,
        allow_clobber=options.allow_clobber,
        index=index,
    )

    if options.dry_run:
        return registry.execute_action(action, dry_run=True)

    if not confirmed:
        return Receipt.skip(
            adapter=adapter_name,
            action_id=action.id,
            reason=f"Declined: {planned.describe()}",
            metadata={"declined": True, "unattended": unattended},
        )

    return registry.execute_action(action)


# ── Per-package processing ──────────────────────────────────────


def _log_issue(issue: SyncIssue) -> None:
    log = logger.error if issue.fatal else logger.warning
    log(
        "%s [%s]: %s (reason=%s, target=%s, location=%s)",
        issue.package,
        issue.kind.value,
        issue.message,
        issue.reason or "-",
        issue.target or "-",
        " ".join(issue.location.split()) or "-",
    )


def _issue(
    kind: IssueKind,
    name: str,
    message: str,
    record: ErrorRecord | None = None,
) -> SyncIssue:
    issue = SyncIssue.of(kind, name, message, record)
    _log_issue(issue)
    return issue


def _settle(
    outcome: PackageOutcome,
    planned: PlannedAction,
    receipt: Receipt,
) -> PackageOutcome:
    """Fold an apply receipt into the package outcome."""
    outcome.action = planned
    outcome.receipt = receipt
    name = planned.name

    if receipt.ok:
        outcome.status = "installed" if planned.kind == "install" else "updated"
        outcome.message = receipt.output or planned.describe()
        version = planned.version or receipt.metadata.get("version")
        if version:
            outcome.installed_version = version
        logger.info("%s: %s", name, outcome.message)
        return outcome

    if receipt.skipped:
        if receipt.metadata.get("dry_run"):
            outcome.status = "planned"
            outcome.message = f"[dry-run] Would {planned.describe()}"
        else:
            outcome.status = "declined"
            outcome.message = receipt.output
        logger.info("%s: %s", name, outcome.message)
        return outcome

    record = receipt.error_record(target=name)
    if planned.kind == "install":
        outcome.issues.append(
            _issue(IssueKind.INSTALL_FAILED, name, f"Failed to install {name}: {record.message}", record)
        )
        outcome.status = "failed"
    else:
        outcome.issues.append(
            _issue(
                IssueKind.UPDATE_FAILED,
                name,
                f"Failed to update {name} to {planned.version}: {record.message}",
                record,
            )
        )
        outcome.status = "warning"
    outcome.message = outcome.issues[-1].message
    return outcome


def sync_package(
    request: PackageRequest,
    *,
    adapter: PackageAdapter,
    registry: AdapterRegistry,
    options: SyncOptions,
    confirm: Confirm | None = None,
    operation_id: str = "",
    index: int = 0,
) -> PackageOutcome:
    """Check one package and install or update it as allowed.

    Never raises for package-level failures; they are returned as issues.
    """
    name = request.name
    outcome = PackageOutcome(name=name, status="up_to_date")

    def _apply(planned: PlannedAction) -> PackageOutcome:
        confirmed = is_confirmed(planned, options, confirm)
        receipt = apply_action(
            planned,
            confirmed=confirmed,
            registry=registry,
            adapter_name=adapter.name,
            options=options,
            operation_id=operation_id,
            index=index,
            unattended=confirm is None,
        )
        return _settle(outcome, planned, receipt)

    # ── QueryLocal ──────────────────────────────────────────────
    logger.info("Checking %s", name)
    try:
        installed = select_installed(adapter.query_installed(name))
    except AdapterError as e:
        outcome.issues.append(_issue(
            IssueKind.QUERY_INSTALLED_FAILED,
            name,
            f"Could not query installed versions of {name}: {e.record.message}",
            e.record,
        ))
        outcome.status = "failed"
        outcome.message = outcome.issues[-1].message
        return outcome

    # ── NotFound ────────────────────────────────────────────────
    if installed is None:
        planned = plan_install(request)
        if planned is None:
            outcome.issues.append(_issue(
                IssueKind.NOT_INSTALLED,
                name,
                f"{name} is not installed and installation is disabled",
            ))
            outcome.status = "failed"
            outcome.message = outcome.issues[-1].message
            return outcome
        return _apply(planned)

    outcome.installed_version = installed.version

    # ── FoundUntrusted ──────────────────────────────────────────
    if not origin_is_trusted(installed, options.trusted_host):
        outcome.issues.append(_issue(
            IssueKind.UNSUPPORTED_SOURCE,
            name,
            f"{name} {installed.version} was installed from unsupported source "
            f"'{installed.origin or 'unknown'}'; only {options.trusted_host} is managed",
        ))
        outcome.status = "failed"
        outcome.message = outcome.issues[-1].message
        return outcome

    # ── FoundTrusted ────────────────────────────────────────────
    try:
        remote = adapter.find_latest(name, options.repository)
    except AdapterError as e:
        outcome.issues.append(_issue(
            IssueKind.QUERY_LATEST_FAILED,
            name,
            f"Could not find the latest version of {name} in {options.repository}: {e.record.message}",
            e.record,
        ))
        outcome.status = "warning"
        outcome.message = outcome.issues[-1].message
        return outcome

    outcome.latest_version = remote.version

    if not remote.is_newer_than(installed):
        outcome.message = f"{name} {installed.version} is up to date"
        logger.info("%s (latest %s)", outcome.message, remote.version)
        return outcome

    planned = plan_update(request, installed, remote)
    if planned is None:
        outcome.issues.append(_issue(
            IssueKind.UPDATE_AVAILABLE,
            name,
            f"Update available for {name}: {installed.version} -> {remote.version}",
        ))
        outcome.status = "warning"
        outcome.message = outcome.issues[-1].message
        return outcome

    return _apply(planned)


def sync_packages(
    names: Iterable[str],
    *,
    registry: AdapterRegistry,
    adapter_name: str,
    options: SyncOptions,
    confirm: Confirm | None = None,
    on_outcome: Callable[[PackageOutcome], None] | None = None,
) -> SyncReport:
    """Process every name in order; one package's failure never stops the rest.

    Args:
        names: Package names. Duplicates are processed independently.
        registry: Registry holding the adapter and dispatching mutations.
        adapter_name: Which registered adapter to use.
        options: Run-wide switches.
        confirm: Confirmation callback (interactive prompt).
        on_outcome: Called after each package, e.g. to stream output.

    Raises:
        ValueError: If ``adapter_name`` is not registered.
    """
    adapter = registry.get(adapter_name)
    if adapter is None:
        raise ValueError(f"No adapter registered for '{adapter_name}'")

    report = SyncReport(operation_id=generate_operation_id(), dry_run=options.dry_run)
    set_operation_id(report.operation_id)

    try:
        for index, name in enumerate(names):
            request = PackageRequest(
                name=name,
                install=options.install,
                update=options.update,
                scope=options.scope,
            )
            outcome = sync_package(
                request,
                adapter=adapter,
                registry=registry,
                options=options,
                confirm=confirm,
                operation_id=report.operation_id,
                index=index,
            )
            report.outcomes.append(outcome)
            if on_outcome is not None:
                on_outcome(outcome)

        logger.info(
            "Sync %s: %d packages, %d failed, %d warnings, %d changed",
            report.operation_id,
            report.total,
            report.failed,
            report.warnings,
            report.changed,
        )
    finally:
        set_operation_id(None)
    return report
