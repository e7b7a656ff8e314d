"""
Outcome models — what happened to each requested package.

Every failure or notable condition is a tagged ``SyncIssue``. Issues with
severity ``error`` end processing of that one package; ``warning`` issues
are reported and processing carries on. Neither aborts the run.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

from modsync.core.models.action import Receipt
from modsync.core.models.errors import ErrorRecord
from modsync.core.models.package import PlannedAction


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class IssueKind(str, Enum):
    """Per-package failure taxonomy."""

    NOT_INSTALLED = "NotInstalled"
    UNSUPPORTED_SOURCE = "UnsupportedSource"
    INSTALL_FAILED = "InstallFailed"
    QUERY_INSTALLED_FAILED = "QueryInstalledFailed"
    QUERY_LATEST_FAILED = "QueryLatestFailed"
    UPDATE_FAILED = "UpdateFailed"
    UPDATE_AVAILABLE = "UpdateAvailable"


_SEVERITY: dict[IssueKind, Severity] = {
    IssueKind.NOT_INSTALLED: Severity.ERROR,
    IssueKind.UNSUPPORTED_SOURCE: Severity.ERROR,
    IssueKind.INSTALL_FAILED: Severity.ERROR,
    IssueKind.QUERY_INSTALLED_FAILED: Severity.ERROR,
    # Update-path failures are warnings even though the underlying
    # install call is the same one the install path treats as fatal.
    IssueKind.QUERY_LATEST_FAILED: Severity.WARNING,
    IssueKind.UPDATE_FAILED: Severity.WARNING,
    IssueKind.UPDATE_AVAILABLE: Severity.WARNING,
}


class SyncIssue(BaseModel):
    """A tagged error value: kind + severity + diagnostic context."""

    kind: IssueKind
    severity: Severity
    package: str
    message: str
    reason: str = ""
    target: str = ""
    location: str = ""

    @property
    def fatal(self) -> bool:
        return self.severity == Severity.ERROR

    @classmethod
    def of(
        cls,
        kind: IssueKind,
        package: str,
        message: str,
        record: ErrorRecord | None = None,
    ) -> SyncIssue:
        """Build an issue, pulling reason/target/location from ``record``."""
        return cls(
            kind=kind,
            severity=_SEVERITY[kind],
            package=package,
            message=message,
            reason=record.reason if record else kind.value,
            target=(record.target if record and record.target else package),
            location=record.location if record else "",
        )


OutcomeStatus = Literal[
    "installed",     # newly installed
    "updated",       # upgraded to a newer version
    "up_to_date",    # nothing to do
    "planned",       # dry-run: would have installed/updated
    "declined",      # confirmation refused
    "warning",       # finished with warnings only
    "failed",        # fatal-per-item error
]


class PackageOutcome(BaseModel):
    """Final state of one package after a sync pass."""

    name: str
    status: OutcomeStatus
    installed_version: str | None = None
    latest_version: str | None = None
    action: PlannedAction | None = None
    receipt: Receipt | None = None
    issues: list[SyncIssue] = Field(default_factory=list)
    message: str = ""

    @property
    def failed(self) -> bool:
        return any(i.fatal for i in self.issues)

    @property
    def errors(self) -> list[SyncIssue]:
        return [i for i in self.issues if i.fatal]

    @property
    def warnings(self) -> list[SyncIssue]:
        return [i for i in self.issues if not i.fatal]

    @property
    def changed(self) -> bool:
        return self.status in ("installed", "updated")
