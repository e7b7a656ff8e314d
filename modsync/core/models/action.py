"""
Action and Receipt models — the mutation contract.

Actions describe an install or upgrade the synchronizer wants performed.
Receipts describe what actually happened. Adapters receive Actions and
return Receipts; a failed mutation is a failed Receipt, never an exception.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from modsync.core.models.errors import ErrorRecord


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class Action(BaseModel):
    """A mutating operation to be executed by a package adapter.

    Params understood by the package adapters:
        name (str): Module name.
        version (str | None): Exact version to install. None = latest.
        repository (str): Repository to install from.
        scope (str): ``CurrentUser`` or ``AllUsers``.
        force (bool): Overwrite an existing installation.
        allow_clobber (bool): Allow commands that shadow existing ones.
    """

    id: str                         # unique action identifier
    kind: Literal["install", "update"] = "install"
    adapter: str                    # which adapter handles this
    params: dict[str, Any] = Field(default_factory=dict)

    @property
    def target(self) -> str:
        """The module name this action applies to."""
        return str(self.params.get("name", ""))


class Receipt(BaseModel):
    """Result of an adapter execution.

    ``metadata["error_record"]`` holds the structured failure context
    (message, reason, target, location) when the adapter could supply one.
    """

    adapter: str
    action_id: str
    status: Literal["ok", "skipped", "failed"] = "ok"

    started_at: str = Field(default_factory=_now_iso)
    ended_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    output: str = ""
    error: str | None = None

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Whether the action succeeded."""
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        """Whether the action failed."""
        return self.status == "failed"

    @property
    def skipped(self) -> bool:
        return self.status == "skipped"

    def error_record(self, target: str = "") -> ErrorRecord:
        """Structured failure context, falling back to the plain error text."""
        raw = self.metadata.get("error_record")
        if isinstance(raw, dict):
            return ErrorRecord.model_validate(raw)
        return ErrorRecord(
            message=self.error or "unknown failure",
            reason="AdapterFailure",
            target=target,
            location=self.adapter,
        )

    @classmethod
    def success(
        cls,
        adapter: str,
        action_id: str,
        output: str = "",
        **kwargs: Any,
    ) -> Receipt:
        """Create a success receipt."""
        return cls(
            adapter=adapter,
            action_id=action_id,
            status="ok",
            output=output,
            **kwargs,
        )

    @classmethod
    def failure(
        cls,
        adapter: str,
        action_id: str,
        error: str,
        record: ErrorRecord | None = None,
        **kwargs: Any,
    ) -> Receipt:
        """Create a failure receipt, optionally carrying an error record."""
        metadata: dict[str, Any] = dict(kwargs.pop("metadata", {}) or {})
        if record is not None:
            metadata["error_record"] = record.model_dump()
        return cls(
            adapter=adapter,
            action_id=action_id,
            status="failed",
            error=error,
            metadata=metadata,
            **kwargs,
        )

    @classmethod
    def skip(
        cls,
        adapter: str,
        action_id: str,
        reason: str = "",
        **kwargs: Any,
    ) -> Receipt:
        """Create a skip receipt."""
        return cls(
            adapter=adapter,
            action_id=action_id,
            status="skipped",
            output=reason,
            **kwargs,
        )
