"""
Error context — the structured shape of every caught failure.

PowerShell reports failures as ErrorRecords (message, category reason,
target, invocation position). Python-side failures are mapped onto the
same four fields so everything downstream handles one shape.
"""

from __future__ import annotations

import traceback
from pathlib import Path

from pydantic import BaseModel


class ErrorRecord(BaseModel):
    """Diagnostic context captured from a failed package-manager call."""

    message: str
    reason: str = ""        # categorical reason, e.g. "InvalidOperation"
    target: str = ""        # failing target (module name, repository, ...)
    location: str = ""      # where the failure originated

    @classmethod
    def from_exception(cls, exc: BaseException, target: str = "") -> ErrorRecord:
        """Build a record from a Python exception.

        ``location`` is the innermost frame of the traceback, formatted as
        ``file:line in function``.
        """
        location = ""
        frames = traceback.extract_tb(exc.__traceback__) if exc.__traceback__ else []
        if frames:
            last = frames[-1]
            location = f"{Path(last.filename).name}:{last.lineno} in {last.name}"
        return cls(
            message=str(exc) or type(exc).__name__,
            reason=type(exc).__name__,
            target=target,
            location=location,
        )

    def describe(self) -> str:
        """One-line rendering for log messages."""
        parts = [self.message]
        if self.reason:
            parts.append(f"reason={self.reason}")
        if self.target:
            parts.append(f"target={self.target}")
        if self.location:
            parts.append(f"at {' '.join(self.location.split())}")
        return " | ".join(parts)
