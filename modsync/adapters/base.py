"""
Adapter base — the contract between the synchronizer and a package manager.

Reads and writes follow different rules:

* queries (``query_installed``, ``find_latest``) return models and raise
  ``AdapterError`` on failure, so the caller can decide the severity;
* mutations go through ``validate`` / ``execute`` and return a Receipt.
  They never raise — failures are captured in the Receipt.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel

from modsync.core.models.action import Action, Receipt
from modsync.core.models.errors import ErrorRecord
from modsync.core.models.package import InstalledPackage, RemotePackage


class AdapterError(Exception):
    """A package-manager query failed. Carries the structured context."""

    def __init__(self, record: ErrorRecord):
        super().__init__(record.message)
        self.record = record


class ExecutionContext(BaseModel):
    """Everything an adapter needs to execute a mutating action."""

    action: Action
    dry_run: bool = False


class PackageAdapter(ABC):
    """Abstract base class for package-manager backends.

    To create a new backend:
        1. Subclass PackageAdapter
        2. Implement name, is_available, the two queries, validate, execute
        3. Register it in the AdapterRegistry
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The adapter identifier (e.g., 'powershellget', 'mock')."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the underlying package manager can be invoked.

        Should be fast and never raise.
        """

    @abstractmethod
    def query_installed(self, name: str) -> list[InstalledPackage]:
        """List every installed version of ``name``.

        Returns an empty list when the package is not installed.

        Raises:
            AdapterError: If the local registry could not be queried.
        """

    @abstractmethod
    def find_latest(self, name: str, repository: str) -> RemotePackage:
        """Ask ``repository`` for the latest published version of ``name``.

        Raises:
            AdapterError: If the repository query failed or found nothing.
        """

    @abstractmethod
    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        """Validate that the action can be executed.

        Returns:
            (is_valid, error_message). error_message is empty if valid.
        """

    @abstractmethod
    def execute(self, context: ExecutionContext) -> Receipt:
        """Install or overwrite a package and return a receipt.

        MUST never raise exceptions. All failures are captured
        in the Receipt with status='failed'.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
