"""
Mock adapter — in-memory package manager for tests.

Holds an installed catalogue and a remote catalogue, records every call,
and can be told to fail any query or install for a given package name.
Names are matched case-insensitively, like PowerShellGet does.
"""

from __future__ import annotations

from modsync.adapters.base import AdapterError, ExecutionContext, PackageAdapter
from modsync.core.models.action import Action, Receipt
from modsync.core.models.errors import ErrorRecord
from modsync.core.models.package import InstalledPackage, RemotePackage

DEFAULT_MOCK_ORIGIN = "https://www.powershellgallery.com/api/v2"


class MockPackageAdapter(PackageAdapter):
    """Universal mock backend for testing."""

    def __init__(
        self,
        adapter_name: str = "mock",
        available: bool = True,
        default_origin: str = DEFAULT_MOCK_ORIGIN,
    ):
        self._name = adapter_name
        self._available = available
        self._default_origin = default_origin
        self._installed: dict[str, list[InstalledPackage]] = {}
        self._remote: dict[str, RemotePackage] = {}
        self._failures: dict[tuple[str, str], ErrorRecord] = {}
        self._call_log: list[tuple[str, str]] = []
        self._executed: list[Action] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_log(self) -> list[tuple[str, str]]:
        """Every (operation, package) this mock has received, in order."""
        return self._call_log

    @property
    def install_calls(self) -> list[Action]:
        """Actions passed to ``execute`` (mutating calls only)."""
        return self._executed

    def is_available(self) -> bool:
        return self._available

    # ── Catalogue setup ─────────────────────────────────────────

    def add_installed(self, name: str, version: str, origin: str | None = None) -> None:
        self._installed.setdefault(name.lower(), []).append(
            InstalledPackage(
                name=name,
                version=version,
                origin=self._default_origin if origin is None else origin,
                repository="PSGallery",
            )
        )

    def add_remote(self, name: str, version: str, repository: str = "PSGallery") -> None:
        self._remote[name.lower()] = RemotePackage(
            name=name, version=version, repository=repository,
        )

    def set_failure(self, operation: str, name: str, message: str = "Mock failure") -> None:
        """Make ``operation`` fail for ``name``.

        ``operation`` is one of 'query_installed', 'find_latest', 'install'.
        """
        self._failures[(operation, name.lower())] = ErrorRecord(
            message=message,
            reason="MockFailure",
            target=name,
            location=f"mock:{operation}",
        )

    def reset(self) -> None:
        """Clear call log and injected failures (catalogues are kept)."""
        self._call_log.clear()
        self._executed.clear()
        self._failures.clear()

    # ── Queries ─────────────────────────────────────────────────

    def query_installed(self, name: str) -> list[InstalledPackage]:
        self._call_log.append(("query_installed", name))
        failure = self._failures.get(("query_installed", name.lower()))
        if failure:
            raise AdapterError(failure)
        return list(self._installed.get(name.lower(), []))

    def find_latest(self, name: str, repository: str) -> RemotePackage:
        self._call_log.append(("find_latest", name))
        failure = self._failures.get(("find_latest", name.lower()))
        if failure:
            raise AdapterError(failure)
        remote = self._remote.get(name.lower())
        if remote is None:
            raise AdapterError(ErrorRecord(
                message=f"No match was found for the specified search criteria and module name '{name}'.",
                reason="ObjectNotFound",
                target=name,
                location="mock:find_latest",
            ))
        return remote

    # ── Mutations ───────────────────────────────────────────────

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        if not context.action.target:
            return False, "Missing required param: 'name'"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        action = context.action
        name = action.target
        self._call_log.append(("install", name))
        self._executed.append(action)

        failure = self._failures.get(("install", name.lower()))
        if failure:
            return Receipt.failure(
                adapter=self._name,
                action_id=action.id,
                error=failure.message,
                record=failure,
            )

        version = action.params.get("version")
        if not version:
            remote = self._remote.get(name.lower())
            version = remote.version if remote else "1.0.0"
        self.add_installed(name, version)

        return Receipt.success(
            adapter=self._name,
            action_id=action.id,
            output=f"[mock] installed {name} {version}",
            metadata={"mock": True, "version": version},
        )
