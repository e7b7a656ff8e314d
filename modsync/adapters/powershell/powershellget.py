"""
PowerShellGet adapter — drives Get-InstalledModule, Find-Module and
Install-Module through a PowerShell subprocess.

Each call runs one small script under ``-NoProfile -NonInteractive``.
The script prints a single JSON document on its last stdout line. When a
cmdlet fails, the script's catch block prints the PowerShell ErrorRecord
instead — message, category reason, target name and position message —
and exits 1, so failures reach Python with their full context.
"""

from __future__ import annotations

import json
import logging
import re
import shutil
import subprocess
import time
from typing import Any

from pydantic import ValidationError

from modsync.adapters.base import AdapterError, ExecutionContext, PackageAdapter
from modsync.core.models.action import Receipt
from modsync.core.models.errors import ErrorRecord
from modsync.core.models.package import InstalledPackage, InstallScope, RemotePackage

logger = logging.getLogger(__name__)

# Module names as accepted by the PowerShell Gallery
_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")
_VERSION_RE = re.compile(r"^[0-9][0-9A-Za-z.+-]*$")

_WRAPPER = """\
$ErrorActionPreference = 'Stop'
$ProgressPreference = 'SilentlyContinue'
try {
__BODY__
} catch {
    $e = $_
    [pscustomobject]@{
        error    = $true
        message  = $e.Exception.Message
        reason   = [string]$e.CategoryInfo.Reason
        target   = [string]$e.CategoryInfo.TargetName
        location = [string]$e.InvocationInfo.PositionMessage
        errorId  = [string]$e.FullyQualifiedErrorId
    } | ConvertTo-Json -Compress
    exit 1
}
"""

_QUERY_INSTALLED = """\
$found = @()
try {
    $found = @(Get-InstalledModule -Name __NAME__ -AllVersions -ErrorAction Stop)
} catch {
    if ($_.FullyQualifiedErrorId -notlike 'NoMatchFound*') { throw }
}
ConvertTo-Json -Compress -Depth 3 -InputObject @($found | ForEach-Object {
    [pscustomobject]@{
        name       = $_.Name
        version    = [string]$_.Version
        origin     = [string]$_.RepositorySourceLocation
        repository = [string]$_.Repository
    }
})
"""

_FIND_LATEST = """\
$m = Find-Module -Name __NAME__ -Repository __REPO__ -ErrorAction Stop | Select-Object -First 1
[pscustomobject]@{
    name       = $m.Name
    version    = [string]$m.Version
    repository = [string]$m.Repository
} | ConvertTo-Json -Compress
"""

_INSTALL = """\
$params = @{
    Name         = __NAME__
    Repository   = __REPO__
    Scope        = __SCOPE__
    Force        = __FORCE__
    AllowClobber = __CLOBBER__
    ErrorAction  = 'Stop'
}
__VERSION_LINE__
Install-Module @params
[pscustomobject]@{ ok = $true } | ConvertTo-Json -Compress
"""


def _ps_quote(value: str) -> str:
    """Quote a value as a PowerShell single-quoted string literal."""
    return "'" + value.replace("'", "''") + "'"


def _ps_bool(value: bool) -> str:
    return "$true" if value else "$false"


class PowerShellGetAdapter(PackageAdapter):
    """PowerShellGet backend.

    Action params:
        name (str): Module name.
        version (str | None): RequiredVersion; omitted = latest.
        repository (str): Repository name (default: PSGallery).
        scope (str): CurrentUser or AllUsers.
        force (bool): Pass -Force (default: True).
        allow_clobber (bool): Pass -AllowClobber (default: True).
    """

    def __init__(self, executable: str = "pwsh", timeout: int | None = None):
        self._executable = executable
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "powershellget"

    @property
    def executable(self) -> str:
        return self._executable

    def is_available(self) -> bool:
        return shutil.which(self._executable) is not None

    # ── Subprocess plumbing ─────────────────────────────────────

    def _command(self, body: str) -> list[str]:
        script = _WRAPPER.replace("__BODY__", body)
        return [self._executable, "-NoProfile", "-NonInteractive", "-Command", script]

    def _invoke(self, body: str, target: str) -> Any:
        """Run a script body and return its decoded JSON payload.

        Raises:
            AdapterError: On launch failure, timeout, a PowerShell error
                record, or output that is not JSON.
        """
        try:
            result = subprocess.run(
                self._command(body),
                capture_output=True,
                text=True,
                timeout=self._timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise AdapterError(ErrorRecord.from_exception(e, target=target)) from e

        payload = _last_json_line(result.stdout)
        if isinstance(payload, dict) and payload.get("error"):
            raise AdapterError(ErrorRecord(
                message=str(payload.get("message") or "PowerShell error"),
                reason=str(payload.get("reason") or payload.get("errorId") or ""),
                target=str(payload.get("target") or target),
                location=str(payload.get("location") or ""),
            ))

        if result.returncode != 0 or payload is None:
            stderr = result.stderr.strip()
            raise AdapterError(ErrorRecord(
                message=stderr or f"{self._executable} exited with code {result.returncode}",
                reason="MalformedOutput" if result.returncode == 0 else "ProcessFailed",
                target=target,
                location=self._executable,
            ))

        return payload

    # ── Queries ─────────────────────────────────────────────────

    def query_installed(self, name: str) -> list[InstalledPackage]:
        _require_name(name)
        logger.debug("Get-InstalledModule %s", name)
        data = self._invoke(_QUERY_INSTALLED.replace("__NAME__", _ps_quote(name)), target=name)
        if isinstance(data, dict):
            data = [data]

        installed: list[InstalledPackage] = []
        for entry in data or []:
            try:
                installed.append(InstalledPackage.model_validate(entry))
            except ValidationError as e:
                # Dropping the entry would make an installed module look absent
                version = entry.get("version") if isinstance(entry, dict) else entry
                raise AdapterError(ErrorRecord(
                    message=f"Installed {name} reports an unusable version {version!r}",
                    reason="InvalidVersion",
                    target=name,
                )) from e
        return installed

    def find_latest(self, name: str, repository: str) -> RemotePackage:
        _require_name(name)
        logger.debug("Find-Module %s -Repository %s", name, repository)
        body = (
            _FIND_LATEST
            .replace("__NAME__", _ps_quote(name))
            .replace("__REPO__", _ps_quote(repository))
        )
        data = self._invoke(body, target=name)
        try:
            return RemotePackage.model_validate(data)
        except ValidationError as e:
            raise AdapterError(ErrorRecord.from_exception(e, target=name)) from e

    # ── Mutations ───────────────────────────────────────────────

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        params = context.action.params
        name = params.get("name", "")
        if not name:
            return False, "Missing required param: 'name'"
        if not _NAME_RE.match(name):
            return False, f"Invalid module name: {name!r}"
        version = params.get("version")
        if version and not _VERSION_RE.match(str(version)):
            return False, f"Invalid version: {version!r}"
        scope = params.get("scope", InstallScope.CURRENT_USER.value)
        if scope not in {s.value for s in InstallScope}:
            return False, f"Invalid scope: {scope!r}"
        if not context.dry_run and not self.is_available():
            return False, f"{self._executable} not found on PATH"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        action = context.action
        params = action.params
        name = params["name"]
        version = params.get("version")
        repository = params.get("repository", "PSGallery")

        version_line = (
            f"$params.RequiredVersion = {_ps_quote(str(version))}" if version else ""
        )
        body = (
            _INSTALL
            .replace("__NAME__", _ps_quote(name))
            .replace("__REPO__", _ps_quote(repository))
            .replace("__SCOPE__", _ps_quote(params.get("scope", InstallScope.CURRENT_USER.value)))
            .replace("__FORCE__", _ps_bool(params.get("force", True)))
            .replace("__CLOBBER__", _ps_bool(params.get("allow_clobber", True)))
            .replace("__VERSION_LINE__", version_line)
        )

        logger.info("Install-Module %s %s (scope=%s)", name, version or "latest", params.get("scope"))
        start = time.monotonic()
        try:
            self._invoke(body, target=name)
        except AdapterError as e:
            logger.debug("Install-Module %s failed: %s", name, e.record.describe())
            return Receipt.failure(
                adapter=self.name,
                action_id=action.id,
                error=e.record.message,
                record=e.record,
                duration_ms=int((time.monotonic() - start) * 1000),
                metadata={"repository": repository},
            )

        return Receipt.success(
            adapter=self.name,
            action_id=action.id,
            output=f"Installed {name} {version or '(latest)'}",
            duration_ms=int((time.monotonic() - start) * 1000),
            metadata={"repository": repository, "version": version},
        )


def _require_name(name: str) -> None:
    if not _NAME_RE.match(name or ""):
        raise AdapterError(ErrorRecord(
            message=f"Invalid module name: {name!r}",
            reason="InvalidArgument",
            target=name,
        ))


def _last_json_line(stdout: str) -> Any:
    """Decode the last JSON-looking line of stdout, or None."""
    for line in reversed(stdout.splitlines()):
        line = line.strip()
        if not line or line[0] not in "[{":
            continue
        try:
            return json.loads(line)
        except json.JSONDecodeError:
            return None
    return None
