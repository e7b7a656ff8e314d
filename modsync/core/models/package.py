"""
Package models — what was asked for, what is installed, what is published.

Versions are kept as the strings the package manager reported, but are
validated on construction so ordering comparisons cannot fail later.
PowerShell versions are a numeric release ("2.4.0", "1.0.0.1") with an
optional prerelease label after a dash ("-preview3", "-nightly",
"-rc.2"). Labels follow SemVer precedence: a release sorts above any of
its prereleases, and labels compare identifier by identifier.
"""

from __future__ import annotations

import functools
import re
from enum import Enum
from typing import Literal
from urllib.parse import urlparse

from packaging.version import InvalidVersion, Version
from pydantic import BaseModel, Field, field_validator

_RELEASE_RE = re.compile(r"^\d+(\.\d+){0,3}$")
_LABEL_RE = re.compile(r"^[0-9A-Za-z-]+(\.[0-9A-Za-z-]+)*$")


class InstallScope(str, Enum):
    """Installation visibility level."""

    CURRENT_USER = "CurrentUser"
    ALL_USERS = "AllUsers"


@functools.total_ordering
class ModuleVersion:
    """An orderable PowerShell module version."""

    __slots__ = ("release", "prerelease")

    def __init__(self, text: str):
        raw = text.strip().lstrip("vV").split("+", 1)[0]
        base, dash, label = raw.partition("-")
        if not _RELEASE_RE.match(base) or (dash and not _LABEL_RE.match(label)):
            raise InvalidVersion(f"Invalid module version: {text!r}")
        self.release = Version(base)
        self.prerelease = label

    def _key(self) -> tuple:
        if not self.prerelease:
            return (self.release, 1, ())
        idents = tuple(
            (0, int(part), "") if part.isdigit() else (1, 0, part.lower())
            for part in self.prerelease.split(".")
        )
        return (self.release, 0, idents)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ModuleVersion):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other: ModuleVersion) -> bool:
        if not isinstance(other, ModuleVersion):
            return NotImplemented
        return self._key() < other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    @property
    def is_prerelease(self) -> bool:
        return bool(self.prerelease)

    def __str__(self) -> str:
        return f"{self.release}-{self.prerelease}" if self.prerelease else str(self.release)

    def __repr__(self) -> str:
        return f"<ModuleVersion('{self}')>"


def parse_version(text: str) -> ModuleVersion:
    """Parse a package-manager version string.

    Raises:
        InvalidVersion: If the string is not an orderable version.
    """
    return ModuleVersion(text)


def _check_version(value: str) -> str:
    value = value.strip()
    try:
        parse_version(value)
    except InvalidVersion as e:
        raise ValueError(f"Not an orderable version: {value!r}") from e
    return value


def authority(location: str) -> str:
    """Return the lower-cased authority (host[:port]) of a URL, or ''."""
    if not location:
        return ""
    return urlparse(location.strip()).netloc.lower()


class PackageRequest(BaseModel):
    """One requested package and what the caller allows for it."""

    name: str = Field(min_length=1)
    install: bool = False
    update: bool = False
    scope: InstallScope = InstallScope.CURRENT_USER

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Package name must not be blank")
        return v


class InstalledPackage(BaseModel):
    """A locally installed version of a package (fresh snapshot)."""

    name: str
    version: str
    origin: str = ""        # repository source location recorded at install
    repository: str = ""

    @field_validator("version")
    @classmethod
    def check_version(cls, v: str) -> str:
        return _check_version(v)

    @property
    def parsed_version(self) -> ModuleVersion:
        return parse_version(self.version)

    @property
    def origin_authority(self) -> str:
        return authority(self.origin)

    def is_from(self, trusted_host: str) -> bool:
        """Whether this installation came from the given repository host."""
        return bool(self.origin_authority) and self.origin_authority == trusted_host.strip().lower()


class RemotePackage(BaseModel):
    """The latest version a repository reports for a package."""

    name: str
    version: str
    repository: str = ""

    @field_validator("version")
    @classmethod
    def check_version(cls, v: str) -> str:
        return _check_version(v)

    @property
    def parsed_version(self) -> ModuleVersion:
        return parse_version(self.version)

    def is_newer_than(self, installed: InstalledPackage) -> bool:
        """Strict version ordering, never string comparison."""
        return self.parsed_version > installed.parsed_version


class PlannedAction(BaseModel):
    """An intended mutation, produced by planning and consumed by apply."""

    kind: Literal["install", "update"]
    name: str
    version: str | None = None          # None = whatever is latest
    from_version: str | None = None     # installed version being replaced
    scope: InstallScope = InstallScope.CURRENT_USER

    @property
    def prompt(self) -> str:
        """Confirmation question shown before applying."""
        return f"{'Install' if self.kind == 'install' else 'Update'} {self.name}?"

    def describe(self) -> str:
        if self.kind == "install":
            return f"install {self.name} {self.version or '(latest)'} [{self.scope.value}]"
        return f"update {self.name} {self.from_version} -> {self.version} [{self.scope.value}]"
