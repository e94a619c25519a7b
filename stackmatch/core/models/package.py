"""
Package models: manager identifiers, version-query results, batch outcomes.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field


class PackageManagerType(StrEnum):
    """Supported OS package managers.

    Used as the key for name translation and for driver selection.
    """

    APT = "apt"
    DNF = "dnf"
    YUM = "yum"
    PACMAN = "pacman"
    SNAP = "snap"
    HOMEBREW = "homebrew"
    CHOCOLATEY = "chocolatey"
    SCOOP = "scoop"
    WINGET = "winget"


class PackageVersionInfo(BaseModel):
    """Result of a version query against one package.

    Built fresh on every query; installed state can change between calls.
    An empty ``installed_version`` means the package is not installed.
    """

    name: str
    installed_version: str = ""
    latest_version: str | None = None
    satisfies_constraint: bool = False
    constraint: str = ""

    @property
    def installed(self) -> bool:
        return self.installed_version != ""


class BatchInstallResult(BaseModel):
    """Outcome of a best-effort batch install.

    ``installed`` holds the names that were newly installed,
    ``skipped`` the ones already present, ``failed`` maps each
    failing package to its error message.
    """

    installed: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    failed: dict[str, str] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def total(self) -> int:
        return len(self.installed) + len(self.skipped) + len(self.failed)
