"""
Winget driver: Windows Package Manager.

Winget prints fixed-width tables whose columns are sized to the
content, so values are sliced at the offsets of the header titles
rather than split on whitespace (names contain spaces).

Winget has no multi-package install; batches run one package at a time.
"""

from __future__ import annotations

import logging

from stackmatch.adapters.base import PackageManager
from stackmatch.adapters.package_managers._common import output_mentions, select_version
from stackmatch.core.errors import (
    CommandFailedError,
    PackageAlreadyInstalledError,
    PackageNotFoundError,
    VersionNotAvailableError,
)
from stackmatch.core.models.package import PackageManagerType, PackageVersionInfo

logger = logging.getLogger(__name__)

_AGREEMENTS = ("--accept-package-agreements", "--accept-source-agreements")
_NOT_FOUND = ("No package found matching input criteria",)
_NOT_INSTALLED = ("No installed package found matching input criteria",)


def _split_table(output: str) -> tuple[str, list[str]]:
    """Header line and data lines of a winget table.

    The data starts after the dashed separator; output without one
    falls back to skipping the first two lines.
    """
    lines = output.splitlines()
    for i, line in enumerate(lines):
        if line.strip().startswith("---") and i > 0:
            return lines[i - 1], [ln for ln in lines[i + 1:] if ln.strip()]
    header = lines[0] if lines else ""
    return header, [ln for ln in lines[2:] if ln.strip()]


def _column(header: str, row: str, title: str) -> str:
    """Cell under ``title`` in a fixed-width row, "" if the column is absent."""
    start = header.find(title)
    if start < 0:
        return ""
    end = len(row)
    rest = header[start + len(title):]
    stripped = rest.lstrip()
    if stripped:
        end = start + len(title) + (len(rest) - len(stripped))
    return row[start:end].strip()


class WingetPackageManager(PackageManager):
    name = "Winget"
    type = PackageManagerType.WINGET
    executable = "winget"

    def _installed_row(self, pkg: str) -> tuple[str, str] | None:
        """(header, matching row) from ``winget list --name pkg``."""
        try:
            output = self._run("list", "--name", pkg)
        except CommandFailedError as e:
            if output_mentions(e, *_NOT_INSTALLED):
                return None
            raise

        header, rows = _split_table(output)
        for row in rows:
            if pkg.lower() in row.lower():
                return header, row
        return None

    def _install(self, pkg: str, *extra: str) -> None:
        try:
            self._run("install", pkg, *extra, "--silent", *_AGREEMENTS)
        except CommandFailedError as e:
            if output_mentions(e, *_NOT_FOUND):
                raise PackageNotFoundError(pkg) from e
            raise

    def install_package(self, pkg: str) -> None:
        if self._installed_row(pkg) is not None:
            raise PackageAlreadyInstalledError(pkg)
        self._install(pkg)

    def install_multiple(self, pkgs: list[str]) -> None:
        for pkg in pkgs:
            try:
                self.install_package(pkg)
            except PackageAlreadyInstalledError:
                logger.debug("winget: %s already installed", pkg)

    def install_version(self, pkg: str, constraint: str) -> None:
        if self.check_version(pkg, constraint).satisfies_constraint:
            return
        version = select_version(self.available_versions(pkg), constraint)
        if version is None:
            raise VersionNotAvailableError(pkg, constraint)
        self._install(pkg, "--version", version)

    def available_versions(self, pkg: str) -> list[str]:
        try:
            output = self._run("show", pkg, "--versions")
        except CommandFailedError as e:
            if output_mentions(e, *_NOT_FOUND):
                raise PackageNotFoundError(pkg) from e
            raise
        _, rows = _split_table(output)
        return [row.strip() for row in rows]

    def uninstall_package(self, pkg: str) -> None:
        if self._installed_row(pkg) is None:
            return
        self._run("uninstall", pkg, "--silent")

    def get_installed_version(self, pkg: str) -> PackageVersionInfo:
        found = self._installed_row(pkg)
        if found is None:
            return PackageVersionInfo(name=pkg)
        header, row = found
        return PackageVersionInfo(name=pkg, installed_version=_column(header, row, "Version"))

    def update_package_manager(self) -> None:
        self._run("--version")
        self._run("upgrade", "--all", "--silent", *_AGREEMENTS)
