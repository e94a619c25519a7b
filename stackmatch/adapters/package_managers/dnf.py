"""
DNF driver: Fedora / RHEL 8+.

``RpmPackageManager`` holds the listing parser shared with YUM; the
two tools print the same ``name.arch  version-release  repo`` table
and differ only in their subcommand spelling.
"""

from __future__ import annotations

import logging

from stackmatch.adapters.base import PackageManager
from stackmatch.adapters.package_managers._common import (
    output_mentions,
    select_version,
    table_rows,
)
from stackmatch.core.errors import (
    CommandFailedError,
    PackageAlreadyInstalledError,
    PackageNotFoundError,
    VersionNotAvailableError,
)
from stackmatch.core.models.package import PackageManagerType, PackageVersionInfo

logger = logging.getLogger(__name__)

_NO_MATCHES = ("No matching Packages to list", "No matching packages to list")


class RpmPackageManager(PackageManager):
    """Shared behaviour for the RPM-based managers."""

    list_installed_args: tuple[str, ...] = ()
    list_available_args: tuple[str, ...] = ()
    update_args: tuple[str, ...] = ()
    not_found_markers: tuple[str, ...] = ()

    def _listing(self, args: tuple[str, ...], pkg: str) -> list[list[str]]:
        """Rows of ``<tool> list ... pkg`` whose name matches ``pkg``."""
        try:
            output = self._run(*args, pkg)
        except CommandFailedError as e:
            if output_mentions(e, *_NO_MATCHES):
                return []
            raise

        rows = []
        # Section titles and metadata lines never match "<pkg>.<arch>"
        for fields in table_rows(output, header_lines=0):
            if len(fields) >= 2 and fields[0].rsplit(".", 1)[0] == pkg:
                rows.append(fields)
        return rows

    def install_package(self, pkg: str) -> None:
        if self._listing(self.list_installed_args, pkg):
            raise PackageAlreadyInstalledError(pkg)
        self._install(pkg, pkg=pkg)

    def _install(self, target: str, *, pkg: str) -> None:
        try:
            self._run("install", "-y", target, privileged=True)
        except CommandFailedError as e:
            if output_mentions(e, *self.not_found_markers):
                raise PackageNotFoundError(pkg) from e
            raise

    def install_multiple(self, pkgs: list[str]) -> None:
        if not pkgs:
            return
        self._run("install", "-y", *pkgs, privileged=True)

    def install_version(self, pkg: str, constraint: str) -> None:
        if self.check_version(pkg, constraint).satisfies_constraint:
            return
        version = select_version(self.available_versions(pkg), constraint)
        if version is None:
            raise VersionNotAvailableError(pkg, constraint)
        self._install(f"{pkg}-{version}", pkg=pkg)

    def available_versions(self, pkg: str) -> list[str]:
        """Repository versions, newest first.

        An empty available listing only means "unknown" when the
        package is not installed either; the available list omits the
        installed version.

        Raises:
            PackageNotFoundError: Neither listing knows the package.
        """
        rows = self._listing(self.list_available_args, pkg)
        if not rows and not self._listing(self.list_installed_args, pkg):
            raise PackageNotFoundError(pkg)

        versions: list[str] = []
        # Listed oldest first
        for fields in reversed(rows):
            if fields[1] not in versions:
                versions.append(fields[1])
        return versions

    def uninstall_package(self, pkg: str) -> None:
        if not self._listing(self.list_installed_args, pkg):
            return
        self._run("remove", "-y", pkg, privileged=True)

    def get_installed_version(self, pkg: str) -> PackageVersionInfo:
        rows = self._listing(self.list_installed_args, pkg)
        if not rows:
            return PackageVersionInfo(name=pkg)
        return PackageVersionInfo(name=pkg, installed_version=rows[0][1])

    def update_package_manager(self) -> None:
        self._run(*self.update_args, privileged=True)


class DnfPackageManager(RpmPackageManager):
    name = "DNF"
    type = PackageManagerType.DNF
    executable = "dnf"

    list_installed_args = ("list", "--installed")
    list_available_args = ("list", "--showduplicates", "--available")
    update_args = ("upgrade", "-y")
    not_found_markers = ("No match for argument", "Unable to find a match")
