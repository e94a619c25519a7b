"""
Scoop driver: Windows, per-user installs.
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

_NOT_FOUND = ("Couldn't find manifest",)


class ScoopPackageManager(PackageManager):
    name = "Scoop"
    type = PackageManagerType.SCOOP
    executable = "scoop"

    def _installed_row(self, pkg: str) -> list[str] | None:
        # Name  Version  Source  Updated  Info
        app = pkg.rsplit("/", 1)[-1].lower()
        for line in self._run("list").splitlines():
            fields = line.split()
            if fields and fields[0].lower() == app:
                return fields
        return None

    def _install(self, target: str, *, pkg: str) -> None:
        try:
            self._run("install", target)
        except CommandFailedError as e:
            if output_mentions(e, *_NOT_FOUND):
                raise PackageNotFoundError(pkg) from e
            raise

    def install_package(self, pkg: str) -> None:
        if self._installed_row(pkg) is not None:
            raise PackageAlreadyInstalledError(pkg)
        self._install(pkg, pkg=pkg)

    def install_multiple(self, pkgs: list[str]) -> None:
        if not pkgs:
            return
        self._run("install", *pkgs)

    def install_version(self, pkg: str, constraint: str) -> None:
        if self.check_version(pkg, constraint).satisfies_constraint:
            return
        version = select_version(self.available_versions(pkg), constraint)
        if version is None:
            raise VersionNotAvailableError(pkg, constraint)
        self._install(f"{pkg}@{version}", pkg=pkg)

    def available_versions(self, pkg: str) -> list[str]:
        try:
            output = self._run("info", pkg)
        except CommandFailedError as e:
            if output_mentions(e, *_NOT_FOUND):
                raise PackageNotFoundError(pkg) from e
            raise

        for line in output.splitlines():
            key, sep, value = line.partition(":")
            if sep and key.strip() == "Version":
                return [value.strip()]
        return []

    def uninstall_package(self, pkg: str) -> None:
        if self._installed_row(pkg) is None:
            return
        self._run("uninstall", pkg)

    def get_installed_version(self, pkg: str) -> PackageVersionInfo:
        row = self._installed_row(pkg)
        if row is None or len(row) < 2:
            return PackageVersionInfo(name=pkg)
        return PackageVersionInfo(name=pkg, installed_version=row[1])

    def update_package_manager(self) -> None:
        self._run("update")
        self._run("update", "*")
