"""
Chocolatey driver: Windows.
"""

from __future__ import annotations

import logging
import re

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

_NOT_FOUND = ("The package was not found", "not found with the source")

# Dotted version on a "<name> <version>" line
_VERSION_RE = re.compile(r"\b([0-9]+\.[0-9]+(?:\.[0-9]+(?:\.[0-9]+)?)?(?:-[0-9A-Za-z.]+)?)\b")


class ChocolateyPackageManager(PackageManager):
    name = "Chocolatey"
    type = PackageManagerType.CHOCOLATEY
    executable = "choco"

    def _package_versions(self, output: str, pkg: str) -> list[str]:
        """Versions from lines naming ``pkg``; banner and summary lines are ignored."""
        versions: list[str] = []
        for line in output.splitlines():
            fields = line.split()
            if not fields or fields[0].lower() != pkg.lower():
                continue
            match = _VERSION_RE.search(line[len(fields[0]):])
            if match and match.group(1) not in versions:
                versions.append(match.group(1))
        return versions

    def _install(self, *args: str, pkg: str) -> None:
        try:
            self._run("install", pkg, *args, "--yes")
        except CommandFailedError as e:
            if output_mentions(e, *_NOT_FOUND):
                raise PackageNotFoundError(pkg) from e
            raise

    def install_package(self, pkg: str) -> None:
        if self.get_installed_version(pkg).installed:
            raise PackageAlreadyInstalledError(pkg)
        self._install(pkg=pkg)

    def install_multiple(self, pkgs: list[str]) -> None:
        if not pkgs:
            return
        self._run("install", *pkgs, "--yes")

    def install_version(self, pkg: str, constraint: str) -> None:
        if self.check_version(pkg, constraint).satisfies_constraint:
            return
        version = select_version(self.available_versions(pkg), constraint)
        if version is None:
            raise VersionNotAvailableError(pkg, constraint)
        self._install("--version", version, "--allow-downgrade", pkg=pkg)

    def available_versions(self, pkg: str) -> list[str]:
        try:
            output = self._run("search", pkg, "--exact", "--all-versions")
        except CommandFailedError as e:
            if output_mentions(e, *_NOT_FOUND):
                raise PackageNotFoundError(pkg) from e
            raise
        return self._package_versions(output, pkg)

    def uninstall_package(self, pkg: str) -> None:
        if not self.get_installed_version(pkg).installed:
            return
        self._run("uninstall", pkg, "--yes")

    def get_installed_version(self, pkg: str) -> PackageVersionInfo:
        try:
            output = self._run("list", "--local-only", "--exact", pkg)
        except CommandFailedError as e:
            if output_mentions(e, "The package was not found"):
                return PackageVersionInfo(name=pkg)
            raise

        versions = self._package_versions(output, pkg)
        if not versions:
            return PackageVersionInfo(name=pkg)
        return PackageVersionInfo(name=pkg, installed_version=versions[0])

    def update_package_manager(self) -> None:
        self._run("upgrade", "chocolatey", "--yes")
