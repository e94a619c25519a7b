"""
Pacman driver: Arch Linux and derivatives.

Pacman only ships the current repository version of a package, so a
version constraint can be honoured only when that one version
satisfies it.
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

_NOT_FOUND = ("target not found", "was not found")


class PacmanPackageManager(PackageManager):
    name = "Pacman"
    type = PackageManagerType.PACMAN
    executable = "pacman"

    def _is_installed(self, pkg: str) -> bool:
        try:
            output = self._run("-Qs", f"^{pkg}$")
        except CommandFailedError as e:
            # -Qs exits 1 with no output when nothing matches
            if e.returncode == 1:
                return False
            raise
        return output.strip() != ""

    def _install(self, pkg: str) -> None:
        try:
            self._run("-S", "--noconfirm", pkg, privileged=True)
        except CommandFailedError as e:
            if output_mentions(e, *_NOT_FOUND):
                raise PackageNotFoundError(pkg) from e
            raise

    def install_package(self, pkg: str) -> None:
        if self._is_installed(pkg):
            raise PackageAlreadyInstalledError(pkg)
        self._install(pkg)

    def install_multiple(self, pkgs: list[str]) -> None:
        if not pkgs:
            return
        self._run("-S", "--noconfirm", *pkgs, privileged=True)

    def install_version(self, pkg: str, constraint: str) -> None:
        if self.check_version(pkg, constraint).satisfies_constraint:
            return
        if select_version(self.available_versions(pkg), constraint) is None:
            raise VersionNotAvailableError(pkg, constraint)
        self._install(pkg)

    def available_versions(self, pkg: str) -> list[str]:
        try:
            output = self._run("-Si", pkg)
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
        if not self._is_installed(pkg):
            return
        self._run("-R", "--noconfirm", pkg, privileged=True)

    def get_installed_version(self, pkg: str) -> PackageVersionInfo:
        try:
            output = self._run("-Q", pkg)
        except CommandFailedError as e:
            if output_mentions(e, *_NOT_FOUND):
                return PackageVersionInfo(name=pkg)
            raise

        # "git 2.43.0-1"
        fields = output.split()
        if len(fields) < 2 or fields[0] != pkg:
            return PackageVersionInfo(name=pkg)
        return PackageVersionInfo(name=pkg, installed_version=fields[1])

    def update_package_manager(self) -> None:
        self._run("-Syu", "--noconfirm", privileged=True)
