"""
APT driver: Debian / Ubuntu.

Installs through ``apt-get`` and reads state through the dpkg
tooling, which is stable for scripting (``apt`` itself warns that its
CLI output is not).
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

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

_NOT_FOUND = ("Unable to locate package", "has no installation candidate")


class AptPackageManager(PackageManager):
    name = "APT"
    type = PackageManagerType.APT
    executable = "apt-get"

    def _is_installed(self, pkg: str) -> bool:
        try:
            self._run("-s", pkg, tool="dpkg")
            return True
        except CommandFailedError:
            pass

        # dpkg -s fails for half-configured packages; dpkg -l still lists them
        try:
            output = self._run("-l", pkg, tool="dpkg")
        except CommandFailedError:
            return False
        return any(
            line.startswith("ii") and pkg in line.split()[1:2]
            for line in output.splitlines()
        )

    def _install(self, *args: str, pkg: str) -> None:
        try:
            self._run("install", "--assume-yes", *args, privileged=True)
        except CommandFailedError as e:
            if output_mentions(e, *_NOT_FOUND):
                raise PackageNotFoundError(pkg) from e
            raise

    def install_package(self, pkg: str) -> None:
        if self._is_installed(pkg):
            raise PackageAlreadyInstalledError(pkg)
        self._install(pkg, pkg=pkg)

    def install_multiple(self, pkgs: list[str]) -> None:
        if not pkgs:
            return
        self._run("install", "--assume-yes", *pkgs, privileged=True)

    def install_version(self, pkg: str, constraint: str) -> None:
        if self.check_version(pkg, constraint).satisfies_constraint:
            return
        version = select_version(self.available_versions(pkg), constraint)
        if version is None:
            raise VersionNotAvailableError(pkg, constraint)
        self._install("--allow-downgrades", f"{pkg}={version}", pkg=pkg)

    def install_multiple_versions(self, packages: Mapping[str, str]) -> None:
        """Resolve every constraint, then install in one ``pkg=version`` call."""
        targets: list[str] = []
        for pkg, constraint in packages.items():
            if not constraint:
                targets.append(pkg)
                continue
            if self.check_version(pkg, constraint).satisfies_constraint:
                continue
            version = select_version(self.available_versions(pkg), constraint)
            if version is None:
                raise VersionNotAvailableError(pkg, constraint)
            targets.append(f"{pkg}={version}")

        if not targets:
            return
        self._run("install", "--assume-yes", "--allow-downgrades", *targets, privileged=True)

    def available_versions(self, pkg: str) -> list[str]:
        """Repository versions, newest first.

        Raises:
            PackageNotFoundError: ``apt-cache`` does not know the package.
        """
        # "   git | 1:2.43.0-1ubuntu7 | http://archive.ubuntu.com ... Packages"
        try:
            output = self._run("madison", pkg, tool="apt-cache")
        except CommandFailedError as e:
            if output_mentions(e, *_NOT_FOUND):
                raise PackageNotFoundError(pkg) from e
            raise

        versions: list[str] = []
        for line in output.splitlines():
            fields = [f.strip() for f in line.split("|")]
            if len(fields) >= 2 and fields[0] == pkg and fields[1] not in versions:
                versions.append(fields[1])

        # madison reports unknown packages on stdout and still exits 0
        if not versions and any(marker.lower() in output.lower() for marker in _NOT_FOUND):
            raise PackageNotFoundError(pkg)
        return versions

    def uninstall_package(self, pkg: str) -> None:
        if not self._is_installed(pkg):
            return
        self._run("remove", "--assume-yes", pkg, privileged=True)

    def get_installed_version(self, pkg: str) -> PackageVersionInfo:
        try:
            output = self._run("-W", "-f=${Version}\\n${Status}\\n", pkg, tool="dpkg-query")
        except CommandFailedError as e:
            if output_mentions(e, "no packages found matching"):
                return PackageVersionInfo(name=pkg)
            raise

        lines = output.splitlines()
        if len(lines) < 2 or "install ok installed" not in lines[1]:
            return PackageVersionInfo(name=pkg)

        version = lines[0].strip()
        # "1:2.0.0-1_amd64" → "1:2.0.0-1"
        if "_" in version:
            version = version.rsplit("_", 1)[0]
        return PackageVersionInfo(name=pkg, installed_version=version)

    def update_package_manager(self) -> None:
        self._run("update", privileged=True)
        self._run("upgrade", "--assume-yes", privileged=True)
