"""
Homebrew driver: macOS (and Linuxbrew).

Older versions are published as separate ``<name>@<major>`` formulae
(``node@18``), which is what version pinning installs.
"""

from __future__ import annotations

import json
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

_NOT_FOUND = ("No available formula or cask", "No available formula")
_NOT_INSTALLED = ("No available formula or cask", "No such keg")


class HomebrewPackageManager(PackageManager):
    name = "Homebrew"
    type = PackageManagerType.HOMEBREW
    executable = "brew"

    def _list_versions(self, pkg: str) -> str:
        """``brew list --versions pkg`` output, empty when not installed."""
        try:
            return self._run("list", "--versions", pkg).strip()
        except CommandFailedError as e:
            # Recent brew exits 1 silently for formulae that are not installed
            if output_mentions(e, *_NOT_INSTALLED) or not e.output.strip():
                return ""
            raise

    def install_package(self, pkg: str) -> None:
        if self._list_versions(pkg):
            raise PackageAlreadyInstalledError(pkg)
        self._install(pkg, pkg=pkg)

    def _install(self, target: str, *, pkg: str) -> None:
        try:
            self._run("install", target)
        except CommandFailedError as e:
            if output_mentions(e, *_NOT_FOUND):
                raise PackageNotFoundError(pkg) from e
            raise

    def install_multiple(self, pkgs: list[str]) -> None:
        if not pkgs:
            return
        self._run("install", *pkgs)

    def install_version(self, pkg: str, constraint: str) -> None:
        if self.check_version(pkg, constraint).satisfies_constraint:
            return
        info = self._info(pkg)
        version = select_version(self._versions_from_info(info), constraint)
        if version is None:
            raise VersionNotAvailableError(pkg, constraint)
        # The stable version is the plain formula; the rest are pkg@version
        target = pkg if version == _stable_version(info) else f"{pkg}@{version}"
        self._install(target, pkg=pkg)

    def _info(self, pkg: str) -> dict:
        try:
            output = self._run("info", "--json=v2", pkg)
        except CommandFailedError as e:
            if output_mentions(e, *_NOT_FOUND):
                raise PackageNotFoundError(pkg) from e
            raise
        try:
            return json.loads(output)
        except json.JSONDecodeError as e:
            raise CommandFailedError(
                ["brew", "info", "--json=v2", pkg], 0, output,
                message=f"unreadable brew info output for {pkg}",
            ) from e

    @staticmethod
    def _versions_from_info(info: dict) -> list[str]:
        versions: list[str] = []
        stable = _stable_version(info)
        if stable:
            versions.append(stable)
        for formula in info.get("formulae", []):
            for versioned in formula.get("versioned_formulae", []):
                _, _, version = versioned.partition("@")
                if version and version not in versions:
                    versions.append(version)
        return versions

    def available_versions(self, pkg: str) -> list[str]:
        return self._versions_from_info(self._info(pkg))

    def uninstall_package(self, pkg: str) -> None:
        if not self._list_versions(pkg):
            return
        self._run("uninstall", "--ignore-dependencies", pkg)

    def get_installed_version(self, pkg: str) -> PackageVersionInfo:
        # "node 20.10.0 18.19.0" → first listed version
        fields = self._list_versions(pkg).split()
        if len(fields) < 2:
            return PackageVersionInfo(name=pkg)
        return PackageVersionInfo(name=pkg, installed_version=fields[1])

    def update_package_manager(self) -> None:
        self._run("update")


def _stable_version(info: dict) -> str:
    for formula in info.get("formulae", []):
        stable = formula.get("versions", {}).get("stable")
        if stable:
            return stable
    for cask in info.get("casks", []):
        if cask.get("version"):
            return cask["version"]
    return ""
