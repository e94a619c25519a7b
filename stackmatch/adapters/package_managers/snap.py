"""
Snap driver.

Versions are published through channels (``18/stable``,
``latest/edge``), so pinning a version means installing the channel
that currently carries it.
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

_NOT_FOUND = ("not found",)

# Channel-map placeholders: "↑" means "same as the channel above", "–" closed
_CLOSED_CHANNEL = ("↑", "–", "-", "^")


class SnapPackageManager(PackageManager):
    name = "Snap"
    type = PackageManagerType.SNAP
    executable = "snap"

    def _installed_row(self, pkg: str) -> list[str] | None:
        try:
            output = self._run("list", pkg)
        except CommandFailedError:
            # "error: no matching snaps installed"
            return None
        lines = [line for line in output.strip().splitlines() if line.strip()]
        if len(lines) <= 1:
            return None
        return lines[1].split()

    def _install(self, pkg: str, *extra: str) -> None:
        """Install with --classic first, then retry under strict confinement."""
        try:
            self._run("install", "--classic", pkg, *extra, privileged=True)
            return
        except CommandFailedError as e:
            logger.debug("snap install --classic %s failed, retrying without: %s", pkg, e)

        try:
            self._run("install", pkg, *extra, privileged=True)
        except CommandFailedError as e:
            if output_mentions(e, *_NOT_FOUND):
                raise PackageNotFoundError(pkg) from e
            raise

    def install_package(self, pkg: str) -> None:
        if self._installed_row(pkg) is not None:
            raise PackageAlreadyInstalledError(pkg)
        self._install(pkg)

    def install_multiple(self, pkgs: list[str]) -> None:
        if not pkgs:
            return
        self._run("install", *pkgs, privileged=True)

    def install_version(self, pkg: str, constraint: str) -> None:
        if self.check_version(pkg, constraint).satisfies_constraint:
            return
        channels = self._channels(pkg)
        version = select_version(channels, constraint)
        if version is None:
            raise VersionNotAvailableError(pkg, constraint)
        self._install(pkg, f"--channel={channels[version]}")

    def _channels(self, pkg: str) -> dict[str, str]:
        """version → first channel carrying it, in ``snap info`` order."""
        try:
            output = self._run("info", pkg)
        except CommandFailedError as e:
            if output_mentions(e, *_NOT_FOUND):
                raise PackageNotFoundError(pkg) from e
            raise

        channels: dict[str, str] = {}
        in_channels = False
        for line in output.splitlines():
            if not in_channels:
                in_channels = line.startswith("channels:")
                continue
            if not line.startswith(" "):
                break
            channel, sep, rest = line.strip().partition(":")
            fields = rest.split()
            if not sep or not fields or fields[0] in _CLOSED_CHANNEL:
                continue
            channels.setdefault(fields[0], channel)
        return channels

    def available_versions(self, pkg: str) -> list[str]:
        return list(self._channels(pkg))

    def uninstall_package(self, pkg: str) -> None:
        if self._installed_row(pkg) is None:
            return
        self._run("remove", pkg, privileged=True)

    def get_installed_version(self, pkg: str) -> PackageVersionInfo:
        # Name  Version  Rev  Tracking  Publisher  Notes
        row = self._installed_row(pkg)
        if row is None or len(row) < 2:
            return PackageVersionInfo(name=pkg)
        return PackageVersionInfo(name=pkg, installed_version=row[1])

    def update_package_manager(self) -> None:
        self._run("refresh", privileged=True)
