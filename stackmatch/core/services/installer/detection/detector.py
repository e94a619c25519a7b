"""
L3 Detection: Package-manager selection.

Picks the driver for the host from an OS-specific preference list.
The order encodes real-world preference: Chocolatey carries more
packages than Winget, APT is tried before the RPM managers, Snap last.
"""

from __future__ import annotations

import logging
import platform

from stackmatch.adapters.base import PackageManager
from stackmatch.adapters.package_managers.apt import AptPackageManager
from stackmatch.adapters.package_managers.chocolatey import ChocolateyPackageManager
from stackmatch.adapters.package_managers.dnf import DnfPackageManager
from stackmatch.adapters.package_managers.homebrew import HomebrewPackageManager
from stackmatch.adapters.package_managers.pacman import PacmanPackageManager
from stackmatch.adapters.package_managers.scoop import ScoopPackageManager
from stackmatch.adapters.package_managers.snap import SnapPackageManager
from stackmatch.adapters.package_managers.winget import WingetPackageManager
from stackmatch.adapters.package_managers.yum import YumPackageManager
from stackmatch.adapters.shell.command import CommandRunner
from stackmatch.core.errors import NoPackageManagerError
from stackmatch.core.models.package import PackageManagerType

logger = logging.getLogger(__name__)

DRIVERS: dict[PackageManagerType, type[PackageManager]] = {
    PackageManagerType.APT: AptPackageManager,
    PackageManagerType.DNF: DnfPackageManager,
    PackageManagerType.YUM: YumPackageManager,
    PackageManagerType.PACMAN: PacmanPackageManager,
    PackageManagerType.SNAP: SnapPackageManager,
    PackageManagerType.HOMEBREW: HomebrewPackageManager,
    PackageManagerType.CHOCOLATEY: ChocolateyPackageManager,
    PackageManagerType.SCOOP: ScoopPackageManager,
    PackageManagerType.WINGET: WingetPackageManager,
}

_PREFERENCE: dict[str, list[PackageManagerType]] = {
    "windows": [
        PackageManagerType.CHOCOLATEY,
        PackageManagerType.SCOOP,
        PackageManagerType.WINGET,
    ],
    "darwin": [PackageManagerType.HOMEBREW],
}

_LINUX_PREFERENCE: list[PackageManagerType] = [
    PackageManagerType.APT,
    PackageManagerType.DNF,
    PackageManagerType.YUM,
    PackageManagerType.PACMAN,
    PackageManagerType.SNAP,
]


def current_os() -> str:
    """Lower-case OS name: ``linux``, ``darwin``, ``windows``."""
    return platform.system().lower()


def create_package_manager(
    pm_type: PackageManagerType | str,
    runner: CommandRunner | None = None,
) -> PackageManager:
    """Build the driver for a specific manager type.

    Raises:
        ValueError: Unknown manager type.
    """
    return DRIVERS[PackageManagerType(pm_type)](runner)


def preferred_managers(
    os_name: str | None = None,
    runner: CommandRunner | None = None,
) -> list[PackageManager]:
    """Drivers for ``os_name`` in preference order (available or not)."""
    os_name = (os_name or current_os()).lower()
    types = _PREFERENCE.get(os_name, _LINUX_PREFERENCE)
    return [create_package_manager(t, runner) for t in types]


def detect_package_manager(
    os_name: str | None = None,
    runner: CommandRunner | None = None,
) -> PackageManager:
    """First available driver for the host.

    Raises:
        NoPackageManagerError: None of the OS's managers is on PATH.
    """
    os_name = (os_name or current_os()).lower()
    for manager in preferred_managers(os_name, runner):
        if manager.is_available():
            logger.info("Using package manager %s", manager.name)
            return manager
        logger.debug("%s not available", manager.name)

    raise NoPackageManagerError(f"no supported package manager found for {os_name}")
