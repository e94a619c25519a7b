"""
Package-manager base: the contract every driver implements.

The orchestrator and tracker only talk to package managers through
this interface, never to the underlying CLIs directly. Each driver
wraps one OS package manager and shells out through a
``CommandRunner``.

To add a driver:
    1. Subclass PackageManager
    2. Set name, type and executable
    3. Implement the abstract operations
    4. Register it in the detector's driver table
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping

from stackmatch.adapters.package_managers._common import (
    constraint_info,
    install_versions_sequentially,
)
from stackmatch.adapters.shell.command import CommandRunner
from stackmatch.core.models.package import PackageManagerType, PackageVersionInfo

logger = logging.getLogger(__name__)


class PackageManager(ABC):
    """Abstract base class for all package-manager drivers.

    Drivers hold no per-call state and can be reused across operations.
    Soft conditions are raised as typed errors
    (``PackageAlreadyInstalledError``); anything the driver does not
    recognize surfaces as ``CommandFailedError`` with the tool output.
    """

    name: str = ""
    type: PackageManagerType
    executable: str = ""

    def __init__(self, runner: CommandRunner | None = None):
        self.runner = runner or CommandRunner()

    # ── Shared plumbing ─────────────────────────────────────────

    def is_available(self) -> bool:
        """True if the backing executable is on PATH. Never raises."""
        try:
            return self.runner.which(self.executable) is not None
        except OSError:
            return False

    def _run(self, *args: str, tool: str | None = None, privileged: bool = False) -> str:
        """Run ``<executable> args...`` (or ``<tool> args...``) and return its output."""
        cmd = [tool or self.executable, *args]
        return self.runner.run(cmd, privileged=privileged).output

    def check_version(self, pkg: str, constraint: str) -> PackageVersionInfo:
        """Installed version of ``pkg`` and whether it satisfies ``constraint``.

        Raises:
            InvalidConstraintError: If the constraint is malformed.
        """
        return constraint_info(self.get_installed_version(pkg), constraint)

    def install_multiple_versions(self, packages: Mapping[str, str]) -> None:
        """Install each package with its constraint, one at a time."""
        install_versions_sequentially(self, packages)

    # ── Driver operations ───────────────────────────────────────

    @abstractmethod
    def install_package(self, pkg: str) -> None:
        """Install one package.

        Raises:
            PackageAlreadyInstalledError: Already present; nothing was run.
            PackageNotFoundError: No repository provides the package.
            CommandFailedError: Any other failure.
        """

    @abstractmethod
    def install_multiple(self, pkgs: list[str]) -> None:
        """Install several packages, in one invocation where supported."""

    @abstractmethod
    def install_version(self, pkg: str, constraint: str) -> None:
        """Install a version satisfying ``constraint``; no-op if already satisfied.

        Raises:
            VersionNotAvailableError: No available version matches.
        """

    @abstractmethod
    def available_versions(self, pkg: str) -> list[str]:
        """Versions the repositories offer, newest first where the tool says so."""

    @abstractmethod
    def uninstall_package(self, pkg: str) -> None:
        """Remove a package; no-op when it is not installed."""

    @abstractmethod
    def get_installed_version(self, pkg: str) -> PackageVersionInfo:
        """Installed version, empty ``installed_version`` when absent."""

    @abstractmethod
    def update_package_manager(self) -> None:
        """Refresh the package index and/or upgrade installed packages."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
