"""
Mock package manager: in-memory test double for every driver operation.

Keeps a set of "installed" packages and the versions a fake repository
offers, records every call, and can be told to fail specific packages.
Used by the orchestrator and tracker tests, and by anything that needs
a driver without touching the host.
"""

from __future__ import annotations

from collections.abc import Mapping

from stackmatch.adapters.base import PackageManager
from stackmatch.adapters.package_managers._common import select_version
from stackmatch.core.errors import (
    PackageAlreadyInstalledError,
    PackageNotFoundError,
    VersionNotAvailableError,
)
from stackmatch.core.models.package import PackageManagerType, PackageVersionInfo


class MockPackageManager(PackageManager):
    """Recording fake driver.

    By default every package exists and installs at version ``1.0.0``.
    """

    executable = "mock"

    def __init__(
        self,
        manager_type: PackageManagerType = PackageManagerType.APT,
        available: bool = True,
        installed: Mapping[str, str] | None = None,
        repository: Mapping[str, list[str]] | None = None,
        default_version: str = "1.0.0",
    ):
        super().__init__(runner=None)
        self.type = manager_type
        self.name = f"Mock{manager_type.value.capitalize()}"
        self._available = available
        self._default_version = default_version
        self.installed: dict[str, str] = dict(installed or {})
        self.repository: dict[str, list[str]] = {k: list(v) for k, v in (repository or {}).items()}
        self._failures: dict[tuple[str, str], Exception] = {}
        self._call_log: list[tuple[str, str]] = []

    # ── Test controls ───────────────────────────────────────────

    @property
    def call_log(self) -> list[tuple[str, str]]:
        """(operation, argument) pairs in call order."""
        return self._call_log

    def calls(self, operation: str) -> list[str]:
        """Arguments of every call to ``operation``."""
        return [arg for op, arg in self._call_log if op == operation]

    def set_failure(self, operation: str, pkg: str, error: Exception) -> None:
        """Make ``operation`` raise ``error`` for ``pkg``."""
        self._failures[(operation, pkg)] = error

    def set_missing(self, pkg: str) -> None:
        """Make ``pkg`` unknown to the fake repository."""
        self.set_failure("install_package", pkg, PackageNotFoundError(pkg))

    def reset(self) -> None:
        self._failures.clear()
        self._call_log.clear()

    def _record(self, operation: str, arg: str) -> None:
        self._call_log.append((operation, arg))
        error = self._failures.get((operation, arg))
        if error is not None:
            raise error

    # ── Driver operations ───────────────────────────────────────

    def is_available(self) -> bool:
        return self._available

    def install_package(self, pkg: str) -> None:
        self._call_log.append(("check_installed", pkg))
        if pkg in self.installed:
            raise PackageAlreadyInstalledError(pkg)
        self._record("install_package", pkg)
        versions = self.repository.get(pkg)
        self.installed[pkg] = versions[0] if versions else self._default_version

    def install_multiple(self, pkgs: list[str]) -> None:
        for pkg in pkgs:
            self._record("install_multiple", pkg)
            self.installed.setdefault(pkg, self._default_version)

    def install_version(self, pkg: str, constraint: str) -> None:
        if self.check_version(pkg, constraint).satisfies_constraint:
            return
        self._record("install_version", pkg)
        version = select_version(self.available_versions(pkg), constraint)
        if version is None:
            raise VersionNotAvailableError(pkg, constraint)
        self.installed[pkg] = version

    def available_versions(self, pkg: str) -> list[str]:
        return list(self.repository.get(pkg, [self._default_version]))

    def uninstall_package(self, pkg: str) -> None:
        self._record("uninstall_package", pkg)
        self.installed.pop(pkg, None)

    def get_installed_version(self, pkg: str) -> PackageVersionInfo:
        self._record("get_installed_version", pkg)
        return PackageVersionInfo(name=pkg, installed_version=self.installed.get(pkg, ""))

    def update_package_manager(self) -> None:
        self._record("update_package_manager", "")
