"""
L5 Orchestration: Install coordinator.

Ties the layers together: picks the driver, translates logical names,
runs single and batch installs with best-effort semantics, and journals
tracked batches so they can be rolled back.

Single-package flow::

    requested → checking-installed ─┬─ already-installed   (skipped)
                                    └─ not-installed → installing ─┬─ installed
                                                                   └─ failed
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping

from stackmatch.adapters.base import PackageManager
from stackmatch.adapters.shell.command import CommandRunner
from stackmatch.core.errors import (
    BatchInstallError,
    PackageAlreadyInstalledError,
    PackageNotFoundError,
    StackmatchError,
    VerificationError,
)
from stackmatch.core.models.environment import EnvironmentData
from stackmatch.core.models.installation import TrackedPackage
from stackmatch.core.models.package import BatchInstallResult, PackageVersionInfo
from stackmatch.core.services.installer.data.mappings import PackageMappingTable
from stackmatch.core.services.installer.detection.detector import detect_package_manager
from stackmatch.core.services.installer.execution.tracker import InstallationTracker

logger = logging.getLogger(__name__)

# (index, total, logical package name), called before each attempt
ProgressCallback = Callable[[int, int, str], None]

# (logical name, name actually installed)
InstalledCallback = Callable[[str, str], None]


class InstallOrchestrator:
    """Install packages by logical name through the host's package manager.

    Args:
        manager: Driver to use. Detected from the host on first use when omitted.
        mappings: Name translation table (a fresh default table when omitted).
        runner: Command runner handed to detected drivers.
        os_name: OS to detect for (defaults to the running OS).
        progress: Called before each package of a batch.
    """

    def __init__(
        self,
        manager: PackageManager | None = None,
        *,
        mappings: PackageMappingTable | None = None,
        runner: CommandRunner | None = None,
        os_name: str | None = None,
        progress: ProgressCallback | None = None,
    ):
        self._manager = manager
        self.mappings = mappings or PackageMappingTable()
        self.runner = runner
        self.os_name = os_name
        self.progress = progress

    @property
    def manager(self) -> PackageManager:
        """The driver in use; raises ``NoPackageManagerError`` if none is available."""
        if self._manager is None:
            self._manager = detect_package_manager(self.os_name, self.runner)
        return self._manager

    def resolve_name(self, pkg: str) -> str:
        """Driver-level name for a logical package name."""
        return self.mappings.get_package_name(pkg, self.manager.type)

    # ── Single package ──────────────────────────────────────────

    def _install(self, name: str, constraint: str | None) -> None:
        if not constraint:
            self.manager.install_package(name)
            return
        if self.manager.check_version(name, constraint).satisfies_constraint:
            raise PackageAlreadyInstalledError(name)
        self.manager.install_version(name, constraint)

    def install_package(self, pkg: str, constraint: str | None = None) -> str:
        """Install one package, optionally constrained to a version range.

        A mapped name the repository does not know is retried once
        under the original name, since mapping tables can be stale.

        Returns:
            The name that was actually installed.

        Raises:
            PackageAlreadyInstalledError: Already present (and satisfying the constraint).
            PackageNotFoundError: Neither name is known to the repository.
        """
        name = self.resolve_name(pkg)
        try:
            self._install(name, constraint)
            return name
        except PackageNotFoundError:
            if name == pkg:
                raise
            logger.info("%s not found under mapped name %s, retrying as %s", pkg, name, pkg)

        self._install(pkg, constraint)
        return pkg

    def verify_installation(self, pkg: str, constraint: str | None = None) -> PackageVersionInfo:
        """Check that a logical package is installed and satisfies ``constraint``.

        Raises:
            VerificationError: Not installed, or installed at a non-matching version.
        """
        return self._verify(self.resolve_name(pkg), constraint)

    def _verify(self, name: str, constraint: str | None) -> PackageVersionInfo:
        info = self.manager.check_version(name, constraint or "")
        if not info.installed:
            raise VerificationError(f"package {name} is not installed")
        if constraint and not info.satisfies_constraint:
            raise VerificationError(
                f"package {name} is at {info.installed_version}, "
                f"which does not satisfy {constraint}"
            )
        logger.debug("Verified %s %s", name, info.installed_version)
        return info

    # ── Batches ─────────────────────────────────────────────────

    def install_packages(
        self,
        pkgs: list[str],
        versioned: Mapping[str, str] | None = None,
        *,
        verify: bool = False,
        on_installed: InstalledCallback | None = None,
    ) -> BatchInstallResult:
        """Install every package, continuing past failures.

        Plain packages go first, then the versioned ones, each group in
        the order given.

        Raises:
            BatchInstallError: One or more packages failed. The error
                carries the full result and names only the failures.
        """
        items: list[tuple[str, str | None]] = [(p, None) for p in pkgs]
        items.extend((p, c or None) for p, c in (versioned or {}).items())

        result = BatchInstallResult()
        failures: dict[str, Exception] = {}
        total = len(items)

        for index, (pkg, constraint) in enumerate(items, start=1):
            if self.progress is not None:
                self.progress(index, total, pkg)
            try:
                name = self.install_package(pkg, constraint)
                if verify:
                    self._verify(name, constraint)
            except PackageAlreadyInstalledError:
                logger.info("%s already installed, skipping", pkg)
                result.skipped.append(pkg)
                continue
            except StackmatchError as e:
                logger.warning("Failed to install %s: %s", pkg, e)
                failures[pkg] = e
                result.failed[pkg] = str(e)
                continue

            logger.info("Installed %s", pkg)
            result.installed.append(pkg)
            if on_installed is None:
                continue
            # The package stays installed; failing to record it fails the batch
            try:
                on_installed(pkg, name)
            except StackmatchError as e:
                logger.warning("Installed %s but could not record it: %s", pkg, e)
                failures[pkg] = e
                result.failed[pkg] = str(e)

        if failures:
            raise BatchInstallError(failures, result)
        return result

    def install_tracked(
        self,
        tracker: InstallationTracker,
        pkgs: list[str],
        versioned: Mapping[str, str] | None = None,
        environment: EnvironmentData | None = None,
        *,
        verify: bool = False,
    ) -> tuple[str, BatchInstallResult]:
        """Run a batch under a new installation record.

        Only packages this batch newly installed are tracked, so a
        rollback never removes software that was already there.

        Returns:
            (record id, batch result).

        Raises:
            BatchInstallError: As ``install_packages``; ``record_id`` is set
                and the record is marked failed. A package that installed
                but could not be journaled also counts as failed.
            StackmatchError: Any other error ending the batch early; the
                record is marked failed first.
        """
        manager = self.manager
        record = tracker.start_installation(environment)

        def track(pkg: str, name: str) -> None:
            try:
                version = manager.get_installed_version(name).installed_version
            except StackmatchError as e:
                logger.warning("Could not read installed version of %s: %s", name, e)
                version = ""
            tracker.add_package(
                record.id,
                TrackedPackage(name=name, version=version, manager_type=str(manager.type)),
            )

        try:
            result = self.install_packages(pkgs, versioned, verify=verify, on_installed=track)
        except BatchInstallError as e:
            e.record_id = record.id
            tracker.fail_installation(record.id, str(e))
            raise
        except StackmatchError as e:
            tracker.fail_installation(record.id, str(e))
            raise

        tracker.complete_installation(record.id)
        return record.id, result

    # ── Pass-throughs ───────────────────────────────────────────

    def check_version(self, pkg: str, constraint: str = "") -> PackageVersionInfo:
        return self.manager.check_version(self.resolve_name(pkg), constraint)

    def update_package_manager(self) -> None:
        logger.info("Updating %s", self.manager.name)
        self.manager.update_package_manager()
