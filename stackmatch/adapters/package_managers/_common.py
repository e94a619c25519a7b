"""
Helpers shared by every package-manager driver.

Drivers differ in how they talk to their CLI but agree on what a
version check means and how a versioned batch falls back to one
install at a time. That agreement lives here as plain functions.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

from stackmatch.core.errors import CommandFailedError, PackageAlreadyInstalledError
from stackmatch.core.models.package import PackageVersionInfo
from stackmatch.core.services.installer.domain.version import (
    coerce_version,
    satisfies,
    validate_constraint,
)

if TYPE_CHECKING:
    from stackmatch.adapters.base import PackageManager

logger = logging.getLogger(__name__)


def constraint_info(info: PackageVersionInfo, constraint: str) -> PackageVersionInfo:
    """Fill in ``constraint`` / ``satisfies_constraint`` on a version query.

    A package that is absent, or whose installed version cannot be
    read as a version, never satisfies. The constraint is validated
    either way.

    Raises:
        InvalidConstraintError: If the constraint is malformed.
    """
    validate_constraint(constraint)
    info = info.model_copy(update={"constraint": constraint, "satisfies_constraint": False})

    if not info.installed:
        return info

    installed = coerce_version(info.installed_version)
    if installed is None:
        logger.debug("Unparsable installed version %r for %s", info.installed_version, info.name)
        return info

    info.satisfies_constraint = satisfies(installed, constraint)
    return info


def select_version(versions: Iterable[str], constraint: str) -> str | None:
    """First version (in the order given) that satisfies ``constraint``.

    Returns the raw string as the package manager printed it, so it
    can be fed back into that manager's pin syntax. Entries that do
    not look like versions are skipped.
    """
    for raw in versions:
        parsed = coerce_version(raw)
        if parsed is None:
            continue
        if satisfies(parsed, constraint):
            return raw
    return None


def install_versions_sequentially(manager: PackageManager, packages: Mapping[str, str]) -> None:
    """Install each package in turn.

    An empty constraint means "any version" and goes through
    ``install_package``; a package that is already installed is not
    an error. The first real failure stops the batch.
    """
    for pkg, constraint in packages.items():
        if constraint:
            manager.install_version(pkg, constraint)
            continue
        try:
            manager.install_package(pkg)
        except PackageAlreadyInstalledError:
            logger.debug("%s: %s already installed", manager.name, pkg)


def output_mentions(error: CommandFailedError, *needles: str) -> bool:
    """True if the failed command's output contains any of ``needles`` (case-insensitive)."""
    haystack = error.output.lower()
    return any(needle.lower() in haystack for needle in needles)


def table_rows(output: str, header_lines: int = 1) -> list[list[str]]:
    """Whitespace-split rows of a plain-text listing, header skipped."""
    lines = [line for line in output.splitlines() if line.strip()]
    return [line.split() for line in lines[header_lines:]]
