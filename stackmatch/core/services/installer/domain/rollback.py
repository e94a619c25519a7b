"""
L1 Domain: Rollback ordering (pure).

Derives the uninstall order from the packages an installation tracked.
No I/O, no subprocess.
"""

from __future__ import annotations

from collections.abc import Mapping

from stackmatch.core.models.installation import TrackedPackage


def rollback_order(packages: Mapping[str, TrackedPackage]) -> list[TrackedPackage]:
    """Packages to uninstall, last installed first.

    Packages already uninstalled by an earlier rollback attempt are
    left out so a retried rollback only touches what is still there.

    Args:
        packages: Tracked packages in installation order.

    Returns:
        Ordered list of packages (reverse of installation order).
    """
    order: list[TrackedPackage] = []
    for pkg in reversed(list(packages.values())):
        if pkg.rollback_status == "uninstalled":
            continue
        order.append(pkg)
    return order
