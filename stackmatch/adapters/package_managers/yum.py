"""
YUM driver: RHEL / CentOS 7 and older.
"""

from __future__ import annotations

from stackmatch.adapters.package_managers.dnf import RpmPackageManager
from stackmatch.core.models.package import PackageManagerType


class YumPackageManager(RpmPackageManager):
    name = "YUM"
    type = PackageManagerType.YUM
    executable = "yum"

    list_installed_args = ("list", "installed")
    list_available_args = ("list", "available", "--showduplicates")
    update_args = ("update", "-y")
    not_found_markers = ("No package",)
