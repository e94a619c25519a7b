"""
Domain models: Pydantic types for stackmatch.

All models are re-exported here for convenient access:

    from stackmatch.core.models import InstallationRecord, PackageManagerType
"""

from stackmatch.core.models.environment import EnvironmentData, SystemInfo
from stackmatch.core.models.installation import (
    InstallationRecord,
    InstallationStatus,
    TrackedPackage,
)
from stackmatch.core.models.package import (
    BatchInstallResult,
    PackageManagerType,
    PackageVersionInfo,
)

__all__ = [
    # package.py
    "BatchInstallResult",
    # environment.py
    "EnvironmentData",
    # installation.py
    "InstallationRecord",
    "InstallationStatus",
    "PackageManagerType",
    "PackageVersionInfo",
    "SystemInfo",
    "TrackedPackage",
]
