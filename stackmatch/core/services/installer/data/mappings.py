"""
L0 Data: Logical package names → per-manager package names.

Mapping is advisory: a logical name with no entry is passed through
unchanged. A logical name that IS known but has no entry for the
requested manager is an error, so a typo in the table never silently
installs the wrong thing.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field

from stackmatch.core.errors import InvalidMappingError, NoMappingForManagerError
from stackmatch.core.models.package import PackageManagerType

logger = logging.getLogger(__name__)


class PackageMapping(BaseModel):
    """One logical package and its name under each package manager."""

    name: str
    description: str = ""
    packages: dict[PackageManagerType, str] = Field(default_factory=dict)


_T = PackageManagerType

_DEFAULT_MAPPINGS: list[dict] = [
    # Programming languages
    {
        "name": "nodejs",
        "description": "Node.js JavaScript runtime",
        "packages": {
            _T.APT: "nodejs", _T.DNF: "nodejs", _T.YUM: "nodejs",
            _T.PACMAN: "nodejs", _T.SNAP: "node", _T.HOMEBREW: "node",
            _T.CHOCOLATEY: "nodejs", _T.SCOOP: "nodejs", _T.WINGET: "OpenJS.NodeJS",
        },
    },
    {
        "name": "python3",
        "description": "Python 3 interpreter",
        "packages": {
            _T.APT: "python3", _T.DNF: "python3", _T.YUM: "python3",
            _T.PACMAN: "python", _T.HOMEBREW: "python",
            _T.CHOCOLATEY: "python", _T.SCOOP: "python", _T.WINGET: "Python.Python.3",
        },
    },
    {
        "name": "golang",
        "description": "Go toolchain",
        "packages": {
            _T.APT: "golang", _T.DNF: "golang", _T.YUM: "golang",
            _T.PACMAN: "go", _T.SNAP: "go", _T.HOMEBREW: "go",
            _T.CHOCOLATEY: "golang", _T.SCOOP: "go", _T.WINGET: "GoLang.Go",
        },
    },
    # Development tools
    {
        "name": "git",
        "description": "Distributed version control system",
        "packages": {
            _T.APT: "git", _T.DNF: "git", _T.YUM: "git",
            _T.PACMAN: "git", _T.HOMEBREW: "git",
            _T.CHOCOLATEY: "git", _T.SCOOP: "git", _T.WINGET: "Git.Git",
        },
    },
    # Databases
    {
        "name": "postgresql",
        "description": "PostgreSQL database server",
        "packages": {
            _T.APT: "postgresql", _T.DNF: "postgresql-server", _T.YUM: "postgresql-server",
            _T.PACMAN: "postgresql", _T.HOMEBREW: "postgresql@14",
            _T.CHOCOLATEY: "postgresql", _T.SCOOP: "postgresql", _T.WINGET: "PostgreSQL.pgAdmin",
        },
    },
    # Containers
    {
        "name": "docker",
        "description": "Docker container platform",
        "packages": {
            _T.APT: "docker.io", _T.DNF: "docker", _T.YUM: "docker",
            _T.PACMAN: "docker", _T.SNAP: "docker", _T.HOMEBREW: "docker",
            _T.CHOCOLATEY: "docker-desktop", _T.SCOOP: "docker", _T.WINGET: "Docker.DockerDesktop",
        },
    },
]

_DISPLAY_NAMES: dict[PackageManagerType, str] = {
    _T.APT: "APT",
    _T.DNF: "DNF",
    _T.YUM: "YUM",
    _T.PACMAN: "Pacman",
    _T.SNAP: "Snap",
    _T.HOMEBREW: "Homebrew",
    _T.CHOCOLATEY: "Chocolatey",
    _T.SCOOP: "Scoop",
    _T.WINGET: "Winget",
}


class PackageMappingTable:
    """Append-only table of package mappings.

    Lookups are case-insensitive on the logical name and the first
    matching entry wins, so a mapping added later for an existing name
    is never consulted.
    """

    def __init__(self, mappings: list[PackageMapping] | None = None):
        if mappings is None:
            mappings = [PackageMapping.model_validate(m) for m in _DEFAULT_MAPPINGS]
        self._mappings: list[PackageMapping] = list(mappings)

    def get_package_name(self, logical_name: str, pm_type: PackageManagerType) -> str:
        """Package name to hand to the ``pm_type`` driver.

        Raises:
            NoMappingForManagerError: ``logical_name`` is known but not for ``pm_type``.
        """
        wanted = logical_name.lower()
        for mapping in self._mappings:
            if mapping.name.lower() != wanted:
                continue
            if pm_type in mapping.packages:
                return mapping.packages[pm_type]
            raise NoMappingForManagerError(logical_name, str(pm_type))
        return logical_name

    def add_package_mapping(self, mapping: PackageMapping) -> None:
        """Register a mapping at runtime.

        Raises:
            InvalidMappingError: Empty name or no manager entries.
        """
        if not mapping.name:
            raise InvalidMappingError("package name cannot be empty")
        if not mapping.packages:
            raise InvalidMappingError("at least one package manager mapping is required")
        self._mappings.append(mapping)
        logger.debug("Registered package mapping %s (%d managers)", mapping.name, len(mapping.packages))

    def all_mappings(self) -> list[PackageMapping]:
        return list(self._mappings)


def get_package_manager_name(pm_type: PackageManagerType | str) -> str:
    """Display name for a manager type (``"homebrew"`` → ``"Homebrew"``)."""
    try:
        return _DISPLAY_NAMES[PackageManagerType(pm_type)]
    except ValueError:
        return str(pm_type)


# ── Module-level default table ──────────────────────────────────

_default_table = PackageMappingTable()


def get_package_name(logical_name: str, pm_type: PackageManagerType) -> str:
    return _default_table.get_package_name(logical_name, pm_type)


def add_package_mapping(mapping: PackageMapping) -> None:
    _default_table.add_package_mapping(mapping)


def all_mappings() -> list[PackageMapping]:
    return _default_table.all_mappings()
