"""Adapters: bindings to the OS package managers and the shell.

Public re-exports for convenient access.
"""

from stackmatch.adapters.base import PackageManager
from stackmatch.adapters.mock import MockPackageManager
from stackmatch.adapters.shell.command import CommandResult, CommandRunner

__all__ = [
    "CommandResult",
    "CommandRunner",
    "MockPackageManager",
    "PackageManager",
]
