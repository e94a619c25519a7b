"""
Error taxonomy for the installer core.

Soft conditions (already installed) are typed so callers can catch
them and report success. Infrastructure failures carry the raw tool
output for diagnosis. Batch and rollback errors aggregate per-package
failures instead of stopping at the first one.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from stackmatch.core.models.package import BatchInstallResult


class StackmatchError(Exception):
    """Base class for every error raised by stackmatch."""


# ── Package conditions ──────────────────────────────────────────


class PackageAlreadyInstalledError(StackmatchError):
    """The package is already present. Callers treat this as success."""

    def __init__(self, package: str):
        self.package = package
        super().__init__(f"package {package} is already installed")


class PackageNotFoundError(StackmatchError):
    """No configured repository provides the package."""

    def __init__(self, package: str):
        self.package = package
        super().__init__(f"package {package} not found in repository")


class VersionNotAvailableError(StackmatchError):
    """No available version satisfies the requested constraint."""

    def __init__(self, package: str, constraint: str):
        self.package = package
        self.constraint = constraint
        super().__init__(f"no version of {package} found matching constraint: {constraint}")


class VerificationError(StackmatchError):
    """A package did not end up installed the way it was requested."""


# ── Subprocess failures ─────────────────────────────────────────


class CommandFailedError(StackmatchError):
    """An external command exited non-zero or could not be started."""

    def __init__(
        self,
        command: list[str],
        returncode: int | None,
        output: str = "",
        message: str | None = None,
    ):
        self.command = list(command)
        self.returncode = returncode
        self.output = output
        if message is None:
            if returncode is None:
                message = f"command could not be run: {' '.join(self.command)}"
            else:
                message = f"command failed (exit {returncode}): {' '.join(self.command)}"
        if output.strip():
            message = f"{message}\nOutput: {output.strip()}"
        super().__init__(message)


class CommandTimeoutError(CommandFailedError):
    """The command exceeded its deadline and was killed."""


class CommandCancelledError(CommandFailedError):
    """The caller cancelled the command and the child was killed."""


# ── Selection and mapping ───────────────────────────────────────


class NoPackageManagerError(StackmatchError):
    """None of the package managers for this OS is available."""


class NoMappingForManagerError(StackmatchError):
    """A logical package is known but has no name for this manager."""

    def __init__(self, package: str, manager: str):
        self.package = package
        self.manager = manager
        super().__init__(
            f"no mapping found for package '{package}' on package manager {manager}"
        )


class InvalidMappingError(StackmatchError, ValueError):
    """A package mapping could not be registered."""


# ── Versions ────────────────────────────────────────────────────


class InvalidVersionError(StackmatchError, ValueError):
    """A version string could not be parsed."""


class InvalidConstraintError(StackmatchError, ValueError):
    """A version constraint expression is malformed."""


# ── Bookkeeping ─────────────────────────────────────────────────


class RecordNotFoundError(StackmatchError, KeyError):
    """No installation record exists for the given id."""

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"installation record not found: {record_id}")

    def __str__(self) -> str:
        return self.args[0]


class JournalError(StackmatchError):
    """The installation journal could not be read or written."""


class ConfigError(StackmatchError):
    """Raised when stackmatch configuration is invalid or missing."""


class SnapshotError(StackmatchError):
    """An environment snapshot file could not be read or written."""


# ── Aggregates ──────────────────────────────────────────────────


def _join_failures(failures: dict[str, Any]) -> str:
    return "; ".join(f"{name}: {err}" for name, err in failures.items())


class BatchInstallError(StackmatchError):
    """Some packages in a batch failed; the rest were still attempted."""

    def __init__(self, failures: dict[str, Exception], result: BatchInstallResult | None = None):
        self.failures = dict(failures)
        self.result = result
        # Set when the batch ran under an installation record
        self.record_id: str | None = None
        super().__init__(f"failed to install packages: {_join_failures(self.failures)}")


class RollbackError(StackmatchError):
    """Some tracked packages could not be uninstalled during rollback."""

    def __init__(self, record_id: str, failures: dict[str, Exception]):
        self.record_id = record_id
        self.failures = dict(failures)
        super().__init__(
            f"rollback of {record_id} incomplete: "
            + "; ".join(
                f"failed to uninstall package {name}: {err}"
                for name, err in self.failures.items()
            )
        )
