"""
L4 Execution: Installation journal and rollback.

Every install batch gets an ``InstallationRecord``; every newly
installed package is added to it. The whole journal is rewritten
after each mutation, so the file always reflects the last completed
operation, and a later ``rollback`` can uninstall exactly what a
batch added.
"""

from __future__ import annotations

import logging
import threading
import time
from pathlib import Path

from stackmatch.adapters.base import PackageManager
from stackmatch.core.errors import RecordNotFoundError, RollbackError, StackmatchError
from stackmatch.core.models.environment import EnvironmentData
from stackmatch.core.models.installation import (
    InstallationRecord,
    InstallationStatus,
    TrackedPackage,
)
from stackmatch.core.persistence.journal_file import (
    default_journal_path,
    load_journal,
    save_journal,
)
from stackmatch.core.services.installer.domain.rollback import rollback_order

logger = logging.getLogger(__name__)


class InstallationTracker:
    """Journal of installation batches, persisted to one JSON file.

    All public methods hold the same lock for their whole duration,
    persist step included. Records handed out are deep copies.

    Raises:
        JournalError: On construction, if the journal exists but is unreadable.
    """

    def __init__(self, journal_path: Path | str | None = None):
        self.journal_path = Path(journal_path) if journal_path else default_journal_path()
        self._lock = threading.Lock()
        self._records: dict[str, InstallationRecord] = load_journal(self.journal_path)

    # ── Internals (caller holds the lock) ───────────────────────

    def _new_id(self) -> str:
        stamp = time.time_ns()
        while f"inst_{stamp}" in self._records:
            stamp += 1
        return f"inst_{stamp}"

    def _get(self, record_id: str) -> InstallationRecord:
        try:
            return self._records[record_id]
        except KeyError:
            raise RecordNotFoundError(record_id) from None

    def _persist(self) -> None:
        save_journal(self._records, self.journal_path)

    # ── Record lifecycle ────────────────────────────────────────

    def start_installation(self, environment: EnvironmentData | None = None) -> InstallationRecord:
        """Open a new in-progress record and persist it.

        If the journal cannot be written the record is discarded and
        the ``JournalError`` propagates.
        """
        with self._lock:
            record = InstallationRecord(
                id=self._new_id(),
                environment=environment.model_copy(deep=True) if environment else None,
            )
            self._records[record.id] = record
            try:
                self._persist()
            except StackmatchError:
                del self._records[record.id]
                raise
            logger.info("Started installation %s", record.id)
            return record.model_copy(deep=True)

    def add_package(self, record_id: str, package: TrackedPackage) -> None:
        with self._lock:
            record = self._get(record_id)
            record.packages[package.name] = package.model_copy(deep=True)
            record.touch()
            self._persist()
            logger.debug("Tracked %s %s under %s", package.name, package.version, record_id)

    def complete_installation(self, record_id: str) -> None:
        with self._lock:
            record = self._get(record_id)
            record.status = InstallationStatus.COMPLETED
            record.touch()
            self._persist()
            logger.info("Installation %s completed (%d packages)", record_id, len(record.packages))

    def fail_installation(self, record_id: str, reason: str) -> None:
        with self._lock:
            record = self._get(record_id)
            record.status = InstallationStatus.FAILED
            record.metadata["failure_reason"] = reason
            record.touch()
            self._persist()
            logger.warning("Installation %s failed: %s", record_id, reason)

    # ── Rollback ────────────────────────────────────────────────

    def rollback(self, record_id: str, manager: PackageManager) -> None:
        """Uninstall every package the record tracked, newest first.

        Individual uninstall failures do not stop the rollback. The
        record is always saved with its final status before any
        error is raised.

        Raises:
            RecordNotFoundError: Unknown id.
            RollbackError: One or more packages could not be uninstalled.
        """
        with self._lock:
            record = self._get(record_id)
            record.status = InstallationStatus.ROLLING_BACK
            record.touch()
            self._persist()
            logger.info("Rolling back %s via %s", record_id, manager.name)

            failures: dict[str, Exception] = {}
            for pkg in rollback_order(record.packages):
                if pkg.manager_type and pkg.manager_type != manager.type:
                    logger.warning(
                        "%s was installed with %s, uninstalling with %s",
                        pkg.name, pkg.manager_type, manager.type,
                    )
                try:
                    manager.uninstall_package(pkg.name)
                except StackmatchError as e:
                    logger.warning("Rollback of %s failed: %s", pkg.name, e)
                    pkg.rollback_status = "failed"
                    failures[pkg.name] = e
                else:
                    pkg.rollback_status = "uninstalled"

            error = RollbackError(record_id, failures) if failures else None
            if error is None:
                record.status = InstallationStatus.ROLLED_BACK
                record.metadata.pop("rollback_error", None)
            else:
                record.status = InstallationStatus.ROLLBACK_FAILED
                record.metadata["rollback_error"] = str(error)
            record.touch()
            self._persist()

        if error is not None:
            raise error
        logger.info("Rolled back %s", record_id)

    # ── Queries ─────────────────────────────────────────────────

    def get_installation(self, record_id: str) -> InstallationRecord | None:
        with self._lock:
            record = self._records.get(record_id)
            return record.model_copy(deep=True) if record else None

    def list_installations(self) -> list[InstallationRecord]:
        """All records, oldest first."""
        with self._lock:
            return [r.model_copy(deep=True) for r in self._records.values()]
