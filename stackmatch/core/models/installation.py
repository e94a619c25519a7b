"""
InstallationRecord: one journaled install batch.

Records are created when a batch starts, mutated as it progresses,
and persisted after every mutation. They are never deleted
automatically; history accumulates until pruned by hand.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, Field

from stackmatch.core.models.environment import EnvironmentData


def _now() -> datetime:
    return datetime.now(UTC)


class InstallationStatus(StrEnum):
    """Lifecycle of an installation record.

    in_progress → completed | failed
    completed | failed → rolling_back → rolled_back | rollback_failed
    """

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    ROLLING_BACK = "rolling_back"
    ROLLED_BACK = "rolled_back"
    ROLLBACK_FAILED = "rollback_failed"


class TrackedPackage(BaseModel):
    """A package installed under a record."""

    name: str
    version: str = ""
    manager_type: str = ""
    rollback_status: Literal["uninstalled", "failed"] | None = None


class InstallationRecord(BaseModel):
    """Journal entry for one install batch.

    ``packages`` keeps insertion order, which is the order rollback
    walks in reverse.
    """

    id: str
    timestamp: datetime = Field(default_factory=_now)
    packages: dict[str, TrackedPackage] = Field(default_factory=dict)
    environment: EnvironmentData | None = None
    metadata: dict[str, str] = Field(default_factory=dict)
    status: InstallationStatus = InstallationStatus.IN_PROGRESS

    def touch(self) -> None:
        """Update the timestamp."""
        self.timestamp = _now()
