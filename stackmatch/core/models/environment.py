"""
EnvironmentData: the scanned snapshot of a developer machine.

This is the document written by ``stackmatch export`` and read back by
``stackmatch import``. It is also attached to installation records so
the journal remembers which snapshot a replay came from.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field


def _now() -> datetime:
    return datetime.now(UTC)


class SystemInfo(BaseModel):
    """Operating system and architecture of the scanned machine."""

    os: str = ""
    arch: str = ""
    shell: str = ""
    hostname: str = ""


class EnvironmentData(BaseModel):
    """Top-level scan result, serialized to/from JSON."""

    stackmatch_version: str = ""
    scan_date: datetime = Field(default_factory=_now)
    system: SystemInfo = Field(default_factory=SystemInfo)

    # name → version (or "Installed" when the version could not be read)
    tools: dict[str, str] = Field(default_factory=dict)
    package_managers: dict[str, str] = Field(default_factory=dict)
    code_editors: dict[str, str] = Field(default_factory=dict)
    configured_languages: dict[str, str] = Field(default_factory=dict)

    config_files: list[str] = Field(default_factory=list)
