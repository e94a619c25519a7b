"""
Journal file persistence: atomic read/write for installation records.

The journal is the full id → record map stored as indented JSON in a
single file. Writes are atomic (write to temp file, then rename) so a
crash mid-write leaves the previous journal intact.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from stackmatch.core.errors import JournalError
from stackmatch.core.models.installation import InstallationRecord

logger = logging.getLogger(__name__)

DEFAULT_JOURNAL_DIR = "~/.stackmatch"
DEFAULT_JOURNAL_FILE = "installations.json"

_RECORDS = TypeAdapter(dict[str, InstallationRecord])


def default_journal_path() -> Path:
    """Get the default journal path in the user's home directory."""
    return Path(DEFAULT_JOURNAL_DIR).expanduser() / DEFAULT_JOURNAL_FILE


def load_journal(path: Path) -> dict[str, InstallationRecord]:
    """Load every installation record from the journal.

    Args:
        path: Path to the journal JSON file.

    Returns:
        id → record, in file order. Empty if the file doesn't exist.

    Raises:
        JournalError: The file exists but cannot be read or parsed.
    """
    if not path.is_file():
        logger.debug("No journal at %s, starting empty", path)
        return {}

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise JournalError(f"cannot read journal {path}: {e}") from e

    if not raw.strip():
        return {}

    try:
        records = _RECORDS.validate_python(json.loads(raw))
    except json.JSONDecodeError as e:
        raise JournalError(f"corrupt journal {path}: {e}") from e
    except ValidationError as e:
        raise JournalError(f"invalid journal {path}: {e.error_count()} error(s)\n{e}") from e

    logger.debug("Loaded %d installation record(s) from %s", len(records), path)
    return records


def save_journal(records: dict[str, InstallationRecord], path: Path) -> None:
    """Save every installation record to the journal (atomic write).

    Raises:
        JournalError: The journal could not be written.
    """
    data = _RECORDS.dump_python(records, mode="json")
    content = json.dumps(data, indent=2, ensure_ascii=False) + "\n"

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=path.parent,
            prefix=".journal_",
            suffix=".tmp",
        )
        tmp = Path(tmp_path)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(content)
            tmp.replace(path)
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise
    except OSError as e:
        logger.error("Failed to save journal to %s: %s", path, e)
        raise JournalError(f"cannot write journal {path}: {e}") from e

    logger.debug("Journal saved to %s (%d records)", path, len(records))
