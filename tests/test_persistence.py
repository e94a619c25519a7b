"""
Tests for journal file persistence.
"""

import json

import pytest

from stackmatch.core.errors import JournalError
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


def _record(record_id: str, *names: str) -> InstallationRecord:
    return InstallationRecord(
        id=record_id,
        packages={n: TrackedPackage(name=n, version="1.0", manager_type="apt") for n in names},
        status=InstallationStatus.COMPLETED,
    )


class TestLoadJournal:
    def test_missing_file_is_empty(self, journal_path):
        assert load_journal(journal_path) == {}

    def test_blank_file_is_empty(self, journal_path):
        journal_path.parent.mkdir(parents=True)
        journal_path.write_text("  \n")
        assert load_journal(journal_path) == {}

    def test_invalid_json(self, journal_path):
        journal_path.parent.mkdir(parents=True)
        journal_path.write_text("{not json")
        with pytest.raises(JournalError, match="corrupt"):
            load_journal(journal_path)

    def test_wrong_shape(self, journal_path):
        journal_path.parent.mkdir(parents=True)
        journal_path.write_text(json.dumps({"inst_1": {"status": "bogus"}}))
        with pytest.raises(JournalError, match="invalid"):
            load_journal(journal_path)


class TestSaveJournal:
    def test_round_trip_preserves_order(self, journal_path):
        records = {r.id: r for r in (_record("inst_2", "b", "a"), _record("inst_1", "c"))}
        save_journal(records, journal_path)

        loaded = load_journal(journal_path)
        assert list(loaded) == ["inst_2", "inst_1"]
        assert list(loaded["inst_2"].packages) == ["b", "a"]
        assert loaded["inst_1"].status == InstallationStatus.COMPLETED

    def test_creates_parent_directories(self, tmp_path):
        path = tmp_path / "a" / "b" / "installations.json"
        save_journal({}, path)
        assert path.is_file()

    def test_indented_json(self, journal_path):
        save_journal({"inst_1": _record("inst_1", "git")}, journal_path)
        text = journal_path.read_text()
        assert text.startswith("{\n  ")
        assert json.loads(text)["inst_1"]["packages"]["git"]["manager_type"] == "apt"

    def test_no_temp_files_left(self, journal_path):
        save_journal({"inst_1": _record("inst_1")}, journal_path)
        save_journal({"inst_1": _record("inst_1", "git")}, journal_path)
        leftovers = [p.name for p in journal_path.parent.iterdir() if p.name.startswith(".journal_")]
        assert leftovers == []

    def test_unwritable(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        with pytest.raises(JournalError, match="cannot write"):
            save_journal({}, blocker / "installations.json")


def test_default_journal_path():
    path = default_journal_path()
    assert path.name == "installations.json"
    assert path.parent.name == ".stackmatch"
