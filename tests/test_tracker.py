"""
Tests for InstallationTracker: record lifecycle, persistence, rollback.
"""

import json

import pytest

from stackmatch.adapters.mock import MockPackageManager
from stackmatch.core.errors import (
    CommandFailedError,
    JournalError,
    RecordNotFoundError,
    RollbackError,
)
from stackmatch.core.models.environment import EnvironmentData
from stackmatch.core.models.installation import InstallationStatus, TrackedPackage
from stackmatch.core.services.installer.domain.rollback import rollback_order
from stackmatch.core.services.installer.execution.tracker import InstallationTracker


def _pkg(name: str, version: str = "1.0.0") -> TrackedPackage:
    return TrackedPackage(name=name, version=version, manager_type="apt")


# ── Lifecycle ───────────────────────────────────────────────────


class TestLifecycle:
    def test_start_creates_in_progress_record(self, tracker):
        record = tracker.start_installation()
        assert record.id.startswith("inst_")
        assert record.status == InstallationStatus.IN_PROGRESS
        assert record.packages == {}

    def test_ids_are_unique(self, tracker):
        ids = {tracker.start_installation().id for _ in range(20)}
        assert len(ids) == 20

    def test_start_persists_immediately(self, tracker, journal_path):
        record = tracker.start_installation()
        data = json.loads(journal_path.read_text())
        assert record.id in data

    def test_environment_snapshot_is_copied(self, tracker):
        env = EnvironmentData(tools={"Git": "2.43.0"})
        record = tracker.start_installation(env)
        env.tools["Git"] = "changed"
        assert tracker.get_installation(record.id).environment.tools["Git"] == "2.43.0"

    def test_add_and_complete(self, tracker):
        record = tracker.start_installation()
        tracker.add_package(record.id, _pkg("git", "2.43.0"))
        tracker.add_package(record.id, _pkg("curl"))
        tracker.complete_installation(record.id)

        stored = tracker.get_installation(record.id)
        assert stored.status == InstallationStatus.COMPLETED
        assert list(stored.packages) == ["git", "curl"]
        assert stored.packages["git"].version == "2.43.0"

    def test_add_bumps_timestamp(self, tracker):
        record = tracker.start_installation()
        tracker.add_package(record.id, _pkg("git"))
        assert tracker.get_installation(record.id).timestamp >= record.timestamp

    def test_fail_records_reason(self, tracker):
        record = tracker.start_installation()
        tracker.fail_installation(record.id, "network down")
        stored = tracker.get_installation(record.id)
        assert stored.status == InstallationStatus.FAILED
        assert stored.metadata["failure_reason"] == "network down"

    @pytest.mark.parametrize("call", [
        lambda t: t.add_package("inst_missing", _pkg("git")),
        lambda t: t.complete_installation("inst_missing"),
        lambda t: t.fail_installation("inst_missing", "x"),
        lambda t: t.rollback("inst_missing", MockPackageManager()),
    ])
    def test_unknown_id(self, tracker, call):
        with pytest.raises(RecordNotFoundError) as exc:
            call(tracker)
        assert "inst_missing" in str(exc.value)

    def test_get_unknown_is_none(self, tracker):
        assert tracker.get_installation("inst_missing") is None


class TestCopies:
    def test_returned_record_is_detached(self, tracker):
        record = tracker.start_installation()
        record.packages["ghost"] = _pkg("ghost")
        record.status = InstallationStatus.COMPLETED
        stored = tracker.get_installation(record.id)
        assert stored.packages == {}
        assert stored.status == InstallationStatus.IN_PROGRESS

    def test_added_package_is_copied(self, tracker):
        record = tracker.start_installation()
        pkg = _pkg("git")
        tracker.add_package(record.id, pkg)
        pkg.version = "9.9.9"
        assert tracker.get_installation(record.id).packages["git"].version == "1.0.0"

    def test_list_in_creation_order(self, tracker):
        ids = [tracker.start_installation().id for _ in range(3)]
        assert [r.id for r in tracker.list_installations()] == ids


# ── Persistence ─────────────────────────────────────────────────


class TestReload:
    def test_restart_sees_same_records(self, journal_path):
        first = InstallationTracker(journal_path)
        record = first.start_installation(EnvironmentData(tools={"Git": "2.43.0"}))
        first.add_package(record.id, _pkg("git", "2.43.0"))
        first.complete_installation(record.id)
        before = first.get_installation(record.id)

        second = InstallationTracker(journal_path)
        after = second.get_installation(record.id)
        assert after.model_dump() == before.model_dump()

    def test_new_ids_do_not_collide_after_reload(self, journal_path):
        first = InstallationTracker(journal_path)
        old = first.start_installation().id
        second = InstallationTracker(journal_path)
        assert second.start_installation().id != old
        assert len(second.list_installations()) == 2

    def test_corrupt_journal_refuses_to_load(self, journal_path):
        journal_path.parent.mkdir(parents=True)
        journal_path.write_text("{ nope")
        with pytest.raises(JournalError):
            InstallationTracker(journal_path)

    def test_unwritable_journal_discards_new_record(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")
        tracker = InstallationTracker(blocker / "installations.json")
        with pytest.raises(JournalError):
            tracker.start_installation()
        assert tracker.list_installations() == []


# ── Rollback ────────────────────────────────────────────────────


class TestRollbackOrder:
    def test_reverse_insertion_order(self):
        packages = {n: _pkg(n) for n in ("a", "b", "c")}
        assert [p.name for p in rollback_order(packages)] == ["c", "b", "a"]

    def test_skips_already_uninstalled(self):
        packages = {n: _pkg(n) for n in ("a", "b", "c")}
        packages["b"].rollback_status = "uninstalled"
        packages["c"].rollback_status = "failed"
        assert [p.name for p in rollback_order(packages)] == ["c", "a"]


class TestRollback:
    def _record(self, tracker, names):
        record = tracker.start_installation()
        for name in names:
            tracker.add_package(record.id, _pkg(name))
        tracker.complete_installation(record.id)
        return record.id

    def test_uninstalls_newest_first(self, tracker):
        record_id = self._record(tracker, ["git", "curl", "vim"])
        pm = MockPackageManager(installed={"git": "1", "curl": "1", "vim": "1"})

        tracker.rollback(record_id, pm)

        assert pm.calls("uninstall_package") == ["vim", "curl", "git"]
        assert pm.installed == {}
        stored = tracker.get_installation(record_id)
        assert stored.status == InstallationStatus.ROLLED_BACK
        assert all(p.rollback_status == "uninstalled" for p in stored.packages.values())

    def test_empty_record(self, tracker):
        record_id = self._record(tracker, [])
        tracker.rollback(record_id, MockPackageManager())
        assert tracker.get_installation(record_id).status == InstallationStatus.ROLLED_BACK

    def test_partial_failure_continues(self, tracker):
        record_id = self._record(tracker, ["git", "curl", "vim"])
        pm = MockPackageManager(installed={"git": "1", "curl": "1", "vim": "1"})
        pm.set_failure("uninstall_package", "curl", CommandFailedError(["apt-get"], 100, "locked"))

        with pytest.raises(RollbackError) as exc:
            tracker.rollback(record_id, pm)

        assert list(exc.value.failures) == ["curl"]
        assert "failed to uninstall package curl" in str(exc.value)
        assert pm.calls("uninstall_package") == ["vim", "curl", "git"]

        stored = tracker.get_installation(record_id)
        assert stored.status == InstallationStatus.ROLLBACK_FAILED
        assert "curl" in stored.metadata["rollback_error"]
        assert stored.packages["curl"].rollback_status == "failed"
        assert stored.packages["git"].rollback_status == "uninstalled"

    def test_final_status_persisted_before_raise(self, tracker, journal_path):
        record_id = self._record(tracker, ["git"])
        pm = MockPackageManager()
        pm.set_failure("uninstall_package", "git", CommandFailedError(["apt-get"], 1))

        with pytest.raises(RollbackError):
            tracker.rollback(record_id, pm)

        reloaded = InstallationTracker(journal_path).get_installation(record_id)
        assert reloaded.status == InstallationStatus.ROLLBACK_FAILED

    def test_retry_only_touches_remaining(self, tracker):
        record_id = self._record(tracker, ["git", "curl"])
        pm = MockPackageManager(installed={"git": "1", "curl": "1"})
        pm.set_failure("uninstall_package", "git", CommandFailedError(["apt-get"], 1))
        with pytest.raises(RollbackError):
            tracker.rollback(record_id, pm)

        pm.reset()
        tracker.rollback(record_id, pm)

        assert pm.calls("uninstall_package") == ["git"]
        stored = tracker.get_installation(record_id)
        assert stored.status == InstallationStatus.ROLLED_BACK
        assert "rollback_error" not in stored.metadata
