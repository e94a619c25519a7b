"""
Shared test fixtures and configuration.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from stackmatch.adapters.mock import MockPackageManager
from stackmatch.core.services.installer.execution.tracker import InstallationTracker
from tests.fakes import FakeRunner


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def mock_manager() -> MockPackageManager:
    return MockPackageManager()


@pytest.fixture
def journal_path(tmp_path: Path) -> Path:
    return tmp_path / "journal" / "installations.json"


@pytest.fixture
def tracker(journal_path: Path) -> InstallationTracker:
    return InstallationTracker(journal_path)


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """Undo the root-logger changes ``setup_logging`` makes."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
