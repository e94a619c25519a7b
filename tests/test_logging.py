"""
Tests for logging setup.
"""

import logging

import pytest

from stackmatch.core.observability.logging_config import (
    ENV_LOG_LEVEL,
    resolve_level,
    setup_logging,
)


class TestResolveLevel:
    def test_flag_precedence(self, monkeypatch):
        monkeypatch.setenv(ENV_LOG_LEVEL, "ERROR")
        assert resolve_level(debug=True, verbose=True, quiet=True) == "DEBUG"
        assert resolve_level(verbose=True, quiet=True) == "INFO"
        assert resolve_level(quiet=True) == "ERROR"

    def test_env_then_default(self, monkeypatch):
        monkeypatch.setenv(ENV_LOG_LEVEL, "INFO")
        assert resolve_level() == "INFO"
        monkeypatch.delenv(ENV_LOG_LEVEL)
        assert resolve_level() == "WARNING"


class TestSetupLogging:
    def test_replaces_root_handlers(self):
        setup_logging("INFO")
        setup_logging("INFO")
        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.level == logging.INFO

    def test_unknown_level_falls_back_to_warning(self):
        setup_logging("LOUD")
        assert logging.getLogger().level == logging.WARNING

    def test_file_handler_with_own_level(self, tmp_path):
        log_file = tmp_path / "stackmatch.log"
        setup_logging("WARNING", log_file=str(log_file), log_file_level="DEBUG")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        logging.getLogger("stackmatch.test").debug("to the file only")
        for handler in root.handlers:
            handler.flush()
        assert "to the file only" in log_file.read_text()
