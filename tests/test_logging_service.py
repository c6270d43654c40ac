"""
Tests for the logging setup
"""
import logging

import pytest

from sitephoto.services.logging_service import LOG_FILENAME, get_logger, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestSetupLogging:
    """Tests for setup_logging"""

    def test_writes_rotating_log_file(self, tmp_path, restore_root_logger):
        log_path = setup_logging(log_dir=tmp_path, force=True)
        get_logger("sitephoto.test").info("ledger exported")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert log_path == tmp_path / LOG_FILENAME
        assert "ledger exported" in log_path.read_text(encoding="utf-8")

    def test_console_only(self, restore_root_logger):
        assert setup_logging(log_to_file=False, force=True) is None
        assert len(logging.getLogger().handlers) == 1

    def test_http_library_quieted(self, tmp_path, restore_root_logger):
        setup_logging(logging.DEBUG, log_dir=tmp_path, force=True)

        assert logging.getLogger("urllib3").level == logging.WARNING
        assert logging.getLogger().level == logging.DEBUG
