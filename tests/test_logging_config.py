"""
Tests for root logging setup and the debug toggle.
"""

import logging
import logging.handlers

import pytest

import logging_config
from logging_config import setup_logging, set_debug_mode, LOG_FORMAT, LOG_FORMAT_DEBUG


@pytest.fixture
def root_logger(monkeypatch):
    """Give each test a clean module state and put the root logger back afterwards."""
    monkeypatch.setattr(logging_config, '_log_file_path', None)
    monkeypatch.setattr(logging_config, '_debug_mode', False)
    monkeypatch.setattr(logging_config, '_handlers', [])

    root = logging.getLogger()
    saved_handlers = root.handlers[:]
    saved_level = root.level
    yield root

    for handler in root.handlers[:]:
        root.removeHandler(handler)
        if handler not in saved_handlers:
            handler.close()
    for handler in saved_handlers:
        root.addHandler(handler)
    root.setLevel(saved_level)


def handlers_of(root, kind):
    return [h for h in root.handlers if type(h) is kind]


class TestSetupLogging:

    def test_file_handler_at_given_path(self, root_logger, tmp_path):
        log_file = tmp_path / "logs" / "run.log"
        setup_logging(console=False, file=True, log_file=log_file)

        (file_handler,) = handlers_of(root_logger, logging.handlers.RotatingFileHandler)
        assert file_handler.baseFilename == str(log_file)
        assert file_handler.level == logging.INFO
        assert file_handler.formatter._fmt == LOG_FORMAT
        assert file_handler.maxBytes == logging_config.MAX_BYTES
        assert file_handler.backupCount == logging_config.BACKUP_COUNT
        assert root_logger.level == logging.DEBUG

        logging.getLogger("peak_engine.test").info("hello from the test")
        file_handler.flush()
        assert "hello from the test" in log_file.read_text(encoding="utf-8")

    def test_console_only(self, root_logger):
        setup_logging(console=True, file=False)

        assert handlers_of(root_logger, logging.handlers.RotatingFileHandler) == []
        (console,) = handlers_of(root_logger, logging.StreamHandler)
        assert console.level == logging.INFO

    def test_default_location_under_config_dir(self, root_logger, tmp_path, monkeypatch):
        monkeypatch.setattr(logging_config, 'get_config_dir', lambda: tmp_path)
        setup_logging(console=False, file=True)

        (file_handler,) = handlers_of(root_logger, logging.handlers.RotatingFileHandler)
        assert file_handler.baseFilename == str(tmp_path / "logs" / logging_config.LOG_FILE_NAME)

    def test_second_call_replaces_handlers(self, root_logger, tmp_path):
        setup_logging(console=True, file=True, log_file=tmp_path / "a.log")
        first = root_logger.handlers[:]
        setup_logging(console=True, file=True, log_file=tmp_path / "a.log")

        assert len(root_logger.handlers) == 2
        assert not any(h in root_logger.handlers for h in first)


class TestDebugMode:

    def test_toggle_updates_live_handlers(self, root_logger, tmp_path):
        setup_logging(console=True, file=True, log_file=tmp_path / "debug.log")

        set_debug_mode(True)
        for handler in root_logger.handlers:
            assert handler.level == logging.DEBUG
            assert handler.formatter._fmt == LOG_FORMAT_DEBUG

        set_debug_mode(False)
        for handler in root_logger.handlers:
            assert handler.level == logging.INFO
            assert handler.formatter._fmt == LOG_FORMAT

    def test_debug_before_setup_applies_to_new_handlers(self, root_logger, tmp_path):
        set_debug_mode(True)
        setup_logging(console=False, file=True, log_file=tmp_path / "early.log")

        (file_handler,) = root_logger.handlers
        assert file_handler.level == logging.DEBUG
        assert file_handler.formatter._fmt == LOG_FORMAT_DEBUG
