from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

from staffdesk_client import logging_utils


def test_resolve_logs_dir_prefers_env_override(tmp_path, monkeypatch):
    target = tmp_path / "custom-logs"
    monkeypatch.setenv("STAFFDESK_LOG_DIR", str(target))

    resolved = logging_utils.resolve_logs_dir()

    assert resolved == target
    assert target.is_dir()


def test_resolve_logs_dir_falls_back_to_xdg_state(tmp_path, monkeypatch):
    monkeypatch.delenv("STAFFDESK_LOG_DIR", raising=False)
    monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path / "state"))

    resolved = logging_utils.resolve_logs_dir("StaffDeskTest")

    assert resolved == tmp_path / "state" / "StaffDeskTest" / "logs"


def test_build_rotating_file_handler_applies_retention(tmp_path):
    handler = logging_utils.build_rotating_file_handler(tmp_path / "logs", "app.log", retention=3, max_bytes=1024)
    try:
        assert isinstance(handler, RotatingFileHandler)
        assert handler.backupCount == 2
        assert handler.maxBytes == 1024
    finally:
        handler.close()


def test_debug_flag_and_level():
    assert logging_utils.debug_enabled({"STAFFDESK_DEBUG": "yes"}) is True
    assert logging_utils.debug_enabled({"STAFFDESK_DEBUG": "0"}) is False
    assert logging_utils.debug_enabled({}) is False
    assert logging_utils.resolve_log_level(True) == logging.DEBUG
    assert logging_utils.resolve_log_level(False) == logging.INFO


def test_configure_logging_is_idempotent(tmp_path):
    logger = logging.getLogger(logging_utils.ROOT_LOGGER_NAME)
    before = list(logger.handlers)
    try:
        logging_utils.configure_logging("test.log", debug=True, log_dir=tmp_path)
        logging_utils.configure_logging("test.log", debug=True, log_dir=tmp_path)
        added = [handler for handler in logger.handlers if handler not in before]
        assert len(added) == 1
        assert logger.level == logging.DEBUG

        logging.getLogger("StaffDesk.Session").info("session message")
        added[0].flush()
        assert "session message" in (tmp_path / "test.log").read_text(encoding="utf-8")
    finally:
        for handler in logger.handlers[:]:
            if handler not in before:
                logger.removeHandler(handler)
                handler.close()
        logger.setLevel(logging.NOTSET)
