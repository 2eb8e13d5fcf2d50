"""
Tests for observability — logging setup and the SUCCESS level.
"""

import logging
from pathlib import Path

import pytest

from ghost_provision.core.observability.logging_config import (
    SUCCESS,
    _parse_level,
    log_success,
    setup_logging,
)


@pytest.fixture(autouse=True)
def restore_root_logger():
    """setup_logging replaces root handlers; put the originals back."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        if handler not in handlers:
            handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


class TestLevels:
    def test_success_between_info_and_warning(self):
        assert logging.INFO < SUCCESS < logging.WARNING
        assert logging.getLevelName(SUCCESS) == "SUCCESS"

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("DEBUG", logging.DEBUG),
            ("info", logging.INFO),
            ("SUCCESS", SUCCESS),
            ("ERROR", logging.ERROR),
            ("nonsense", logging.INFO),
            (None, logging.INFO),
        ],
    )
    def test_parse_level(self, name, expected):
        assert _parse_level(name) == expected


class TestSetupLogging:
    def test_console_only(self):
        assert setup_logging(level="WARNING") is None
        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.level == logging.WARNING

    def test_file_gets_full_detail(self, tmp_path: Path):
        log_file = tmp_path / "logs" / "run.log"
        opened = setup_logging(level="ERROR", log_file=log_file)
        assert opened == log_file

        logger = logging.getLogger("ghost_provision.test")
        logger.debug("debug detail")
        log_success(logger, "stage %d done", 3)
        for handler in logging.getLogger().handlers:
            handler.flush()

        text = log_file.read_text()
        assert "debug detail" in text
        assert "SUCCESS" in text
        assert "stage 3 done" in text
        assert "ghost_provision.test" in text

    def test_file_is_appended(self, tmp_path: Path):
        log_file = tmp_path / "run.log"
        log_file.write_text("previous run\n")
        setup_logging(level="ERROR", log_file=log_file)
        logging.getLogger("ghost_provision.test").info("this run")
        for handler in logging.getLogger().handlers:
            handler.flush()

        lines = log_file.read_text().splitlines()
        assert lines[0] == "previous run"
        assert "this run" in lines[-1]

    def test_unopenable_file(self, tmp_path: Path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        assert setup_logging(level="ERROR", log_file=blocker / "run.log") is None
