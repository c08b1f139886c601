"""Tests for logging setup."""

import logging

import pytest

from statline.logging_setup import setup_logging, statline_handlers


@pytest.fixture
def root_logger():
    root = logging.getLogger()
    saved_level = root.level
    yield root
    for handler in statline_handlers(root):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(saved_level)


def test_file_and_console_handlers(tmp_path, root_logger):
    """Test both a file and a console handler are installed."""
    log_file = tmp_path / "statline.log"

    setup_logging("ERROR", str(log_file))

    assert root_logger.level == logging.ERROR
    kinds = {type(handler) for handler in statline_handlers(root_logger)}
    assert kinds == {logging.FileHandler, logging.StreamHandler}


def test_console_disabled(tmp_path, root_logger):
    """Test the console handler can be left out for the terminal UI."""
    setup_logging("INFO", str(tmp_path / "statline.log"), console=False)

    handlers = statline_handlers(root_logger)
    assert [type(handler) for handler in handlers] == [logging.FileHandler]


def test_unwritable_log_file(tmp_path, root_logger):
    """Test an unopenable log file falls back to a NullHandler."""
    setup_logging("INFO", str(tmp_path / "missing" / "dir" / "x.log"), console=False)

    handlers = statline_handlers(root_logger)
    assert [type(handler) for handler in handlers] == [logging.NullHandler]


def test_second_call_only_changes_level(tmp_path, root_logger):
    """Test handlers are installed once; later calls adjust the level."""
    setup_logging("INFO", str(tmp_path / "statline.log"))
    setup_logging("DEBUG", str(tmp_path / "other.log"))

    handlers = statline_handlers(root_logger)
    assert len(handlers) == 2
    assert root_logger.level == logging.DEBUG
    assert all(handler.level == logging.DEBUG for handler in handlers)


def test_unknown_level_falls_back(root_logger):
    """Test an unknown level name falls back to INFO."""
    setup_logging("chatty", None, console=False)
    assert root_logger.level == logging.INFO


def test_messages_reach_file(tmp_path, root_logger):
    """Test module loggers write through the configured file."""
    log_file = tmp_path / "statline.log"
    setup_logging("DEBUG", str(log_file), console=False)

    logging.getLogger("statline.disk").debug("probe failed")
    for handler in statline_handlers(root_logger):
        handler.flush()

    assert "[DEBUG] statline.disk: probe failed" in log_file.read_text()
