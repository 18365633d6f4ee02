"""Tests for structured logging functionality."""

from __future__ import annotations

import json
import logging
import logging.handlers
import sys

import pytest

from habitpulse.config import BaseConfig
from habitpulse.logging_config import JSONFormatter, get_logger, setup_logging


def make_record(**kwargs) -> logging.LogRecord:
    record = logging.LogRecord(
        name="habitpulse.test",
        level=kwargs.pop("level", logging.INFO),
        pathname="test.py",
        lineno=42,
        msg=kwargs.pop("msg", "Toggled habit"),
        args=(),
        exc_info=kwargs.pop("exc_info", None),
    )
    record.module = "test_module"
    record.funcName = "test_function"
    for key, value in kwargs.items():
        setattr(record, key, value)
    return record


def test_json_formatter():
    """JSONFormatter renders the standard fields."""
    log_data = json.loads(JSONFormatter().format(make_record()))

    assert log_data["level"] == "INFO"
    assert log_data["logger"] == "habitpulse.test"
    assert log_data["message"] == "Toggled habit"
    assert log_data["module"] == "test_module"
    assert log_data["function"] == "test_function"
    assert log_data["line"] == 42
    assert "timestamp" in log_data
    assert "extra" not in log_data


def test_json_formatter_includes_extra_fields():
    record = make_record(habit_id="h1", user_id="user-1")

    log_data = json.loads(JSONFormatter().format(record))

    assert log_data["extra"] == {"habit_id": "h1", "user_id": "user-1"}


def test_json_formatter_with_exception():
    """JSONFormatter correctly handles exceptions."""
    try:
        raise ValueError("Test error")
    except ValueError:
        exc_info = sys.exc_info()

    log_data = json.loads(
        JSONFormatter().format(make_record(level=logging.ERROR, msg="Boom", exc_info=exc_info))
    )

    assert log_data["exception"]["type"] == "ValueError"
    assert "Test error" in log_data["exception"]["message"]
    assert log_data["exception"]["traceback"] is not None


def test_setup_logging(tmp_path):
    """Logging setup writes JSON lines to a rotating file under DATA_DIR/logs."""
    config = BaseConfig()
    config.DATA_DIR = tmp_path
    config.DEV_MODE = True

    logger = setup_logging(config)

    assert logger.name == "habitpulse"
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 2  # Console + File

    log_file = tmp_path / "logs" / "habitpulse.log"
    assert log_file.exists()

    get_logger("services.test").warning("Child logger message", extra={"habit_id": "h1"})
    for handler in logger.handlers:
        handler.flush()

    lines = [line for line in log_file.read_text(encoding="utf-8").splitlines() if line.strip()]
    entries = [json.loads(line) for line in lines]
    assert entries[0]["message"] == "Logging initialized"
    assert entries[-1]["logger"] == "habitpulse.services.test"
    assert entries[-1]["extra"]["habit_id"] == "h1"


def test_setup_logging_replaces_handlers(tmp_path):
    config = BaseConfig()
    config.DATA_DIR = tmp_path

    setup_logging(config)
    logger = setup_logging(config)

    assert len(logger.handlers) == 2


def test_get_logger():
    """get_logger returns loggers namespaced under the package logger."""
    logger1 = get_logger("module1")
    logger2 = get_logger("module2")

    assert logger1.name == "habitpulse.module1"
    assert logger2.name == "habitpulse.module2"
    assert logger1 != logger2


@pytest.mark.parametrize("dev_mode", [True, False])
def test_logging_levels_by_mode(tmp_path, dev_mode):
    """Console and logger levels adjust based on dev mode."""
    config = BaseConfig()
    config.DATA_DIR = tmp_path
    config.DEV_MODE = dev_mode

    logger = setup_logging(config)

    console_handler = next(
        handler
        for handler in logger.handlers
        if isinstance(handler, logging.StreamHandler)
        and not isinstance(handler, logging.handlers.RotatingFileHandler)
    )
    assert console_handler.level == (logging.INFO if dev_mode else logging.WARNING)
    assert logger.level == (logging.DEBUG if dev_mode else logging.INFO)
