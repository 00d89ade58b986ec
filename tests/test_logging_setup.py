"""Tests for JSON log output"""

import io
import json
import logging

import pytest

from logging_setup import setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_records_are_json(restore_root_logger):
    stream = io.StringIO()
    setup_logging("INFO", stream=stream)
    logging.getLogger("atm_logic").info("State transition", extra={"to_state": "IDLE"})

    record = json.loads(stream.getvalue().strip())
    assert record["message"] == "State transition"
    assert record["level"] == "INFO"
    assert record["service"] == "atm-terminal"
    assert record["to_state"] == "IDLE"


def test_formatter_uses_current_json_module():
    """The non-deprecated formatter module is the base class"""
    from pythonjsonlogger.json import JsonFormatter

    from logging_setup import TerminalJsonFormatter

    assert issubclass(TerminalJsonFormatter, JsonFormatter)
