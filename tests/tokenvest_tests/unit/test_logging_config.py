"""
Structured JSON logging output.
"""

import io
import json
import logging

import pytest

from tokenvest.core.logging_config import CustomJsonFormatter, setup_logging


@pytest.fixture
def stream():
    buffer = io.StringIO()
    yield buffer
    logger = logging.getLogger("tokenvest.test_logging")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def test_records_are_json_with_context(stream):
    logger = setup_logging(
        name="tokenvest.test_logging", level="INFO", environment="development", stream=stream
    )
    logger.info("Schedule created", extra={"event": "vesting.created", "amount": 1000})

    record = json.loads(stream.getvalue().splitlines()[-1])
    assert record["message"] == "Schedule created"
    assert record["event"] == "vesting.created"
    assert record["amount"] == 1000
    assert record["level"] == "info"
    assert record["environment"] == "development"
    assert record["service"] == "tokenvest"
    assert record["source"]["function"] == "test_records_are_json_with_context"
    assert record["timestamp"]


def test_level_filters_records(stream):
    logger = setup_logging(name="tokenvest.test_logging", level="WARNING", stream=stream)
    logger.info("hidden")
    logger.warning("shown")
    lines = stream.getvalue().splitlines()
    assert len(lines) == 1
    assert json.loads(lines[0])["message"] == "shown"


def test_repeated_setup_does_not_duplicate_handlers(stream):
    setup_logging(name="tokenvest.test_logging", stream=stream)
    logger = setup_logging(name="tokenvest.test_logging", stream=stream)
    assert len(logger.handlers) == 1


def test_file_handler_writes_json(tmp_path, stream):
    log_file = tmp_path / "logs" / "engine.json"
    logger = setup_logging(
        name="tokenvest.test_logging", log_file=str(log_file), enable_console=False
    )
    logger.error("disk", extra={"event": "storage.failed"})
    for handler in logger.handlers:
        handler.flush()

    record = json.loads(log_file.read_text(encoding="utf-8").splitlines()[-1])
    assert record["event"] == "storage.failed"
    assert record["level"] == "error"


def test_formatter_defaults_to_development():
    formatter = CustomJsonFormatter()
    assert formatter.environment == "development"
    assert formatter.service_name == "tokenvest"
