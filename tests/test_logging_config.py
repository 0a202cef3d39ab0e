import json
import logging
import os
import sys
from datetime import datetime, UTC
from unittest.mock import patch

import pytest
from pydantic import BaseModel

from justin.utils.logging_config import JSONFormatter, get_logger, setup_logging


@pytest.fixture
def test_model():
    class TestModel(BaseModel):
        name: str
        value: int
    return TestModel(name="test", value=42)


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset logging configuration after each test."""
    yield
    root = logging.getLogger()
    for handler in root.handlers:
        handler.close()
    root.handlers = []
    root.setLevel(logging.WARNING)


def test_json_formatter_serialize_object(test_model):
    formatter = JSONFormatter()

    # Test Pydantic model serialization
    assert formatter._serialize_object(test_model) == {"name": "test", "value": 42}

    # Test datetime serialization
    dt = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)
    assert formatter._serialize_object(dt) == "2024-01-01T12:00:00+00:00"

    # Test Exception serialization
    exc = ValueError("test error")
    assert formatter._serialize_object(exc) == "test error"

    # Test list/dict serialization
    assert formatter._serialize_object([1, 2, 3]) == [1, 2, 3]
    assert formatter._serialize_object({"a": 1, "b": 2}) == {"a": 1, "b": 2}

    # Test other object serialization
    class CustomObj:
        def __str__(self):
            return "custom_obj"

    assert formatter._serialize_object(CustomObj()) == "custom_obj"


def test_json_formatter_format():
    formatter = JSONFormatter()

    record = logging.LogRecord(
        name="test_logger",
        level=logging.INFO,
        pathname="test.py",
        lineno=1,
        msg="Test message",
        args=(),
        exc_info=None,
    )

    # Add custom attributes
    record.req_id = "test-id"
    record.component = "event_queue"
    record.event_timestamp = datetime(2024, 1, 1, tzinfo=UTC)

    log_dict = json.loads(formatter.format(record))

    assert "timestamp" in log_dict
    assert log_dict["level"] == "INFO"
    assert log_dict["message"] == "Test message"
    assert log_dict["logger"] == "test_logger"
    assert log_dict["req_id"] == "test-id"
    assert log_dict["component"] == "event_queue"
    assert log_dict["event_timestamp"] == "2024-01-01T00:00:00+00:00"
    assert "pathname" not in log_dict

    # Test with exception info
    try:
        raise ValueError("Test error")
    except ValueError:
        record.exc_info = sys.exc_info()
        log_dict = json.loads(formatter.format(record))
        assert "exc_info" in log_dict
        assert "ValueError: Test error" in log_dict["exc_info"]


def test_setup_logging_console_only():
    with patch.dict(os.environ, {"LOG_LEVEL": "DEBUG"}):
        setup_logging()

    root_logger = logging.getLogger()
    assert len(root_logger.handlers) == 1
    assert isinstance(root_logger.handlers[0].formatter, JSONFormatter)
    assert root_logger.level == logging.DEBUG


def test_setup_logging_with_file(tmp_path):
    log_file = tmp_path / "logs" / "justin.log"

    setup_logging("warning", str(log_file))
    get_logger("justin.test").warning("Written to file", extra={"component": "test"})

    root_logger = logging.getLogger()
    assert root_logger.level == logging.WARNING
    assert any(isinstance(h, logging.FileHandler) for h in root_logger.handlers)
    for handler in root_logger.handlers:
        handler.flush()
    line = log_file.read_text().strip().splitlines()[-1]
    assert json.loads(line)["component"] == "test"


def test_get_logger():
    with patch.dict(os.environ, {"LOG_LEVEL": "INFO"}):
        setup_logging()

        logger = get_logger("test_module")
        assert isinstance(logger, logging.Logger)
        assert logger.name == "test_module"

        # Logger inherits the root logger settings
        root_logger = logging.getLogger()
        assert logger.getEffectiveLevel() == root_logger.level
