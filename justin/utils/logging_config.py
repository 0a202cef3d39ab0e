import json
import logging
import logging.config
import os
from datetime import datetime, UTC
from pathlib import Path
from typing import Any

from pydantic import BaseModel

# LogRecord attributes that never belong in the JSON payload
_RESERVED_ATTRS = frozenset(
    [
        "timestamp",
        "level",
        "message",
        "logger",
        "exc_info",
        "extra",
        "args",
        "exc_text",
        "stack_info",
        "created",
        "msecs",
        "relativeCreated",
        "levelno",
        "levelname",
        "msg",
        "name",
        "pathname",
        "filename",
        "module",
        "lineno",
        "funcName",
        "processName",
        "process",
        "threadName",
        "thread",
        "taskName",
    ]
)


class JSONFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__()

    def _serialize_object(self, obj: Any) -> Any:
        if isinstance(obj, BaseModel):
            return obj.model_dump(mode="json")
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, Exception):
            return str(obj)
        if isinstance(obj, (list, dict, str, int, float, bool)) or obj is None:
            return obj
        return str(obj)

    def format(self, record: logging.LogRecord) -> str:
        log_record = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }

        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)

        # Fields passed through ``extra=``
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_record[key] = self._serialize_object(value)

        return json.dumps(log_record, default=self._serialize_object)


def setup_logging(level: str | None = None, log_file: str | None = None) -> None:
    """Configure logging for the engine.

    Args:
        level: Root log level, defaults to the LOG_LEVEL environment variable
        log_file: Optional path of a file that receives the same JSON records
    """
    handlers: dict[str, dict[str, Any]] = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "json",
            "stream": "ext://sys.stdout",
        },
    }
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "class": "logging.FileHandler",
            "formatter": "json",
            "filename": log_file,
            "mode": "a",
        }

    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": "justin.utils.logging_config.JSONFormatter",
            }
        },
        "handlers": handlers,
        "root": {
            "level": (level or os.getenv("LOG_LEVEL", "INFO")).upper(),
            "handlers": list(handlers),
        },
    }

    root = logging.getLogger()
    root.handlers = []  # Remove any existing handlers

    logging.config.dictConfig(logging_config)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance.

    This will return a logger that inherits settings from the root logger,
    including log level and handlers.
    """
    return logging.getLogger(name)
