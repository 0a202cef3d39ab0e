"""Engine configuration."""

import os
from pathlib import Path
from typing import Literal

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from justin.core.errors import ValidationError
from justin.utils.logging_config import get_logger

logger = get_logger(__name__)


class Settings(BaseModel):
    """Runtime settings read from the environment."""

    db_type: Literal["memory", "sqlite"] = "memory"
    db_path: str = "data/justin.db"
    log_level: str = "INFO"
    log_file: str | None = None


def load_settings(env_file: str | None = None) -> Settings:
    """Load settings from environment variables and an optional .env file."""
    load_dotenv(env_file)
    return Settings(
        db_type=os.getenv("JUSTIN_DB_TYPE", "memory").lower(),
        db_path=os.getenv("JUSTIN_DB_PATH", "data/justin.db"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        log_file=os.getenv("JUSTIN_LOG_FILE") or None,
    )


class EventHandlersConfig(BaseModel):
    event_type: str
    handlers: list[str]


class ClockEventConfig(BaseModel):
    name: str
    interval_ms: int = Field(..., gt=0)
    handlers: list[str]


class EventConfig(BaseModel):
    """Event and clock event registrations."""

    events: list[EventHandlersConfig] = []
    clock_events: list[ClockEventConfig] = []


def load_event_config(path: str | Path) -> EventConfig:
    """Load event registrations from a YAML file.

    Raises:
        ValidationError: If the file cannot be parsed or validated
    """
    config_file = Path(path)
    try:
        with open(config_file) as f:
            config_data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.error(
            "Failed to read event config",
            extra={
                "config_file": str(config_file),
                "error": str(e),
                "error_type": type(e).__name__,
            },
        )
        raise ValidationError(f"Cannot read event config {config_file}: {e}") from e

    try:
        config = EventConfig(**config_data)
    except Exception as e:
        logger.error(
            "Failed to validate event config",
            extra={
                "config_file": str(config_file),
                "config_data": config_data,
                "error": str(e),
            },
        )
        raise ValidationError(f"Invalid event config {config_file}: {e}") from e

    logger.debug(
        "Loaded event config",
        extra={
            "config_file": str(config_file),
            "event_types": [e.event_type for e in config.events],
            "clock_events": [c.name for c in config.clock_events],
        },
    )
    return config
