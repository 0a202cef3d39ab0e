"""Tests for settings and event configuration loading."""

import os
from unittest.mock import patch

import pytest

from justin.config import EventConfig, Settings, load_event_config, load_settings
from justin.core.errors import ValidationError

ENV_NAMES = ("JUSTIN_DB_TYPE", "JUSTIN_DB_PATH", "LOG_LEVEL", "JUSTIN_LOG_FILE")


@pytest.fixture
def clean_env():
    with patch.dict(os.environ):
        for name in ENV_NAMES:
            os.environ.pop(name, None)
        yield os.environ


def test_load_settings_defaults(clean_env, tmp_path):
    settings = load_settings(str(tmp_path / "missing.env"))

    assert settings == Settings()
    assert settings.db_type == "memory"
    assert settings.log_file is None


def test_load_settings_from_environment(clean_env):
    clean_env.update(
        {
            "JUSTIN_DB_TYPE": "SQLite",
            "JUSTIN_DB_PATH": "/tmp/engine.db",
            "LOG_LEVEL": "debug",
            "JUSTIN_LOG_FILE": "logs/justin.log",
        }
    )

    settings = load_settings()

    assert settings.db_type == "sqlite"
    assert settings.db_path == "/tmp/engine.db"
    assert settings.log_level == "DEBUG"
    assert settings.log_file == "logs/justin.log"


def test_load_settings_from_env_file(clean_env, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("JUSTIN_DB_TYPE=sqlite\nJUSTIN_DB_PATH=data/test.db\n")

    settings = load_settings(str(env_file))

    assert settings.db_type == "sqlite"
    assert settings.db_path == "data/test.db"


def test_load_settings_rejects_unknown_db_type(clean_env):
    clean_env["JUSTIN_DB_TYPE"] = "postgres"

    with pytest.raises(ValueError):
        load_settings()


def test_load_event_config(tmp_path):
    config_file = tmp_path / "events.yaml"
    config_file.write_text(
        """
events:
  - event_type: MORNING_CHECK
    handlers: [send_reminder, pick_message]
clock_events:
  - name: HOURLY
    interval_ms: 3600000
    handlers: [hourly_task]
"""
    )

    config = load_event_config(config_file)

    assert config.events[0].event_type == "MORNING_CHECK"
    assert config.events[0].handlers == ["send_reminder", "pick_message"]
    assert config.clock_events[0].name == "HOURLY"
    assert config.clock_events[0].interval_ms == 3_600_000


def test_load_empty_event_config(tmp_path):
    config_file = tmp_path / "empty.yaml"
    config_file.write_text("")

    assert load_event_config(config_file) == EventConfig()


def test_load_event_config_missing_file(tmp_path):
    with pytest.raises(ValidationError):
        load_event_config(tmp_path / "missing.yaml")


def test_load_event_config_invalid_yaml(tmp_path):
    config_file = tmp_path / "broken.yaml"
    config_file.write_text("events: [unclosed")

    with pytest.raises(ValidationError):
        load_event_config(config_file)


def test_load_event_config_invalid_interval(tmp_path):
    config_file = tmp_path / "bad.yaml"
    config_file.write_text(
        "clock_events:\n  - name: FAST\n    interval_ms: 0\n    handlers: [t]\n"
    )

    with pytest.raises(ValidationError):
        load_event_config(config_file)
