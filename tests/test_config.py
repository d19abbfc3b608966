from __future__ import annotations

import os
from pathlib import Path

import pytest

from crewclock.config import DEBOUNCE_BY_COMPLETION, DEBOUNCE_BY_TIMER, AppConfig, load_config

ENV_VARS = [
    "CREWCLOCK_TIMECLOCK_URL",
    "CREWCLOCK_STATUS_URL",
    "CREWCLOCK_TECHNICIANS_URL",
    "CREWCLOCK_MILEAGE_URL",
    "CREWCLOCK_HISTORY_URL",
    "CREWCLOCK_EDIT_ENTRY_URL",
    "CREWCLOCK_REQUEST_TIMEOUT",
    "CREWCLOCK_DEBOUNCE_POLICY",
    "CREWCLOCK_DEBOUNCE_MS",
    "CREWCLOCK_HISTORY_DAYS",
    "CREWCLOCK_STATE_DB",
    "CREWCLOCK_LOG_LEVEL",
    "CREWCLOCK_LOG_FILE",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch) -> None:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults(tmp_path: Path) -> None:
    config = load_config(tmp_path / "missing.env")
    assert config.webhooks.timeclock == "http://127.0.0.1:8080/timeclock"
    assert config.request_timeout is None
    assert config.debounce_policy == DEBOUNCE_BY_TIMER
    assert config.debounce_ms == 2000
    assert config.history_days == 14
    assert config.log_file is None


def test_environment_overrides(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("CREWCLOCK_TIMECLOCK_URL", "https://hooks.example.com/clock")
    monkeypatch.setenv("CREWCLOCK_REQUEST_TIMEOUT", "7.5")
    monkeypatch.setenv("CREWCLOCK_DEBOUNCE_POLICY", " Completion ")
    monkeypatch.setenv("CREWCLOCK_HISTORY_DAYS", "30")
    monkeypatch.setenv("CREWCLOCK_STATE_DB", str(tmp_path / "db.sqlite"))
    monkeypatch.setenv("CREWCLOCK_LOG_LEVEL", "debug")

    config = load_config(tmp_path / "missing.env")

    assert config.webhooks.timeclock == "https://hooks.example.com/clock"
    assert config.webhooks.status == "http://127.0.0.1:8080/status"
    assert config.request_timeout == 7.5
    assert config.debounce_policy == DEBOUNCE_BY_COMPLETION
    assert config.history_days == 30
    assert config.state_db_path == tmp_path / "db.sqlite"
    assert config.log_level == "DEBUG"


def test_env_file_is_read(tmp_path: Path) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text("CREWCLOCK_MILEAGE_URL=https://hooks.example.com/miles\n", encoding="utf-8")
    try:
        config = load_config(env_file)
    finally:
        os.environ.pop("CREWCLOCK_MILEAGE_URL", None)
    assert config.webhooks.mileage == "https://hooks.example.com/miles"


def test_invalid_values_are_rejected() -> None:
    with pytest.raises(ValueError):
        AppConfig(debounce_policy="whenever")
    with pytest.raises(ValueError):
        AppConfig(history_days=0)
