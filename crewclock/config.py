"""Configuration utilities for the CrewClock client."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_WEBHOOK_BASE_URL = "http://127.0.0.1:8080"
DEFAULT_DEBOUNCE_MS = 2000
DEFAULT_HISTORY_DAYS = 14
DEFAULT_STATE_DB = Path.home() / ".crewclock" / "state.db"

DEBOUNCE_BY_TIMER = "timer"
DEBOUNCE_BY_COMPLETION = "completion"
DEBOUNCE_POLICIES = (DEBOUNCE_BY_TIMER, DEBOUNCE_BY_COMPLETION)


def _default_url(endpoint: str) -> str:
    return f"{DEFAULT_WEBHOOK_BASE_URL}/{endpoint}"


@dataclass(slots=True)
class WebhookUrls:
    """Addresses of the remote webhook endpoints."""

    timeclock: str = _default_url("timeclock")
    status: str = _default_url("status")
    technicians: str = _default_url("technicians")
    mileage: str = _default_url("mileage")
    history: str = _default_url("history")
    edit_entry: str = _default_url("edit-entry")


@dataclass(slots=True)
class AppConfig:
    """Configuration values for the application."""

    webhooks: WebhookUrls = field(default_factory=WebhookUrls)
    request_timeout: Optional[float] = None
    debounce_policy: str = DEBOUNCE_BY_TIMER
    debounce_ms: int = DEFAULT_DEBOUNCE_MS
    success_toast_ms: int = 3000
    error_toast_ms: int = 4000
    elapsed_refresh_ms: int = 60_000
    history_days: int = DEFAULT_HISTORY_DAYS
    state_db_path: Path = DEFAULT_STATE_DB
    log_level: str = "INFO"
    log_file: Optional[Path] = None

    def __post_init__(self) -> None:
        if self.debounce_policy not in DEBOUNCE_POLICIES:
            raise ValueError(
                f"Unknown debounce policy {self.debounce_policy!r}, expected one of {DEBOUNCE_POLICIES}"
            )
        if self.debounce_ms < 0:
            raise ValueError("debounce_ms must not be negative")
        if self.history_days < 1:
            raise ValueError("history_days must be at least 1")


def _optional_float(value: Optional[str]) -> Optional[float]:
    if value in (None, ""):
        return None
    return float(value)


def load_config(env_file: Optional[Path] = None) -> AppConfig:
    """Load the configuration, reading an optional `.env` file first."""

    env_path = env_file or Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    webhooks = WebhookUrls(
        timeclock=os.getenv("CREWCLOCK_TIMECLOCK_URL", _default_url("timeclock")),
        status=os.getenv("CREWCLOCK_STATUS_URL", _default_url("status")),
        technicians=os.getenv("CREWCLOCK_TECHNICIANS_URL", _default_url("technicians")),
        mileage=os.getenv("CREWCLOCK_MILEAGE_URL", _default_url("mileage")),
        history=os.getenv("CREWCLOCK_HISTORY_URL", _default_url("history")),
        edit_entry=os.getenv("CREWCLOCK_EDIT_ENTRY_URL", _default_url("edit-entry")),
    )
    log_file = os.getenv("CREWCLOCK_LOG_FILE")

    return AppConfig(
        webhooks=webhooks,
        request_timeout=_optional_float(os.getenv("CREWCLOCK_REQUEST_TIMEOUT")),
        debounce_policy=os.getenv("CREWCLOCK_DEBOUNCE_POLICY", DEBOUNCE_BY_TIMER).strip().lower(),
        debounce_ms=int(os.getenv("CREWCLOCK_DEBOUNCE_MS", DEFAULT_DEBOUNCE_MS)),
        history_days=int(os.getenv("CREWCLOCK_HISTORY_DAYS", DEFAULT_HISTORY_DAYS)),
        state_db_path=Path(os.getenv("CREWCLOCK_STATE_DB", str(DEFAULT_STATE_DB))).expanduser(),
        log_level=os.getenv("CREWCLOCK_LOG_LEVEL", "INFO").upper(),
        log_file=Path(log_file).expanduser() if log_file else None,
    )


__all__ = [
    "AppConfig",
    "WebhookUrls",
    "DEBOUNCE_BY_TIMER",
    "DEBOUNCE_BY_COMPLETION",
    "load_config",
]
