"""Local mirror of the client state.

A string-keyed store on top of the ``stored_values`` table. The controller
rewrites the snapshot after every change and reads it once at startup, so a
restarted client shows the last known technician, clock state and ledger
before the webhooks answer.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Tuple

from pydantic import ValidationError

from .database import StoredValue, create_session_factory, session_scope, sqlite_url
from .models import AppState, ClockSession, MileageEntry, TimeEntry
from .schemas import ClockSessionPayload, MileageEntryPayload, TimeEntryPayload

logger = logging.getLogger(__name__)

CURRENT_TECHNICIAN_KEY = "current_technician"
CLOCK_SESSION_KEY = "clock_session"
TIME_ENTRIES_KEY = "time_entries"
MILEAGE_ENTRIES_KEY = "mileage_entries"


@dataclass(frozen=True, slots=True)
class Snapshot:
    current_technician: Optional[str] = None
    session: ClockSession = ClockSession()
    time_entries: Tuple[TimeEntry, ...] = ()
    mileage_entries: Tuple[MileageEntry, ...] = ()

    @classmethod
    def of(cls, state: AppState) -> "Snapshot":
        return cls(
            current_technician=state.current_technician,
            session=state.session,
            time_entries=state.time_entries,
            mileage_entries=state.mileage_entries,
        )


class LocalStore:
    """Key/value persistence backed by SQLite."""

    def __init__(self, url: str) -> None:
        self._factory = create_session_factory(url)

    @classmethod
    def at_path(cls, path: Path) -> "LocalStore":
        return cls(sqlite_url(path))

    def get(self, key: str) -> Optional[str]:
        with session_scope(self._factory) as session:
            record = session.get(StoredValue, key)
            return record.value if record else None

    def set(self, key: str, value: str) -> None:
        with session_scope(self._factory) as session:
            record = session.get(StoredValue, key)
            if record:
                record.value = value
            else:
                session.add(StoredValue(key=key, value=value))

    def remove(self, key: str) -> None:
        with session_scope(self._factory) as session:
            record = session.get(StoredValue, key)
            if record:
                session.delete(record)

    def get_json(self, key: str) -> Any:
        raw = self.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring unreadable value stored under %r", key)
            return None

    def set_json(self, key: str, value: Any) -> None:
        self.set(key, json.dumps(value))

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------
    def save_snapshot(self, snapshot: Snapshot) -> None:
        if snapshot.current_technician is None:
            self.remove(CURRENT_TECHNICIAN_KEY)
        else:
            self.set(CURRENT_TECHNICIAN_KEY, snapshot.current_technician)
        self.set_json(
            CLOCK_SESSION_KEY,
            ClockSessionPayload.from_session(snapshot.session).model_dump(mode="json"),
        )
        self.set_json(
            TIME_ENTRIES_KEY,
            [TimeEntryPayload.from_entry(entry).model_dump(mode="json") for entry in snapshot.time_entries],
        )
        self.set_json(
            MILEAGE_ENTRIES_KEY,
            [MileageEntryPayload.from_entry(entry).model_dump(mode="json") for entry in snapshot.mileage_entries],
        )

    def load_snapshot(self) -> Snapshot:
        session = ClockSession.clocked_out()
        raw_session = self.get_json(CLOCK_SESSION_KEY)
        if raw_session is not None:
            try:
                session = ClockSessionPayload.model_validate(raw_session).to_session()
            except ValidationError as exc:
                logger.warning("Ignoring stored clock session: %s", exc)

        return Snapshot(
            current_technician=self.get(CURRENT_TECHNICIAN_KEY),
            session=session,
            time_entries=tuple(self._load_entries(TIME_ENTRIES_KEY, TimeEntryPayload)),
            mileage_entries=tuple(self._load_entries(MILEAGE_ENTRIES_KEY, MileageEntryPayload)),
        )

    def _load_entries(self, key: str, payload_type):
        raw = self.get_json(key)
        if not isinstance(raw, list):
            return []
        entries = []
        for item in raw:
            try:
                entries.append(payload_type.model_validate(item).to_entry())
            except ValidationError as exc:
                logger.warning("Skipping stored entry under %r: %s", key, exc)
        return entries


__all__ = ["LocalStore", "Snapshot"]
