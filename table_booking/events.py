from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Callable
import shutil
import threading

import yaml

from .errors import PersistenceError

BOOKING_CREATED = "BOOKING_CREATED"
BOOKING_REJECTED = "BOOKING_REJECTED"
BOOKING_CANCELLED = "BOOKING_CANCELLED"
CANCEL_NOT_FOUND = "CANCEL_NOT_FOUND"
BOOKINGS_SAVED = "BOOKINGS_SAVED"
BOOKINGS_LOADED = "BOOKINGS_LOADED"
RECORD_SKIPPED = "RECORD_SKIPPED"
SAVE_FAILED = "SAVE_FAILED"
EVENT_LOG_RECOVERED = "EVENT_LOG_RECOVERED"


class BookingEventLog:
    """Append-only YAML list of ``{event_time, event_type, payload}`` entries."""

    def __init__(self, path: str | Path, clock: Callable[[], datetime] | None = None) -> None:
        self.path = Path(path)
        self._clock = clock or datetime.now
        self._lock = threading.Lock()
        self.failures: list[PersistenceError] = []

    def record(self, event_type: str, payload: dict[str, Any], event_time: datetime | None = None) -> None:
        timestamp = (event_time or self._clock()).isoformat(timespec="seconds")
        with self._lock:
            events = self._read_events()
            events.append({"event_time": timestamp, "event_type": event_type, "payload": payload})
            self._write_events(events)

    def try_record(self, event_type: str, payload: dict[str, Any], event_time: datetime | None = None) -> bool:
        """Record an event without letting a log failure replace the caller's outcome.

        Failures are kept in ``failures`` for the caller to inspect.
        """
        try:
            self.record(event_type, payload, event_time)
        except PersistenceError as error:
            self.failures.append(error)
            return False
        return True

    def read(self) -> list[dict[str, Any]]:
        with self._lock:
            return self._read_events()

    def event_types(self) -> list[str]:
        return [str(event.get("event_type")) for event in self.read()]

    def _read_events(self) -> list[dict[str, Any]]:
        try:
            payload = yaml.safe_load(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return []
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as error:
            return self._recover(error)

        if payload is None:
            return []
        if not isinstance(payload, list):
            return self._recover(ValueError("top-level YAML is not a list"))
        return [row for row in payload if isinstance(row, dict)]

    def _write_events(self, events: list[dict[str, Any]]) -> None:
        temp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                temp_path.write_text(yaml.safe_dump(events, allow_unicode=True, sort_keys=False), encoding="utf-8")
                temp_path.replace(self.path)
            finally:
                temp_path.unlink(missing_ok=True)
        except OSError as error:
            raise PersistenceError(f"Failed to write event log: {self.path}") from error

    def _recover(self, error: Exception) -> list[dict[str, Any]]:
        timestamp = self._clock().strftime("%Y%m%d%H%M%S")
        backup_path = self.path.with_name(f"{self.path.stem}.corrupt.{timestamp}{self.path.suffix}")
        try:
            shutil.copy2(self.path, backup_path)
        except OSError:
            backup_path = None

        events = [
            {
                "event_time": self._clock().isoformat(timespec="seconds"),
                "event_type": EVENT_LOG_RECOVERED,
                "payload": {
                    "file": self.path.name,
                    "backup": backup_path.name if backup_path else None,
                    "reason": str(error),
                },
            }
        ]
        self._write_events(events)
        return events


class NullEventLog:
    path = None

    def __init__(self) -> None:
        self.failures: list[PersistenceError] = []

    def record(self, event_type: str, payload: dict[str, Any], event_time: datetime | None = None) -> None:
        return None

    def try_record(self, event_type: str, payload: dict[str, Any], event_time: datetime | None = None) -> bool:
        return True

    def read(self) -> list[dict[str, Any]]:
        return []

    def event_types(self) -> list[str]:
        return []
