from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import datetime, time, timedelta
from pathlib import Path
from typing import Any
import os

import holidays as pyholidays
import yaml

from .errors import ConfigError

CONFIG_ENV_VAR = "TABLE_BOOKING_CONFIG"
DEFAULT_CONFIG_FILE = "table_booking.yaml"

OPENING_TIME = time(10, 0)
CLOSING_TIME = time(22, 0)
LAST_BOOKING_BUFFER = timedelta(hours=1)
TABLE_COUNT = 10


@dataclass(frozen=True)
class BookingSettings:
    opening_time: time = OPENING_TIME
    closing_time: time = CLOSING_TIME
    last_booking_buffer: timedelta = LAST_BOOKING_BUFFER
    table_count: int = TABLE_COUNT
    data_dir: Path = Path("data")
    bookings_file: str = "bookings.csv"
    events_file: str = "booking_events.yaml"
    holiday_country: str | None = None

    @property
    def bookings_path(self) -> Path:
        return Path(self.data_dir) / self.bookings_file

    @property
    def events_path(self) -> Path:
        return Path(self.data_dir) / self.events_file

    def last_end_for(self, start: datetime) -> datetime:
        """Latest allowed end time for a booking starting at ``start``.

        Always computed on the start date, even when the end falls on the next day.
        """
        return datetime.combine(start.date(), self.closing_time) - self.last_booking_buffer

    def validate(self) -> "BookingSettings":
        if self.table_count < 1:
            raise ConfigError("table_count must be at least 1")
        if self.last_booking_buffer < timedelta(0):
            raise ConfigError("last_booking_buffer_minutes must not be negative")

        reference = datetime(2000, 1, 1)
        opening = datetime.combine(reference.date(), self.opening_time)
        if opening >= self.last_end_for(reference):
            raise ConfigError("opening_time must be earlier than closing_time minus the last booking buffer")
        return self


_TIME_KEYS = {"opening_time", "closing_time"}
_ALLOWED_KEYS = {field.name for field in fields(BookingSettings)} - {"last_booking_buffer"}
_ALLOWED_KEYS.add("last_booking_buffer_minutes")


def load_settings(path: str | Path | None = None) -> BookingSettings:
    """Read settings from a YAML mapping; a missing file yields the defaults."""
    config_path = Path(path or os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_FILE)
    try:
        payload = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return BookingSettings()
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as error:
        raise ConfigError(f"Failed to read config file: {config_path}") from error

    if payload is None:
        return BookingSettings()
    if not isinstance(payload, dict):
        raise ConfigError("top-level YAML in config file is not a mapping")

    return settings_from_dict(payload)


def settings_from_dict(data: dict[str, Any]) -> BookingSettings:
    unknown = sorted(str(key) for key in data if key not in _ALLOWED_KEYS)
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")

    values: dict[str, Any] = {}
    for key, raw in data.items():
        if key in _TIME_KEYS:
            values[key] = _parse_time(key, raw)
        elif key == "last_booking_buffer_minutes":
            values["last_booking_buffer"] = timedelta(minutes=_parse_int(key, raw))
        elif key == "table_count":
            values[key] = _parse_int(key, raw)
        elif key == "data_dir":
            values[key] = Path(str(raw))
        elif key == "holiday_country":
            values[key] = _parse_country(raw)
        else:
            values[key] = str(raw)

    return BookingSettings(**values).validate()


def _parse_time(key: str, raw: Any) -> time:
    # PyYAML reads unquoted 10:00 as a sexagesimal int (600).
    if isinstance(raw, int) and not isinstance(raw, bool):
        hours, minutes = divmod(raw, 60)
        if 0 <= hours < 24:
            return time(hours, minutes)
    try:
        return datetime.strptime(str(raw).strip(), "%H:%M").time()
    except ValueError as error:
        raise ConfigError(f"{key} must be formatted as HH:MM, got {raw!r}") from error


def _parse_country(raw: Any) -> str | None:
    if not raw:
        return None
    country = str(raw).strip().upper()
    if country not in pyholidays.list_supported_countries():
        raise ConfigError(f"holiday_country {raw!r} is not a supported country code")
    return country


def _parse_int(key: str, raw: Any) -> int:
    if isinstance(raw, bool):
        raise ConfigError(f"{key} must be an integer, got {raw!r}")
    try:
        return int(raw)
    except (TypeError, ValueError) as error:
        raise ConfigError(f"{key} must be an integer, got {raw!r}") from error
