from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterable

from .booking import Booking, BookingStatus
from .errors import BookingError, PersistenceError
from .events import BOOKINGS_LOADED, BOOKINGS_SAVED, RECORD_SKIPPED, BookingEventLog, NullEventLog

TIMESTAMP_FORMAT = "%d.%m.%Y %H:%M"
FIELD_SEPARATOR = ","
FIELD_COUNT = 5


@dataclass(frozen=True)
class SkippedRecord:
    reason: str
    line: str
    line_number: int | None = None

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {"reason": self.reason, "line": self.line}
        if self.line_number is not None:
            payload["line_number"] = self.line_number
        return payload


def format_timestamp(value: datetime) -> str:
    return value.strftime(TIMESTAMP_FORMAT)


def parse_timestamp(text: str) -> datetime:
    return datetime.strptime(text.strip(), TIMESTAMP_FORMAT)


def format_line(booking: Booking) -> str:
    """Render ``tableId,startTime,endTime,customerName,status``; fields are not escaped."""
    return FIELD_SEPARATOR.join(
        [
            str(booking.table_id),
            format_timestamp(booking.start),
            format_timestamp(booking.end),
            booking.customer_name,
            booking.status.name,
        ]
    )


def parse_line(line: str) -> Booking:
    """Parse one stored line into an unassigned Booking; raises ValueError on bad input."""
    parts = line.rstrip("\r\n").split(FIELD_SEPARATOR)
    if len(parts) != FIELD_COUNT:
        raise ValueError(f"expected {FIELD_COUNT} fields, got {len(parts)}")

    table_text, start_text, end_text, customer_name, status_text = parts
    try:
        table_id = int(table_text.strip())
    except ValueError as error:
        raise ValueError(f"invalid table id {table_text!r}") from error

    try:
        start = parse_timestamp(start_text)
        end = parse_timestamp(end_text)
    except ValueError as error:
        raise ValueError(f"invalid timestamp: {error}") from error

    try:
        status = BookingStatus[status_text.strip()]
    except KeyError as error:
        raise ValueError(f"unknown status {status_text!r}") from error

    return Booking(table_id, start, end, customer_name, status)


class BookingFileStore:
    def __init__(self, path: str | Path, event_log: BookingEventLog | NullEventLog | None = None) -> None:
        self.path = Path(path)
        self.event_log = event_log or NullEventLog()
        self.last_skipped: list[SkippedRecord] = []

    def load(self) -> list[Booking]:
        """Read every parseable booking; bad lines are reported and skipped.

        A missing file means there is nothing stored yet.
        """
        self.last_skipped = []
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except (OSError, UnicodeDecodeError) as error:
            raise PersistenceError(f"Failed to read booking file: {self.path}") from error

        bookings: list[Booking] = []
        for line_number, line in enumerate(text.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                bookings.append(parse_line(line))
            except (ValueError, BookingError) as error:
                skipped = SkippedRecord(reason=str(error), line=line, line_number=line_number)
                self.last_skipped.append(skipped)
                self.event_log.try_record(RECORD_SKIPPED, {"file": self.path.name, **skipped.to_dict()})

        self.event_log.try_record(
            BOOKINGS_LOADED,
            {"file": self.path.name, "count": len(bookings), "skipped": len(self.last_skipped)},
        )
        return bookings

    def save(self, bookings: Iterable[Booking]) -> None:
        """Overwrite the file with ``bookings`` in the given order."""
        lines = [format_line(booking) for booking in bookings]
        content = "".join(f"{line}\n" for line in lines)

        temp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                temp_path.write_text(content, encoding="utf-8")
                temp_path.replace(self.path)
            finally:
                temp_path.unlink(missing_ok=True)
        except OSError as error:
            raise PersistenceError(f"Failed to write booking file: {self.path}") from error

        self.event_log.try_record(BOOKINGS_SAVED, {"file": self.path.name, "count": len(lines)})
