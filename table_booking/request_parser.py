from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
import re

from .booking import BookingStatus
from .errors import ValidationError
from .file_store import TIMESTAMP_FORMAT

_DATE_RE = re.compile(r"(?<![\d.])(?P<date>\d{1,2}\.\d{1,2}\.\d{4})(?![\d.])")
_TIME_RE = re.compile(r"(?<!\d)(?P<time>(?:[01]?\d|2[0-3]):[0-5]\d)(?!\d)")
_TABLE_RE = re.compile(r"\b(?:table|tisch|tbl)\s*(?:no\.?|nr\.?|#)?\s*(?P<table>\d+)\b", re.IGNORECASE)
_CONNECTOR_RE = re.compile(r"\b(?:from|to|until|for|at|on|von|bis|um|am|für|book|reserve)\b", re.IGNORECASE)


@dataclass(frozen=True)
class ParsedBookingRequest:
    table_id: int
    start: datetime
    end: datetime
    customer_name: str | None
    raw_text: str


def parse_table_id(text: str) -> int:
    return _parse_positive_int(text, "table number")


def parse_booking_id(text: str) -> int:
    return _parse_positive_int(text, "booking ID")


def parse_timestamp(text: str) -> datetime:
    if not text or not text.strip():
        raise ValidationError("Date and time must not be empty. Expected format: dd.MM.yyyy HH:mm")
    try:
        return datetime.strptime(text.strip(), TIMESTAMP_FORMAT)
    except ValueError as error:
        raise ValidationError(f"Invalid date/time {text.strip()!r}. Expected format: dd.MM.yyyy HH:mm") from error


def parse_status(text: str | None) -> BookingStatus:
    if text is None or not text.strip():
        return BookingStatus.CONFIRMED
    try:
        return BookingStatus[text.strip().upper()]
    except KeyError as error:
        choices = ", ".join(status.name for status in BookingStatus)
        raise ValidationError(f"Unknown status {text.strip()!r}. Choose one of: {choices}") from error


def parse_booking_request(text: str) -> ParsedBookingRequest:
    """Read a one-line request such as ``table 3 24.02.2026 18:00-20:00 Alice``.

    An end time at or before the start time is taken to be on the next day.
    """
    if not text or not text.strip():
        raise ValidationError("text must not be empty")

    table_match = _TABLE_RE.search(text)
    if not table_match:
        raise ValidationError("Could not find a table number in text. Expected e.g. 'table 3'")

    date_match = _DATE_RE.search(text)
    if not date_match:
        raise ValidationError("Could not find a date in text. Expected format: dd.MM.yyyy")

    time_matches = list(_TIME_RE.finditer(text))
    if len(time_matches) < 2:
        raise ValidationError("Could not find start/end time in text. Expected format: HH:mm")

    date_text = date_match.group("date")
    start_time, end_time = time_matches[0].group("time"), time_matches[1].group("time")
    start = parse_timestamp(f"{date_text} {start_time}")
    end = parse_timestamp(f"{date_text} {end_time}")
    if end <= start:
        end += timedelta(days=1)

    customer_name = _extract_customer_name(
        text,
        [table_match.group(0), date_text, start_time, end_time],
    )
    return ParsedBookingRequest(
        table_id=parse_table_id(table_match.group("table")),
        start=start,
        end=end,
        customer_name=customer_name,
        raw_text=text,
    )


def _extract_customer_name(text: str, fragments: list[str]) -> str | None:
    candidate = text
    for fragment in fragments:
        candidate = candidate.replace(fragment, " ", 1)
    candidate = re.sub(r"[~,;]|(?<!\w)-|-(?!\w)", " ", candidate)
    candidate = _CONNECTOR_RE.sub(" ", candidate)
    candidate = re.sub(r"\s+", " ", candidate).strip()
    return candidate or None


def _parse_positive_int(text: str, label: str) -> int:
    if text is None or not str(text).strip():
        raise ValidationError(f"The {label} must not be empty.")
    try:
        value = int(str(text).strip())
    except ValueError as error:
        raise ValidationError(f"The {label} must be a whole number, got {str(text).strip()!r}.") from error
    if value <= 0:
        raise ValidationError(f"The {label} must be positive, got {value}.")
    return value
