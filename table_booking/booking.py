from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Iterable

from .errors import ValidationError

# The booking file has no escaping for these.
_UNSTORABLE_NAME_CHARS = (",", "\n", "\r")


class BookingStatus(Enum):
    CONFIRMED = "CONFIRMED"
    CANCELED = "CANCELED"
    PENDING = "PENDING"

    @property
    def is_active(self) -> bool:
        return self is not BookingStatus.CANCELED


@dataclass(frozen=True)
class Booking:
    """One table reservation.

    Two bookings compare equal when they hold the same table for the same
    window; customer, status and id do not take part in equality.
    """

    table_id: int
    start: datetime
    end: datetime
    customer_name: str = field(compare=False)
    status: BookingStatus = field(default=BookingStatus.CONFIRMED, compare=False)
    booking_id: int | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.start is None:
            raise ValidationError("Start time must not be empty.")
        if self.end is None:
            raise ValidationError("End time must not be empty.")
        if not isinstance(self.start, datetime) or not isinstance(self.end, datetime):
            raise ValidationError("Start and end time must be datetime values.")

        start = _truncate_to_minute(self.start)
        end = _truncate_to_minute(self.end)
        if end <= start:
            raise ValidationError("End time must be after start time.")

        if isinstance(self.table_id, bool) or not isinstance(self.table_id, int):
            raise ValidationError("Table ID must be an integer.")
        if self.table_id <= 0:
            raise ValidationError("Table ID must be positive.")

        if self.customer_name is None or not str(self.customer_name).strip():
            raise ValidationError("Customer name must not be empty.")
        if any(char in str(self.customer_name) for char in _UNSTORABLE_NAME_CHARS):
            raise ValidationError("Customer name must not contain commas or line breaks.")
        if not isinstance(self.status, BookingStatus):
            raise ValidationError("Booking status must not be empty.")
        if self.booking_id is not None and (isinstance(self.booking_id, bool) or not isinstance(self.booking_id, int)):
            raise ValidationError("Booking ID must be an integer.")
        if self.booking_id is not None and self.booking_id <= 0:
            raise ValidationError("Booking ID must be positive.")

        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)
        object.__setattr__(self, "customer_name", str(self.customer_name).strip())

    @property
    def is_active(self) -> bool:
        return self.status.is_active

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return has_time_overlap(start, end, self.start, self.end)

    def with_id(self, booking_id: int) -> "Booking":
        return replace(self, booking_id=booking_id)

    def to_dict(self) -> dict[str, object]:
        return {
            "booking_id": self.booking_id,
            "table_id": self.table_id,
            "start": self.start.isoformat(timespec="minutes"),
            "end": self.end.isoformat(timespec="minutes"),
            "customer_name": self.customer_name,
            "status": self.status.name,
        }


def has_time_overlap(new_start: datetime, new_end: datetime, exist_start: datetime, exist_end: datetime) -> bool:
    """Return True when two time intervals overlap by even one minute.

    Intervals are treated as half-open ranges: [start, end)
    so touching boundaries (e.g. 10:00-12:00 and 12:00-13:00) do not overlap.
    """
    if new_start >= new_end:
        raise ValidationError("new_start must be earlier than new_end.")
    if exist_start >= exist_end:
        raise ValidationError("exist_start must be earlier than exist_end.")

    return new_start < exist_end and exist_start < new_end


def can_book(table_id: int, start: datetime, end: datetime, existing_bookings: Iterable[Booking]) -> bool:
    """Return True if no active booking on the table overlaps the requested interval."""
    if start >= end:
        raise ValidationError("start must be earlier than end.")

    for booking in existing_bookings:
        if booking.table_id == table_id and booking.is_active and booking.overlaps(start, end):
            return False
    return True


def _truncate_to_minute(value: datetime) -> datetime:
    return value.replace(second=0, microsecond=0)
