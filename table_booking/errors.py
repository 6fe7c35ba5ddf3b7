from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .booking import Booking


class BookingError(Exception):
    pass


class ValidationError(BookingError, ValueError):
    pass


class InvalidTableError(BookingError):
    pass


class BusinessHoursError(BookingError):
    pass


class ConflictError(BookingError):
    pass


class NotFoundError(BookingError):
    pass


class ConfigError(BookingError):
    pass


class PersistenceError(BookingError):
    """Raised when the booking file or event log cannot be read or written.

    When raised after a successful create or cancel, ``booking`` holds the
    record that was already applied in memory.
    """

    def __init__(self, message: str, booking: "Booking | None" = None) -> None:
        super().__init__(message)
        self.booking = booking
