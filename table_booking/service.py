from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any
import threading

import holidays as pyholidays

from .booking import Booking, BookingStatus
from .config import BookingSettings
from .errors import (
    BookingError,
    BusinessHoursError,
    InvalidTableError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from .events import (
    BOOKING_CANCELLED,
    BOOKING_CREATED,
    BOOKING_REJECTED,
    CANCEL_NOT_FOUND,
    RECORD_SKIPPED,
    SAVE_FAILED,
    BookingEventLog,
    NullEventLog,
)
from .file_store import BookingFileStore, SkippedRecord, format_line
from .repository import BookingRepository

_HOLIDAY_CACHE: dict[tuple[str, int], set[date]] = {}


@dataclass(frozen=True)
class BookingOutcome:
    booking: Booking | None = None
    error: BookingError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class BookingService:
    """Decides whether a booking is admissible and keeps the file in sync.

    Every create and cancel runs under one lock, from validation through the
    conflict check and mutation to the save, so two callers can never both
    pass the conflict check for the same table and window.
    """

    def __init__(
        self,
        repository: BookingRepository,
        store: BookingFileStore,
        settings: BookingSettings | None = None,
        event_log: BookingEventLog | NullEventLog | None = None,
    ) -> None:
        self.repository = repository
        self.store = store
        self.settings = settings or BookingSettings()
        self.event_log = event_log or NullEventLog()
        self.skipped_records: list[SkippedRecord] = []
        self._lock = threading.RLock()
        with self._lock:
            self._replay(self.store.load())

    def create_booking(self, booking: Booking) -> Booking:
        with self._lock:
            try:
                stored = self._admit(booking)
            except BookingError as error:
                self._report_rejection(booking.to_dict(), error)
                raise

            self._commit(stored, BOOKING_CREATED, stored.to_dict())
            return stored

    def book_table(
        self,
        table_id: int,
        start: datetime,
        end: datetime,
        customer_name: str,
        status: BookingStatus = BookingStatus.CONFIRMED,
    ) -> Booking:
        try:
            booking = Booking(table_id, start, end, customer_name, status)
        except ValidationError as error:
            self._report_rejection(
                {
                    "table_id": table_id,
                    "start": _isoformat_or_none(start),
                    "end": _isoformat_or_none(end),
                    "customer_name": None if customer_name is None else str(customer_name),
                },
                error,
            )
            raise
        return self.create_booking(booking)

    def try_create_booking(self, booking: Booking) -> BookingOutcome:
        try:
            return BookingOutcome(booking=self.create_booking(booking))
        except PersistenceError as error:
            return BookingOutcome(booking=error.booking, error=error)
        except BookingError as error:
            return BookingOutcome(error=error)

    def cancel_booking(self, booking_id: int) -> bool:
        with self._lock:
            removed = self.repository.remove(booking_id)
            if removed is None:
                self.event_log.try_record(CANCEL_NOT_FOUND, {"booking_id": booking_id})
                return False

            self._commit(removed, BOOKING_CANCELLED, removed.to_dict())
            return True

    def get_all_bookings(self) -> list[Booking]:
        with self._lock:
            return self.repository.get_all()

    def get_booking(self, booking_id: int) -> Booking | None:
        with self._lock:
            return self.repository.get_by_id(booking_id)

    def require_booking(self, booking_id: int) -> Booking:
        booking = self.get_booking(booking_id)
        if booking is None:
            raise NotFoundError(f"No booking with ID={booking_id}.")
        return booking

    def save(self) -> None:
        with self._lock:
            self.store.save(self.repository.get_all())

    def reload(self) -> list[SkippedRecord]:
        """Replace the in-memory bookings with the file contents.

        Records are replayed like new bookings; the ones that fail are
        skipped, returned and kept in ``skipped_records``. The file is not rewritten.
        """
        with self._lock:
            loaded = self.store.load()
            self.repository.clear()
            return self._replay(loaded)

    def check_business_hours(self, booking: Booking) -> None:
        opening_time = self.settings.opening_time
        last_end = self.settings.last_end_for(booking.start)

        if booking.start.time() < opening_time:
            raise BusinessHoursError(f"Booking must not start before opening time ({opening_time:%H:%M}).")
        if booking.end > last_end:
            buffer_minutes = int(self.settings.last_booking_buffer.total_seconds() // 60)
            raise BusinessHoursError(
                f"Booking must end at least {buffer_minutes} minutes before closing time (by {last_end:%d.%m.%Y %H:%M})."
            )
        if self.settings.holiday_country and _is_public_holiday(self.settings.holiday_country, booking.start.date()):
            raise BusinessHoursError(f"The restaurant is closed on public holidays ({booking.start:%d.%m.%Y}).")

    def check_table(self, table_id: int) -> None:
        if not 1 <= table_id <= self.settings.table_count:
            raise InvalidTableError(f"Table ID must be between 1 and {self.settings.table_count}, got {table_id}.")

    def _admit(self, booking: Booking) -> Booking:
        self.check_business_hours(booking)
        self.check_table(booking.table_id)
        return self.repository.add(booking)

    def _commit(self, booking: Booking, event_type: str, payload: dict[str, Any]) -> None:
        try:
            self.store.save(self.repository.get_all())
        except PersistenceError as error:
            self.event_log.try_record(SAVE_FAILED, {"booking": booking.to_dict(), "reason": str(error)})
            raise PersistenceError(
                f"Booking change applied in memory but not saved: {error}", booking=booking
            ) from error

        self.event_log.try_record(event_type, payload)

    def _report_rejection(self, payload: dict[str, Any], error: BookingError) -> None:
        self.event_log.try_record(
            BOOKING_REJECTED,
            {"booking": payload, "error": type(error).__name__, "reason": str(error)},
        )

    def _replay(self, loaded: list[Booking]) -> list[SkippedRecord]:
        skipped_records = list(self.store.last_skipped)

        for booking in loaded:
            try:
                self._admit(booking)
            except BookingError as error:
                skipped = SkippedRecord(reason=str(error), line=format_line(booking))
                skipped_records.append(skipped)
                self.event_log.try_record(
                    RECORD_SKIPPED,
                    {"error": type(error).__name__, **skipped.to_dict()},
                )

        self.skipped_records = skipped_records
        return skipped_records


def _is_public_holiday(country: str, target_date: date) -> bool:
    key = (country, target_date.year)
    if key not in _HOLIDAY_CACHE:
        holiday_map = pyholidays.country_holidays(country, years=[target_date.year])
        _HOLIDAY_CACHE[key] = set(holiday_map.keys())
    return target_date in _HOLIDAY_CACHE[key]


def _isoformat_or_none(value: Any) -> str | None:
    if isinstance(value, datetime):
        return value.isoformat(timespec="minutes")
    return None
