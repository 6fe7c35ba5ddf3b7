from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
import threading

from .booking import Booking, has_time_overlap
from .errors import ConflictError, ValidationError


class BookingIdSequence:
    """Hands out booking ids starting at 1; ids are never reused."""

    def __init__(self, start: int = 1) -> None:
        if start <= 0:
            raise ValueError("start must be greater than zero")
        self._initial = start
        self._next = start
        self._lock = threading.Lock()

    def next_id(self) -> int:
        with self._lock:
            value = self._next
            self._next += 1
            return value

    def advance_past(self, booking_id: int) -> None:
        with self._lock:
            if booking_id >= self._next:
                self._next = booking_id + 1

    def peek(self) -> int:
        return self._next

    def reset(self) -> None:
        with self._lock:
            self._next = self._initial


class BookingRepository(ABC):
    @abstractmethod
    def get_all(self) -> list[Booking]:
        """Return a copy of all stored bookings in insertion order."""

    @abstractmethod
    def get_by_id(self, booking_id: int) -> Booking | None:
        """Return the booking with this id, or None."""

    @abstractmethod
    def add(self, booking: Booking) -> Booking:
        """Store the booking and return it with its id assigned.

        Raises ConflictError when an active booking on the same table overlaps.
        """

    @abstractmethod
    def remove(self, booking_id: int) -> Booking | None:
        """Delete the booking and return it, or None when the id is unknown."""

    @abstractmethod
    def has_conflict(self, table_id: int, start: datetime, end: datetime) -> bool:
        """Return True if an active booking on the table overlaps [start, end)."""

    @abstractmethod
    def clear(self) -> None:
        """Drop every stored booking."""


class InMemoryBookingRepository(BookingRepository):
    def __init__(self, id_sequence: BookingIdSequence | None = None) -> None:
        self.id_sequence = id_sequence or BookingIdSequence()
        self._bookings: dict[int, Booking] = {}
        self._by_table: dict[int, list[int]] = {}
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._bookings)

    def get_all(self) -> list[Booking]:
        with self._lock:
            return list(self._bookings.values())

    def get_by_id(self, booking_id: int) -> Booking | None:
        with self._lock:
            return self._bookings.get(booking_id)

    def get_by_table(self, table_id: int) -> list[Booking]:
        with self._lock:
            return [self._bookings[booking_id] for booking_id in self._by_table.get(table_id, [])]

    def add(self, booking: Booking) -> Booking:
        with self._lock:
            if booking.booking_id is not None and booking.booking_id in self._bookings:
                raise ConflictError(f"Booking ID={booking.booking_id} is already stored.")

            if booking.is_active and self.has_conflict(booking.table_id, booking.start, booking.end):
                raise ConflictError("Booking time conflicts with an existing reservation!")

            if booking.booking_id is None:
                stored = booking.with_id(self.id_sequence.next_id())
            else:
                self.id_sequence.advance_past(booking.booking_id)
                stored = booking

            self._bookings[stored.booking_id] = stored
            self._by_table.setdefault(stored.table_id, []).append(stored.booking_id)
            return stored

    def remove(self, booking_id: int) -> Booking | None:
        with self._lock:
            removed = self._bookings.pop(booking_id, None)
            if removed is None:
                return None

            table_ids = self._by_table.get(removed.table_id, [])
            table_ids.remove(booking_id)
            if not table_ids:
                del self._by_table[removed.table_id]
            return removed

    def has_conflict(self, table_id: int, start: datetime, end: datetime) -> bool:
        if start >= end:
            raise ValidationError("start must be earlier than end.")
        with self._lock:
            for booking_id in self._by_table.get(table_id, []):
                existing = self._bookings[booking_id]
                if existing.is_active and has_time_overlap(start, end, existing.start, existing.end):
                    return True
            return False

    def clear(self) -> None:
        with self._lock:
            self._bookings.clear()
            self._by_table.clear()
