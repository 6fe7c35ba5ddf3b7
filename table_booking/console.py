from __future__ import annotations

from typing import Callable

from .booking import Booking
from .errors import BookingError, PersistenceError
from .file_store import format_timestamp
from .request_parser import (
    parse_booking_id,
    parse_booking_request,
    parse_status,
    parse_table_id,
    parse_timestamp,
)
from .service import BookingService

MENU = """
==== TABLE BOOKING SYSTEM ====
1. Create a booking
2. View all bookings
3. Cancel a booking
4. Save bookings to file
5. Load bookings from file
6. Exit
==============================="""


class BookingConsole:
    """Text menu on top of BookingService; every BookingError is shown, never fatal."""

    def __init__(
        self,
        service: BookingService,
        input_func: Callable[[str], str] = input,
        output: Callable[[str], None] = print,
    ) -> None:
        self.service = service
        self._input = input_func
        self._output = output

    def run(self) -> None:
        for skipped in self.service.skipped_records:
            self._output(f"[WARN] Skipped stored booking ({skipped.reason}): {skipped.line}")

        while True:
            self._output(MENU)
            try:
                choice = self._input("Choose an option: ").strip()
            except (EOFError, KeyboardInterrupt):
                self._output("Exiting the program.")
                return

            if choice == "6":
                self._output("Exiting the program.")
                return

            action = {
                "1": self.create_booking,
                "2": self.view_bookings,
                "3": self.cancel_booking,
                "4": self.save_bookings,
                "5": self.load_bookings,
            }.get(choice)
            if action is None:
                self._output("Invalid choice. Please try again.")
                continue

            try:
                action()
            except (EOFError, KeyboardInterrupt):
                self._output("Exiting the program.")
                return
            except PersistenceError as error:
                self._output(f"[ERROR] {error}")
            except BookingError as error:
                self._output(f"[ERROR] {type(error).__name__}: {error}")

    def create_booking(self) -> None:
        request_text = self._input("Enter a request (e.g. 'table 3 24.02.2026 18:00-20:00 Alice') or leave empty: ")
        if request_text.strip():
            parsed = parse_booking_request(request_text)
            table_id, start, end = parsed.table_id, parsed.start, parsed.end
            customer_name = parsed.customer_name or self._input("Customer name: ")
            status = parse_status(None)
        else:
            table_id = parse_table_id(self._input("Table number: "))
            start = parse_timestamp(self._input("Start (dd.MM.yyyy HH:mm): "))
            end = parse_timestamp(self._input("End (dd.MM.yyyy HH:mm): "))
            customer_name = self._input("Customer name: ")
            status = parse_status(self._input("Status [CONFIRMED/PENDING] (default CONFIRMED): "))

        created = self.service.book_table(table_id, start, end, customer_name, status)
        self._output(f"[OK] Booking created: {describe_booking(created)}")

    def view_bookings(self) -> None:
        bookings = self.service.get_all_bookings()
        if not bookings:
            self._output("No bookings available.")
            return
        for booking in bookings:
            self._output(describe_booking(booking))

    def cancel_booking(self) -> None:
        booking_id = parse_booking_id(self._input("Booking ID to cancel: "))
        if self.service.cancel_booking(booking_id):
            self._output(f"[OK] Booking ID={booking_id} canceled.")
        else:
            self._output(f"[WARN] No booking with ID={booking_id}.")

    def save_bookings(self) -> None:
        self.service.save()
        self._output(f"[OK] Bookings saved to {self.service.store.path}")

    def load_bookings(self) -> None:
        skipped_records = self.service.reload()
        for skipped in skipped_records:
            self._output(f"[WARN] Skipped stored booking ({skipped.reason}): {skipped.line}")
        loaded = len(self.service.get_all_bookings())
        self._output(
            f"[OK] Loaded {loaded} bookings from {self.service.store.path}, skipped {len(skipped_records)}."
        )


def describe_booking(booking: Booking) -> str:
    return (
        f"#{booking.booking_id} table {booking.table_id}: "
        f"{format_timestamp(booking.start)} - {format_timestamp(booking.end)}, "
        f"{booking.customer_name} ({booking.status.name})"
    )
