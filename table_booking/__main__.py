from __future__ import annotations

import argparse
import traceback

from .config import load_settings
from .console import BookingConsole
from .errors import BookingError
from .events import BookingEventLog
from .file_store import BookingFileStore
from .repository import InMemoryBookingRepository
from .service import BookingService


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="table-booking", description="Restaurant table booking console.")
    parser.add_argument("--config", help="YAML settings file (defaults to $TABLE_BOOKING_CONFIG or table_booking.yaml)")
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args.config)
        event_log = BookingEventLog(settings.events_path)
        service = BookingService(
            InMemoryBookingRepository(),
            BookingFileStore(settings.bookings_path, event_log=event_log),
            settings=settings,
            event_log=event_log,
        )
    except BookingError as error:
        print(f"[ERROR] Could not start: {error}")
        traceback.print_exc()
        return 1

    BookingConsole(service).run()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
