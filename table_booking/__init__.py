from .booking import Booking, BookingStatus, can_book, has_time_overlap
from .config import BookingSettings, load_settings
from .errors import (
	BookingError,
	BusinessHoursError,
	ConfigError,
	ConflictError,
	InvalidTableError,
	NotFoundError,
	PersistenceError,
	ValidationError,
)
from .events import BookingEventLog, NullEventLog
from .file_store import BookingFileStore, SkippedRecord
from .repository import BookingIdSequence, BookingRepository, InMemoryBookingRepository
from .request_parser import ParsedBookingRequest, parse_booking_request
from .service import BookingOutcome, BookingService

__all__ = [
	"Booking",
	"BookingStatus",
	"can_book",
	"has_time_overlap",
	"BookingSettings",
	"load_settings",
	"BookingError",
	"BusinessHoursError",
	"ConfigError",
	"ConflictError",
	"InvalidTableError",
	"NotFoundError",
	"PersistenceError",
	"ValidationError",
	"BookingEventLog",
	"NullEventLog",
	"BookingFileStore",
	"SkippedRecord",
	"BookingIdSequence",
	"BookingRepository",
	"InMemoryBookingRepository",
	"ParsedBookingRequest",
	"parse_booking_request",
	"BookingOutcome",
	"BookingService",
]
