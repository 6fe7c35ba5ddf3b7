import threading
import unittest
from datetime import datetime

from table_booking import (
    Booking,
    BookingIdSequence,
    BookingStatus,
    ConflictError,
    InMemoryBookingRepository,
    ValidationError,
)


def _booking(table_id: int, start_hour: int, end_hour: int, name: str = "Alice", **kwargs) -> Booking:
    return Booking(
        table_id,
        datetime(2026, 2, 24, start_hour, 0),
        datetime(2026, 2, 24, end_hour, 0),
        name,
        **kwargs,
    )


class TestBookingIdSequence(unittest.TestCase):
    def test_ids_start_at_one_and_increase(self) -> None:
        sequence = BookingIdSequence()

        self.assertEqual([sequence.next_id() for _ in range(3)], [1, 2, 3])

    def test_advance_past_and_reset(self) -> None:
        sequence = BookingIdSequence()
        sequence.advance_past(10)
        self.assertEqual(sequence.next_id(), 11)

        sequence.reset()
        self.assertEqual(sequence.next_id(), 1)

    def test_rejects_non_positive_start(self) -> None:
        with self.assertRaises(ValueError):
            BookingIdSequence(0)


class TestInMemoryBookingRepository(unittest.TestCase):
    def setUp(self) -> None:
        self.repo = InMemoryBookingRepository()

    def test_add_assigns_sequential_ids(self) -> None:
        first = self.repo.add(_booking(1, 10, 12))
        second = self.repo.add(_booking(2, 10, 12))

        self.assertEqual(first.booking_id, 1)
        self.assertEqual(second.booking_id, 2)
        self.assertIs(self.repo.get_by_id(1), first)

    def test_add_overlapping_same_table_raises(self) -> None:
        self.repo.add(_booking(1, 10, 12))

        with self.assertRaises(ConflictError):
            self.repo.add(_booking(1, 11, 13, "Bob"))
        self.assertEqual(len(self.repo), 1)

    def test_adjacent_bookings_are_allowed(self) -> None:
        self.repo.add(_booking(1, 10, 12))
        self.repo.add(_booking(1, 12, 13, "Bob"))

        self.assertEqual(len(self.repo.get_all()), 2)

    def test_overlap_on_other_table_is_allowed(self) -> None:
        self.repo.add(_booking(1, 10, 12))
        self.repo.add(_booking(2, 10, 12, "Bob"))

        self.assertEqual(len(self.repo.get_by_table(2)), 1)

    def test_canceled_booking_does_not_conflict(self) -> None:
        self.repo.add(_booking(1, 10, 12, status=BookingStatus.CANCELED))

        self.assertFalse(self.repo.has_conflict(1, datetime(2026, 2, 24, 10, 0), datetime(2026, 2, 24, 12, 0)))
        self.repo.add(_booking(1, 10, 12, "Bob"))

    def test_get_all_is_a_defensive_copy_in_insertion_order(self) -> None:
        self.repo.add(_booking(3, 10, 11, "C"))
        self.repo.add(_booking(1, 10, 11, "A"))
        snapshot = self.repo.get_all()
        snapshot.clear()

        self.assertEqual([booking.customer_name for booking in self.repo.get_all()], ["C", "A"])

    def test_remove_frees_the_slot_and_ids_are_not_reused(self) -> None:
        stored = self.repo.add(_booking(1, 10, 12))

        removed = self.repo.remove(stored.booking_id)

        self.assertEqual(removed.booking_id, stored.booking_id)
        self.assertIsNone(self.repo.get_by_id(stored.booking_id))
        self.assertFalse(self.repo.has_conflict(1, datetime(2026, 2, 24, 10, 0), datetime(2026, 2, 24, 12, 0)))
        self.assertEqual(self.repo.add(_booking(1, 10, 12)).booking_id, 2)

    def test_remove_unknown_id_returns_none(self) -> None:
        self.repo.add(_booking(1, 10, 12))

        self.assertIsNone(self.repo.remove(99))
        self.assertEqual(len(self.repo), 1)

    def test_add_with_existing_id_raises(self) -> None:
        self.repo.add(_booking(1, 10, 12, booking_id=4))

        with self.assertRaises(ConflictError):
            self.repo.add(_booking(2, 10, 12, booking_id=4))
        self.assertEqual(self.repo.add(_booking(3, 10, 12)).booking_id, 5)

    def test_has_conflict_rejects_inverted_range(self) -> None:
        with self.assertRaises(ValidationError):
            self.repo.has_conflict(1, datetime(2026, 2, 24, 12, 0), datetime(2026, 2, 24, 10, 0))

    def test_clear_keeps_the_sequence(self) -> None:
        self.repo.add(_booking(1, 10, 12))
        self.repo.clear()

        self.assertEqual(self.repo.get_all(), [])
        self.assertEqual(self.repo.add(_booking(1, 10, 12)).booking_id, 2)

    def test_injected_sequence_is_used(self) -> None:
        repo = InMemoryBookingRepository(BookingIdSequence(100))

        self.assertEqual(repo.add(_booking(1, 10, 12)).booking_id, 100)

    def test_concurrent_adds_admit_only_one_booking_per_slot(self) -> None:
        results: list[str] = []
        barrier = threading.Barrier(8)

        def worker(index: int) -> None:
            barrier.wait()
            try:
                self.repo.add(_booking(1, 10, 12, f"Guest{index}"))
                results.append("ok")
            except ConflictError:
                results.append("conflict")

        threads = [threading.Thread(target=worker, args=(index,)) for index in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(results.count("ok"), 1)
        self.assertEqual(results.count("conflict"), 7)


if __name__ == "__main__":
    unittest.main()
