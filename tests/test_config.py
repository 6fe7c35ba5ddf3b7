import os
import tempfile
import unittest
from datetime import datetime, time, timedelta
from pathlib import Path
from unittest import mock

from table_booking import BookingSettings, ConfigError, load_settings
from table_booking.config import CONFIG_ENV_VAR, settings_from_dict


class TestBookingSettings(unittest.TestCase):
    def test_defaults(self) -> None:
        settings = BookingSettings()

        self.assertEqual(settings.opening_time, time(10, 0))
        self.assertEqual(settings.closing_time, time(22, 0))
        self.assertEqual(settings.table_count, 10)
        self.assertEqual(settings.bookings_path, Path("data") / "bookings.csv")
        self.assertEqual(settings.events_path, Path("data") / "booking_events.yaml")

    def test_last_end_uses_start_date(self) -> None:
        settings = BookingSettings()

        self.assertEqual(settings.last_end_for(datetime(2026, 2, 24, 20, 30)), datetime(2026, 2, 24, 21, 0))

    def test_validate_rejects_inverted_hours(self) -> None:
        with self.assertRaises(ConfigError):
            BookingSettings(opening_time=time(21, 30)).validate()

    def test_validate_rejects_zero_tables(self) -> None:
        with self.assertRaises(ConfigError):
            BookingSettings(table_count=0).validate()


class TestLoadSettings(unittest.TestCase):
    def test_missing_file_yields_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            self.assertEqual(load_settings(Path(temp_dir) / "absent.yaml"), BookingSettings())

    def test_reads_yaml_mapping(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "table_booking.yaml"
            path.write_text(
                "opening_time: '11:30'\n"
                "closing_time: 23:00\n"
                "last_booking_buffer_minutes: 45\n"
                "table_count: 12\n"
                "data_dir: storage\n"
                "holiday_country: de\n",
                encoding="utf-8",
            )

            settings = load_settings(path)

            self.assertEqual(settings.opening_time, time(11, 30))
            self.assertEqual(settings.closing_time, time(23, 0))
            self.assertEqual(settings.last_booking_buffer, timedelta(minutes=45))
            self.assertEqual(settings.table_count, 12)
            self.assertEqual(settings.bookings_path, Path("storage") / "bookings.csv")
            self.assertEqual(settings.holiday_country, "DE")

    def test_environment_variable_names_config(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "custom.yaml"
            path.write_text("table_count: 4\n", encoding="utf-8")

            with mock.patch.dict(os.environ, {CONFIG_ENV_VAR: str(path)}):
                settings = load_settings()

            self.assertEqual(settings.table_count, 4)

    def test_invalid_documents_raise_config_error(self) -> None:
        documents = ["- just\n- a list\n", "table_count: [unclosed\n", "seats: 4\n", "table_count: many\n"]
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "bad.yaml"
            for document in documents:
                with self.subTest(document=document):
                    path.write_text(document, encoding="utf-8")
                    with self.assertRaises(ConfigError):
                        load_settings(path)

    def test_bad_time_and_country(self) -> None:
        with self.assertRaises(ConfigError):
            settings_from_dict({"opening_time": "ten"})
        with self.assertRaises(ConfigError):
            settings_from_dict({"holiday_country": "XX"})


if __name__ == "__main__":
    unittest.main()
