"""Tests for age and measurement window predicates."""
import pytest
import pandas as pd
from datetime import datetime

from depression_screening.processing.errors import InvalidDateError
from depression_screening.processing.records import MeasurementWindow
from depression_screening.processing.temporal import age, in_window, parse_timestamp


class TestParseTimestamp:
    """Tests for date parsing."""

    def test_us_datetime_format(self):
        """MM/DD/YYYY h:mm AM strings are parsed."""
        assert parse_timestamp("03/15/2022 9:00 AM") == pd.Timestamp(2022, 3, 15, 9, 0)

    def test_long_date_format(self):
        """Month D, YYYY strings are parsed."""
        assert parse_timestamp("June 1, 2008") == pd.Timestamp(2008, 6, 1)

    def test_aware_value_converted_to_utc(self):
        """Offsets are converted to UTC and dropped."""
        ts = parse_timestamp("2021-12-31T23:00:00-05:00")
        assert ts.tzinfo is None
        assert ts == pd.Timestamp(2022, 1, 1, 4, 0)

    def test_datetime_passthrough(self):
        """datetime objects are accepted."""
        assert parse_timestamp(datetime(2022, 1, 1)) == pd.Timestamp(2022, 1, 1)

    @pytest.mark.parametrize("value", ["", "   ", None, "not a date", "now", "today", " Today "])
    def test_invalid_values_raise(self, value):
        """Empty, relative or unparseable values raise InvalidDateError."""
        with pytest.raises(InvalidDateError):
            parse_timestamp(value)


class TestAge:
    """Tests for age calculation."""

    def test_exact_twelve_years(self):
        """12 years including 3 leap days is exactly 12."""
        assert age("2010-01-01", "2022-01-01") == 12

    def test_day_before_birthday(self):
        """One day short of the 12th birthday is 11."""
        assert age("2010-01-02", "2022-01-01") == 11

    def test_365_day_year_is_not_a_full_year(self):
        """A non-leap calendar year is shorter than 365.25 days."""
        assert age("2021-01-01", "2022-01-01") == 0

    def test_invalid_birth_date(self):
        """Unparseable birth date raises."""
        with pytest.raises(InvalidDateError):
            age("unknown", "2022-01-01")


class TestInWindow:
    """Tests for the inclusive window check."""

    def test_start_is_inclusive(self, window):
        assert in_window("2022-01-01T00:00:00Z", window) is True

    def test_end_is_inclusive(self, window):
        assert in_window("2022-12-31T23:59:59Z", window) is True

    def test_before_start(self, window):
        assert in_window("2021-12-31T23:59:59Z", window) is False

    def test_after_end(self, window):
        assert in_window("01/01/2023 12:00 AM", window) is False

    def test_offset_moves_into_window(self, window):
        """A late-evening local time before the window can be inside it in UTC."""
        assert in_window("2021-12-31T23:00:00-05:00", window) is True


class TestMeasurementWindow:
    """Tests for window construction."""

    def test_default_is_2022(self):
        window = MeasurementWindow.default()
        assert window.start == pd.Timestamp(2022, 1, 1)
        assert window.end == pd.Timestamp(2022, 12, 31, 23, 59, 59)

    def test_from_strings(self):
        window = MeasurementWindow.from_strings("2023-01-01T00:00:00Z", "2023-12-31T23:59:59Z")
        assert window.isoformat() == ("2023-01-01T00:00:00Z", "2023-12-31T23:59:59Z")

    def test_end_before_start_rejected(self):
        with pytest.raises(ValueError):
            MeasurementWindow.from_strings("2023-01-01", "2022-01-01")
