"""
Unit tests for tasketa.core.utils.

Tests cover:
  • UTC normalisation of naive and offset datetimes
  • Signed hour arithmetic
  • Hour coercion (bools, strings, non-finite values)
  • End-of-day conversion across zones
  • Timestamp / date parsing and ISO formatting
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from tasketa.core.utils import (
    FAR_FUTURE, add_hours, coerce_hours, end_of_day, ensure_utc, format_hours,
    hours_between, parse_date, parse_timestamp, resolve_zone, to_iso,
)


# ---------------------------------------------------------------------------
# Clock helpers
# ---------------------------------------------------------------------------

class TestEnsureUtc:
    def test_naive_is_read_as_utc(self):
        ts = ensure_utc(datetime(2024, 1, 1, 12, 0))
        assert ts.tzinfo == timezone.utc
        assert ts.hour == 12

    def test_offset_is_converted(self):
        ts = ensure_utc(datetime(2024, 1, 1, 12, 0, tzinfo=timezone(timedelta(hours=2))))
        assert ts.hour == 10


class TestHourArithmetic:
    def test_hours_between_positive(self):
        start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert hours_between(start, start + timedelta(hours=36)) == pytest.approx(36.0)

    def test_hours_between_negative(self):
        start = datetime(2024, 1, 2, tzinfo=timezone.utc)
        assert hours_between(start, start - timedelta(minutes=30)) == pytest.approx(-0.5)

    def test_add_hours(self):
        start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert add_hours(start, 1.5) == datetime(2024, 1, 1, 1, 30, tzinfo=timezone.utc)


class TestCoerceHours:
    @pytest.mark.parametrize("value,expected", [(3, 3.0), (2.5, 2.5), (0, 0.0), (-1, -1.0)])
    def test_numbers(self, value, expected):
        assert coerce_hours(value) == expected

    @pytest.mark.parametrize("value", [None, True, False, "5", float("inf"), float("nan"), [1]])
    def test_rejected(self, value):
        assert coerce_hours(value) is None


# ---------------------------------------------------------------------------
# Zones
# ---------------------------------------------------------------------------

class TestEndOfDay:
    def test_utc(self):
        assert end_of_day(date(2024, 1, 10)) == datetime(
            2024, 1, 10, 23, 59, 59, 999000, tzinfo=timezone.utc
        )

    def test_named_zone_shifts_instant(self):
        # New York is UTC-5 in January.
        eod = end_of_day(date(2024, 1, 10), "America/New_York")
        assert eod == datetime(2024, 1, 11, 4, 59, 59, 999000, tzinfo=timezone.utc)

    def test_unknown_zone_falls_back_to_utc(self):
        assert resolve_zone("Not/AZone") == timezone.utc
        assert end_of_day(date(2024, 1, 10), "Not/AZone").hour == 23


# ---------------------------------------------------------------------------
# Parsing / formatting
# ---------------------------------------------------------------------------

class TestParseTimestamp:
    def test_z_suffix(self):
        assert parse_timestamp("2024-01-10T12:00:00Z") == datetime(2024, 1, 10, 12, tzinfo=timezone.utc)

    def test_offset(self):
        assert parse_timestamp("2024-01-10T12:00:00+02:00") == datetime(2024, 1, 10, 10, tzinfo=timezone.utc)

    def test_datetime_passthrough(self):
        ts = datetime(2024, 1, 10, 12)
        assert parse_timestamp(ts) == ts.replace(tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", [None, "", "   ", "tomorrow", 12345, "2024-13-40T00:00:00Z"])
    def test_garbage(self, value):
        assert parse_timestamp(value) is None


class TestParseDate:
    def test_iso_date(self):
        assert parse_date("2024-01-10") == date(2024, 1, 10)

    def test_datetime_truncated(self):
        assert parse_date(datetime(2024, 1, 10, 5)) == date(2024, 1, 10)

    @pytest.mark.parametrize("value", [None, "", "10/01/2024", 20240110])
    def test_garbage(self, value):
        assert parse_date(value) is None


class TestFormatting:
    def test_to_iso_millis(self):
        ts = datetime(2024, 1, 10, 23, 59, 59, 999000, tzinfo=timezone.utc)
        assert to_iso(ts) == "2024-01-10T23:59:59.999Z"

    def test_to_iso_none(self):
        assert to_iso(None) is None

    def test_format_hours(self):
        assert format_hours(12.5) == "12.5 h"
        assert format_hours(3, decimals=0) == "3 h"

    def test_format_hours_unknown(self):
        assert format_hours(None) == "-"
        assert format_hours(float("nan")) == "-"


class TestOutOfRange:
    def test_timestamp_overflowing_utc_is_rejected(self):
        assert parse_timestamp("9999-12-31T23:00:00-05:00") is None

    def test_end_of_day_saturates(self):
        eod = end_of_day(date(9999, 12, 31), "America/New_York")
        assert eod == FAR_FUTURE
