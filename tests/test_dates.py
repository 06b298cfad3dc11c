"""Tests for the date normalizer."""

from datetime import date, datetime, timezone

import pytest

from tui_gantt.dates import (
    add_days,
    format_date,
    format_date_with_time,
    is_date_string,
    parse_date,
)


class TestParseStrings:
    @pytest.mark.parametrize("text", ["2026-03-15", "2024-02-29", "1999-12-31", "2026-01-01"])
    def test_date_only_round_trip(self, text):
        assert format_date(parse_date(text)) == text

    def test_date_only_is_local_midnight(self):
        assert parse_date("2026-03-15") == datetime(2026, 3, 15, 0, 0)

    def test_space_separated_datetime(self):
        assert parse_date("2026-03-15 09:30") == datetime(2026, 3, 15, 9, 30)
        assert parse_date("2026-03-15 09:30:15") == datetime(2026, 3, 15, 9, 30, 15)

    def test_generic_fallback(self):
        assert parse_date("March 15, 2026") == datetime(2026, 3, 15)
        assert parse_date("2026-03-15T10:30:00") == datetime(2026, 3, 15, 10, 30)

    def test_aware_string_converted_to_local(self):
        expected = datetime(2026, 3, 15, 10, 30, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
        assert parse_date("2026-03-15T10:30:00Z") == expected

    def test_surrounding_whitespace(self):
        assert parse_date("  2026-03-15 ") == datetime(2026, 3, 15)

    @pytest.mark.parametrize("text", ["", "   ", "not a date", "2026-02-30", "2026-13-01"])
    def test_invalid_returns_none(self, text):
        assert parse_date(text) is None


class TestParseTypedValues:
    def test_none(self):
        assert parse_date(None) is None

    def test_bool_is_not_a_date(self):
        assert parse_date(True) is None

    def test_date_object(self):
        assert parse_date(date(2026, 3, 15)) == datetime(2026, 3, 15)

    def test_datetime_passes_through(self):
        value = datetime(2026, 3, 15, 8, 0)
        assert parse_date(value) == value

    def test_epoch_milliseconds(self):
        instant = datetime(2026, 3, 15, 12, 0)
        assert parse_date(instant.timestamp() * 1000) == instant
        assert parse_date(int(instant.timestamp() * 1000)) == instant

    def test_non_finite_numbers(self):
        assert parse_date(float("nan")) is None
        assert parse_date(float("inf")) is None

    def test_unsupported_type(self):
        assert parse_date({"year": 2026}) is None


class TestFormat:
    def test_format_date(self):
        assert format_date(datetime(2026, 3, 5, 23, 59)) == "2026-03-05"
        assert format_date(date(2026, 3, 5)) == "2026-03-05"

    def test_format_with_time(self):
        instant = datetime(2026, 3, 5, 7, 8, 9)
        assert format_date_with_time(instant) == "2026-03-05"
        assert format_date_with_time(instant, include_time=True) == "2026-03-05T07:08:09"

    def test_format_with_time_for_plain_date(self):
        assert format_date_with_time(date(2026, 3, 5), include_time=True) == "2026-03-05"

    def test_add_days_crosses_month(self):
        assert add_days(datetime(2026, 1, 31), 1) == datetime(2026, 2, 1)

    def test_is_date_string(self):
        assert is_date_string("2026-03-15")
        assert not is_date_string("2026-3-15")
        assert not is_date_string("2026-02-30")
        assert not is_date_string("soon")
