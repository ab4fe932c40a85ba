"""
Tests for due-date helpers.
"""
from datetime import date, datetime

import pytest

from backend.dates import (
    days_until,
    due_sort_key,
    format_long,
    format_short,
    parse_date,
    remaining_label,
    window_end,
)

TODAY = date(2025, 1, 10)


class TestParseDate:
    """Tests for reading form and provider values."""

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_blank(self, value):
        assert parse_date(value) is None

    def test_iso_string_with_time(self):
        assert parse_date("2025-02-01T09:00:00+09:00") == date(2025, 2, 1)

    def test_datetime(self):
        assert parse_date(datetime(2025, 2, 1, 23, 59)) == date(2025, 2, 1)


class TestCountdown:
    """Tests for days remaining until a deadline."""

    def test_days_until(self):
        assert days_until(date(2025, 1, 13), TODAY) == 3
        assert days_until(date(2025, 1, 8), TODAY) == -2
        assert days_until(None, TODAY) is None

    def test_labels(self):
        assert remaining_label(TODAY, TODAY) == "今日"
        assert remaining_label(date(2025, 1, 17), TODAY) == "あと7日"
        assert remaining_label(date(2025, 1, 9), TODAY) == "1日超過"
        assert remaining_label(None, TODAY) == ""

    def test_window_end(self):
        assert window_end(TODAY, 7) == date(2025, 1, 17)


class TestFormatting:
    """Tests for display formats and ordering."""

    def test_formats(self):
        due = date(2025, 3, 5)
        assert format_short(due) == "3/5"
        assert format_long(due) == "2025/3/5"
        assert format_short(None) == format_long(None) == "-"

    def test_missing_dates_sort_last(self):
        dues = [None, date(2025, 2, 1), date(2025, 1, 1)]
        assert sorted(dues, key=due_sort_key) == [date(2025, 1, 1), date(2025, 2, 1), None]
