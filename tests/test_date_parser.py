"""Tests for date, timestamp and month parsing."""

import pytest
from datetime import date, datetime, timedelta

from netledger.utils.date_parser import parse_date, parse_period, parse_timestamp


def test_parse_absolute_date():
    """Test parsing absolute dates."""
    assert parse_date("2024-01-15") == date(2024, 1, 15)
    assert parse_date("January 15, 2024") == date(2024, 1, 15)


def test_parse_relative_words():
    """Test 'today', 'yesterday' and 'tomorrow' against a reference day."""
    today = date(2025, 3, 1)
    assert parse_date("today", today=today) == today
    assert parse_date("Yesterday", today=today) == date(2025, 2, 28)
    assert parse_date("tomorrow", today=today) == today + timedelta(days=1)


def test_parse_invalid_date():
    """Test that garbage raises ValueError."""
    with pytest.raises(ValueError):
        parse_date("not a date")


def test_parse_timestamp_defaults_to_now_without_microseconds():
    """Test that a missing date means now, truncated to seconds."""
    now = datetime(2025, 1, 15, 9, 30, 12, 987654)
    assert parse_timestamp(None, now=now) == datetime(2025, 1, 15, 9, 30, 12)
    assert parse_timestamp("now", now=now) == datetime(2025, 1, 15, 9, 30, 12)


def test_parse_timestamp_date_only_is_midnight():
    """Test that a date without time lands at midnight."""
    assert parse_timestamp("2025-01-15") == datetime(2025, 1, 15, 0, 0, 0)


def test_parse_timestamp_with_time():
    """Test combining a date and a time of day."""
    assert parse_timestamp("2025-01-15", "14:30") == datetime(2025, 1, 15, 14, 30)


def test_parse_timestamp_invalid_time():
    """Test that an unparseable time raises ValueError."""
    with pytest.raises(ValueError):
        parse_timestamp("2025-01-15", "half past never")


@pytest.mark.parametrize(
    "text,expected",
    [
        ("202501", "202501"),
        ("2025-01", "202501"),
        ("January 2025", "202501"),
        ("this month", "202503"),
        ("last month", "202502"),
    ],
)
def test_parse_period(text, expected):
    """Test month references resolve to YYYYMM keys."""
    assert parse_period(text, today=date(2025, 3, 10)) == expected


def test_parse_period_last_month_crosses_year():
    """Test 'last month' in January is December of the previous year."""
    assert parse_period("last month", today=date(2025, 1, 5)) == "202412"
