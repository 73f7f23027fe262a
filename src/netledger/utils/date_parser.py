"""Date parsing utilities."""

from datetime import date, datetime, time, timedelta
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from netledger.utils.ids import PERIOD_FORMAT, period_key


def parse_date(date_str: str, today: Optional[date] = None) -> date:
    """Parse a date string into a date object.

    Supports absolute dates ("2024-01-15", "January 15, 2024") and the
    relative words "today", "yesterday" and "tomorrow".

    Args:
        date_str: Date string
        today: Reference day for relative words (defaults to date.today())

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = today or date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }
    if date_str in relative_dates:
        return relative_dates[date_str]

    try:
        return date_parser.parse(date_str).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def parse_timestamp(
    date_str: Optional[str], time_str: Optional[str] = None, now: Optional[datetime] = None
) -> datetime:
    """Combine a date and an optional time of day into a timestamp.

    Without a date the current moment is used. Without a time the
    transaction is placed at midnight. Seconds below one are dropped so the
    timestamp round-trips through transaction ids.

    Raises:
        ValueError: If either part cannot be parsed
    """
    now = now or datetime.now()
    if not date_str or date_str.strip().lower() == "now":
        return now.replace(microsecond=0)

    day = parse_date(date_str, today=now.date())
    if not time_str:
        return datetime.combine(day, time())
    try:
        clock = date_parser.parse(time_str.strip()).time()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse time '{time_str}': {e}")
    return datetime.combine(day, clock.replace(microsecond=0))


def parse_period(period_str: str, today: Optional[date] = None) -> str:
    """Parse a month reference into a ``YYYYMM`` period key.

    Accepts "202501", "2025-01", "January 2025", "this month" and
    "last month".

    Raises:
        ValueError: If the month cannot be determined
    """
    period_str = period_str.strip().lower()
    today = today or date.today()

    if period_str == "this month":
        return period_key(today)
    if period_str == "last month":
        return period_key(today - relativedelta(months=1))

    try:
        return period_key(datetime.strptime(period_str, PERIOD_FORMAT).date())
    except ValueError:
        pass

    try:
        parsed = date_parser.parse(period_str, default=datetime(today.year, 1, 1))
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse month '{period_str}': {e}")
    return period_key(parsed.date())
