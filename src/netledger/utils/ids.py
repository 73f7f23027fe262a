"""Identifier and period-key helpers.

Transaction ids embed their timestamp (``TRAN20250115093000``) so the owning
partition can be located from the id alone. A numeric suffix (``-2``) keeps
ids unique when two transactions share the same second.
"""

import calendar
from datetime import date, datetime

TRANSACTION_PREFIX = "TRAN"
RECURRENCE_PREFIX = "REC"
_STAMP_FORMAT = "%Y%m%d%H%M%S"
_STAMP_LENGTH = 14
PERIOD_FORMAT = "%Y%m"


def transaction_id_for(timestamp: datetime, sequence: int = 1) -> str:
    """Build the transaction id for a timestamp.

    Args:
        timestamp: Transaction timestamp (seconds resolution)
        sequence: 1 for the first transaction in that second, 2+ for collisions

    Returns:
        Transaction id string
    """
    base = TRANSACTION_PREFIX + timestamp.strftime(_STAMP_FORMAT)
    if sequence <= 1:
        return base
    return f"{base}-{sequence}"


def recurrence_id_for(timestamp: datetime) -> str:
    """Build a recurrence id from its creation timestamp."""
    return RECURRENCE_PREFIX + timestamp.strftime(_STAMP_FORMAT)


def parse_transaction_id(transaction_id: str) -> datetime:
    """Extract the embedded timestamp from a transaction id.

    Raises:
        ValueError: If the id does not follow the ``TRAN<timestamp>`` layout
    """
    if not transaction_id.startswith(TRANSACTION_PREFIX):
        raise ValueError(f"Invalid transaction id '{transaction_id}'")
    stamp = transaction_id[len(TRANSACTION_PREFIX):len(TRANSACTION_PREFIX) + _STAMP_LENGTH]
    try:
        return datetime.strptime(stamp, _STAMP_FORMAT)
    except ValueError:
        raise ValueError(f"Invalid transaction id '{transaction_id}'")


def period_key(day: date) -> str:
    """Return the ``YYYYMM`` partition key for a date."""
    return day.strftime(PERIOD_FORMAT)


def period_of_transaction_id(transaction_id: str) -> str:
    """Return the partition key a transaction id belongs to."""
    return period_key(parse_transaction_id(transaction_id))


def validate_period_key(key: str) -> str:
    """Check that ``key`` is a ``YYYYMM`` period key and return it.

    Raises:
        ValueError: If the key is malformed
    """
    try:
        datetime.strptime(key, PERIOD_FORMAT)
    except ValueError:
        raise ValueError(f"Invalid period '{key}': expected YYYYMM")
    if len(key) != 6:
        raise ValueError(f"Invalid period '{key}': expected YYYYMM")
    return key


def month_end(day: date) -> date:
    """Last calendar day of the month containing ``day``."""
    return day.replace(day=calendar.monthrange(day.year, day.month)[1])


def period_bounds(key: str) -> tuple[date, date]:
    """First and last day of a ``YYYYMM`` period."""
    first = datetime.strptime(validate_period_key(key), PERIOD_FORMAT).date()
    return first, month_end(first)
