"""Tests for transaction ids and period keys."""

import pytest
from datetime import date, datetime

from netledger.utils.ids import (
    month_end,
    parse_transaction_id,
    period_bounds,
    period_key,
    period_of_transaction_id,
    recurrence_id_for,
    transaction_id_for,
    validate_period_key,
)


def test_transaction_id_embeds_timestamp():
    """Test id layout and the collision suffix."""
    ts = datetime(2025, 1, 15, 9, 30, 0)
    assert transaction_id_for(ts) == "TRAN20250115093000"
    assert transaction_id_for(ts, 2) == "TRAN20250115093000-2"


def test_parse_transaction_id_round_trip():
    """Test the embedded timestamp is recovered, with or without suffix."""
    ts = datetime(2025, 1, 15, 9, 30, 0)
    assert parse_transaction_id("TRAN20250115093000") == ts
    assert parse_transaction_id("TRAN20250115093000-3") == ts
    assert period_of_transaction_id("TRAN20250115093000-3") == "202501"


@pytest.mark.parametrize("bad", ["", "TRAN", "REC20250115093000", "TRAN2025011509300X"])
def test_parse_transaction_id_invalid(bad):
    """Test malformed ids raise ValueError."""
    with pytest.raises(ValueError):
        parse_transaction_id(bad)


def test_recurrence_id():
    """Test recurrence id layout."""
    assert recurrence_id_for(datetime(2025, 1, 2, 3, 4, 5)) == "REC20250102030405"


def test_period_helpers():
    """Test period keys, validation and bounds."""
    assert period_key(date(2025, 2, 9)) == "202502"
    assert validate_period_key("202502") == "202502"
    assert month_end(date(2024, 2, 3)) == date(2024, 2, 29)
    assert period_bounds("202502") == (date(2025, 2, 1), date(2025, 2, 28))


@pytest.mark.parametrize("bad", ["2025-02", "202513", "25", "abcdef"])
def test_validate_period_key_invalid(bad):
    """Test malformed period keys raise ValueError."""
    with pytest.raises(ValueError):
        validate_period_key(bad)
