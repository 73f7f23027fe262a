"""Tests for RecurrenceService and month stepping."""

import pytest
from datetime import date, datetime
from decimal import Decimal

from netledger.domain.entities import Recurrence
from netledger.domain.errors import NotFoundError, StorageError, ValidationError
from netledger.domain.recurrence import advance, next_occurrence


def make_rec(day_of_month, next_date):
    return Recurrence("REC1", "Cash", "Food", Decimal("1"), day_of_month, next_date)


@pytest.mark.parametrize(
    "day_of_month,start,expected",
    [
        (15, date(2025, 1, 15), date(2025, 2, 15)),
        (31, date(2025, 1, 31), date(2025, 2, 28)),
        (31, date(2025, 2, 28), date(2025, 3, 31)),
        (31, date(2024, 1, 31), date(2024, 2, 29)),
        (30, date(2025, 12, 30), date(2026, 1, 30)),
    ],
)
def test_advance_clamps_short_months(day_of_month, start, expected):
    """Test stepping one month keeps the day of month, clamped to month end."""
    assert advance(make_rec(day_of_month, start)) == expected


@pytest.mark.parametrize(
    "day_of_month,today,expected",
    [
        (15, date(2025, 1, 10), date(2025, 1, 15)),
        (15, date(2025, 1, 15), date(2025, 1, 15)),
        (15, date(2025, 1, 20), date(2025, 2, 15)),
        (31, date(2025, 2, 10), date(2025, 2, 28)),
        (5, date(2025, 12, 31), date(2026, 1, 5)),
    ],
)
def test_next_occurrence(day_of_month, today, expected):
    """Test the first due date on or after a reference day."""
    assert next_occurrence(day_of_month, today) == expected


def test_apply_scenario(recurrence_service, storage, sample_accounts):
    """Test applying a day-15 recurrence records it and advances to the next month."""
    rec = recurrence_service.create_recurrence(
        "Cash", "Food", Decimal("20"), 15, "Lunch plan", next_date=date(2025, 1, 15)
    )

    txn = recurrence_service.apply_recurrence(rec.id, now=datetime(2025, 1, 15, 9, 0, 0))

    assert txn.description == "Lunch plan (Recurring)"
    assert txn.timestamp == datetime(2025, 1, 15, 9, 0, 0)
    assert storage.ledger.get(txn.id) == txn
    assert storage.accounts.get("Food").balance == Decimal("20.00")
    assert recurrence_service.get_recurrence(rec.id).next_date == date(2025, 2, 15)
    assert storage.reports.get(date(2025, 1, 31)).expenses == Decimal("20.00")


def test_apply_day_31_through_february(recurrence_service, sample_accounts):
    """Test a day-31 recurrence lands on Feb 28 and returns to Mar 31."""
    rec = recurrence_service.create_recurrence(
        "Salary", "Cash", Decimal("100"), 31, next_date=date(2025, 1, 31)
    )
    recurrence_service.apply_recurrence(rec.id, now=datetime(2025, 1, 31, 8))
    assert recurrence_service.get_recurrence(rec.id).next_date == date(2025, 2, 28)
    recurrence_service.apply_recurrence(rec.id, now=datetime(2025, 2, 28, 8))
    assert recurrence_service.get_recurrence(rec.id).next_date == date(2025, 3, 31)


def test_apply_missing(recurrence_service):
    """Test applying an unknown recurrence raises NotFoundError."""
    with pytest.raises(NotFoundError):
        recurrence_service.apply_recurrence("REC20250101000000")


def test_apply_keeps_transaction_when_advance_fails(
    recurrence_service, storage, audit_sink, sample_accounts, monkeypatch
):
    """Test a failed template save is logged and the transaction stays."""
    rec = recurrence_service.create_recurrence(
        "Cash", "Food", Decimal("20"), 15, next_date=date(2025, 1, 15)
    )

    def failing_save(recurrence):
        raise StorageError("read-only")

    monkeypatch.setattr(storage.recurrences, "save", failing_save)
    txn = recurrence_service.apply_recurrence(rec.id, now=datetime(2025, 1, 15, 9))

    assert storage.ledger.get(txn.id) is not None
    assert recurrence_service.get_recurrence(rec.id).next_date == date(2025, 1, 15)
    assert ("APPLY_RECURRENCE", rec.id, False) in audit_sink.entries


@pytest.mark.parametrize("day", [0, 32])
def test_create_invalid_day(recurrence_service, sample_accounts, day):
    """Test the day of month must be 1-31."""
    with pytest.raises(ValidationError):
        recurrence_service.create_recurrence("Cash", "Food", Decimal("1"), day)


def test_create_validates_transfer(recurrence_service, sample_accounts):
    """Test templates are validated like transactions."""
    with pytest.raises(NotFoundError):
        recurrence_service.create_recurrence("Cash", "Ghost", Decimal("1"), 1)
    with pytest.raises(ValidationError):
        recurrence_service.create_recurrence("Cash", "Food", Decimal("0"), 1)
    with pytest.raises(ValidationError):
        recurrence_service.create_recurrence("Cash", "Food", Decimal("1"), 1, "x" * 995)


def test_create_default_next_date(recurrence_service, sample_accounts):
    """Test the default next date is the next occurrence from today."""
    rec = recurrence_service.create_recurrence(
        "Cash", "Food", Decimal("1"), 20, today=date(2025, 1, 25)
    )
    assert rec.next_date == date(2025, 2, 20)


def test_ids_unique(recurrence_service, sample_accounts):
    """Test two templates created in the same second get distinct ids."""
    first = recurrence_service.create_recurrence("Cash", "Food", Decimal("1"), 1)
    second = recurrence_service.create_recurrence("Cash", "Food", Decimal("1"), 1)
    assert first.id != second.id


def test_list_due_and_order(recurrence_service, sample_accounts):
    """Test listing by next date and selecting the due ones."""
    late = recurrence_service.create_recurrence(
        "Cash", "Food", Decimal("1"), 20, next_date=date(2025, 1, 20)
    )
    early = recurrence_service.create_recurrence(
        "Salary", "Cash", Decimal("1"), 5, next_date=date(2025, 1, 5)
    )

    assert [r.id for r in recurrence_service.list_recurrences()] == [early.id, late.id]
    assert [r.id for r in recurrence_service.list_due(date(2025, 1, 10))] == [early.id]
    assert recurrence_service.list_due(date(2025, 1, 1)) == []


def test_apply_due(recurrence_service, storage, sample_accounts):
    """Test every due template is applied once."""
    recurrence_service.create_recurrence("Salary", "Cash", Decimal("100"), 5, next_date=date(2025, 1, 5))
    recurrence_service.create_recurrence("Cash", "Food", Decimal("10"), 6, next_date=date(2025, 1, 6))
    recurrence_service.create_recurrence("Cash", "Food", Decimal("99"), 28, next_date=date(2025, 1, 28))

    applied = recurrence_service.apply_due(date(2025, 1, 10), now=datetime(2025, 1, 10, 7))

    assert len(applied) == 2
    assert storage.accounts.get("Cash").balance == Decimal("90.00")
    assert [r.next_date for r in recurrence_service.list_recurrences()] == [
        date(2025, 1, 28), date(2025, 2, 5), date(2025, 2, 6),
    ]


def test_delete(recurrence_service, storage, sample_accounts):
    """Test deleting a template keeps already recorded transactions."""
    rec = recurrence_service.create_recurrence("Cash", "Food", Decimal("1"), 1, next_date=date(2025, 1, 1))
    txn = recurrence_service.apply_recurrence(rec.id, now=datetime(2025, 1, 1, 9))

    recurrence_service.delete_recurrence(rec.id)

    assert recurrence_service.get_recurrence(rec.id) is None
    assert storage.ledger.get(txn.id) is not None
    with pytest.raises(NotFoundError):
        recurrence_service.delete_recurrence(rec.id)

