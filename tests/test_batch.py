"""Tests for the daily batch."""

import threading
from datetime import date
from decimal import Decimal

from netledger.domain.batch import DailyBatch


def test_run_once_applies_due_and_recalculates(report_service, recurrence_service, storage, sample_accounts):
    """Test one batch applies due recurrences and refreshes reports."""
    recurrence_service.create_recurrence(
        "Salary", "Cash", Decimal("100"), 5, next_date=date(2025, 1, 5)
    )
    job = DailyBatch(report_service, recurrence_service)

    assert job.run_once(today=date(2025, 1, 6)) is True
    assert storage.accounts.get("Cash").balance == Decimal("100.00")
    assert recurrence_service.list_recurrences()[0].next_date == date(2025, 2, 5)
    assert storage.reports.list_records() != []


def test_run_once_survives_errors(report_service, monkeypatch, caplog):
    """Test a failing batch is logged and reported, not raised."""
    def boom():
        raise RuntimeError("boom")

    monkeypatch.setattr(report_service, "recalculate_all", boom)
    assert DailyBatch(report_service).run_once() is False
    assert "Daily batch failed: boom" in caplog.text


def test_start_and_stop(report_service, monkeypatch):
    """Test the background thread runs the batch until stopped."""
    ran = threading.Event()

    def fake_run_once(today=None):
        ran.set()
        return True

    job = DailyBatch(report_service, interval=0.01)
    monkeypatch.setattr(job, "run_once", fake_run_once)

    job.start()
    assert job.running
    assert ran.wait(timeout=5)
    job.stop(timeout=5)
    assert not job.running
