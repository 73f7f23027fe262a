"""Tests for concurrent use of the ledger by threads and by separate storage handles."""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from decimal import Decimal

import pytest
from filelock import FileLock, Timeout

from netledger.cli.services import build_services
from netledger.domain.batch import DailyBatch
from netledger.storage.factories import create_csv_storage
from netledger.storage.lock import LedgerLock


def test_concurrent_creates_keep_ids_unique_and_balances_exact(transaction_service, storage, sample_accounts):
    """Test parallel writers sharing a second never collide or lose updates."""
    timestamp = datetime(2025, 1, 15, 9, 30, 0)

    def create(i):
        return transaction_service.create_transaction(
            "Salary", "Cash", Decimal("1.25"), f"worker {i}", timestamp=timestamp
        )

    with ThreadPoolExecutor(max_workers=8) as executor:
        created = list(executor.map(create, range(24)))

    ids = [t.id for t in created]
    assert len(set(ids)) == 24
    assert len(storage.ledger.load_period("202501")) == 24
    assert storage.accounts.get("Cash").balance == Decimal("30.00")
    assert storage.accounts.get("Salary").balance == Decimal("-30.00")
    transaction_service.engine.verify()


def test_concurrent_mixed_operations(transaction_service, report_service, storage, sample_accounts):
    """Test creates and deletes racing with recomputes stay consistent."""
    seed = [
        transaction_service.create_transaction(
            "Cash", "Food", Decimal("2"), timestamp=datetime(2025, 1, day, 8)
        )
        for day in range(1, 11)
    ]

    def work(i):
        if i < len(seed):
            transaction_service.delete_transaction(seed[i].id)
        elif i % 2:
            report_service.recalculate_all()
        else:
            transaction_service.create_transaction(
                "Salary", "Cash", Decimal("5"), timestamp=datetime(2025, 2, 1, 8)
            )

    with ThreadPoolExecutor(max_workers=6) as executor:
        list(executor.map(work, range(20)))

    # 5 creates of 5.00 survive, all 10 expenses are gone
    assert storage.accounts.get("Cash").balance == Decimal("25.00")
    assert storage.accounts.get("Food").balance == Decimal("0.00")
    assert report_service.recalculate_all().consistent


class TestSharedDataDirectory:
    """Two storage handles on one directory, as two netledger processes would be."""

    def test_batch_keeps_accounts_created_by_another_handle(self, data_dir, settings, audit_sink):
        """Test a long-lived handle picks up accounts written by another one."""
        batch_side = build_services(create_csv_storage(str(data_dir)), settings, audit_sink)
        cli_side = build_services(create_csv_storage(str(data_dir)), settings, audit_sink)

        cli_side.accounts.create_account("Cash", "Assets", True)
        cli_side.accounts.create_account("Salary", "Revenue")
        cli_side.transactions.create_transaction(
            "Salary", "Cash", Decimal("1000"), timestamp=datetime(2025, 1, 15, 9, 30)
        )

        assert DailyBatch(batch_side.reports, batch_side.recurrences).run_once()

        reloaded = create_csv_storage(str(data_dir))
        assert [a.name for a in reloaded.accounts.list_accounts()] == ["Cash", "Salary"]
        assert reloaded.accounts.get("Cash").balance == Decimal("1000.00")
        assert batch_side.accounts.get_account("Salary").balance == Decimal("-1000.00")
        assert len(reloaded.ledger.load_all()) == 1

    def test_unsaved_balances_survive_when_file_unchanged(self, storage, sample_accounts):
        """Test the cache is only reloaded when the file changed on disk."""
        storage.accounts.update_balance("Cash", Decimal("5"))
        with storage.lock:
            assert storage.accounts.get("Cash").balance == Decimal("5.00")

    def test_handles_alternate_writes(self, data_dir, settings, audit_sink):
        """Test each handle sees the other's latest balances before writing."""
        first = build_services(create_csv_storage(str(data_dir)), settings, audit_sink)
        second = build_services(create_csv_storage(str(data_dir)), settings, audit_sink)
        first.accounts.create_account("Cash", "Assets", True)
        first.accounts.create_account("Salary", "Revenue")

        for day in range(1, 7):
            services = first if day % 2 else second
            services.transactions.create_transaction(
                "Salary", "Cash", Decimal("10"), timestamp=datetime(2025, 1, day)
            )

        assert first.accounts.get_account("Cash").balance == Decimal("60.00")
        assert second.accounts.get_account("Cash").balance == Decimal("60.00")
        first.engine.verify()


def test_ledger_lock_holds_file_lock(tmp_path):
    """Test the outermost acquisition takes the lock file and nesting keeps it."""
    lock_path = tmp_path / ".lock"
    lock = LedgerLock(lock_path)
    other = FileLock(str(lock_path), timeout=0)

    with lock:
        with lock:
            pass
        with pytest.raises(Timeout):
            other.acquire()

    other.acquire()
    other.release()


def test_ledger_lock_runs_callbacks_once_per_acquisition(tmp_path):
    """Test callbacks run on outermost acquisition only."""
    calls = []
    lock = LedgerLock(tmp_path / ".lock")
    lock.on_acquire(lambda: calls.append(1))

    with lock:
        with lock:
            pass
    with lock:
        pass

    assert len(calls) == 2


def test_ledger_lock_released_when_callback_fails(tmp_path):
    """Test a failing callback leaves the lock free."""
    lock = LedgerLock(tmp_path / ".lock")

    def fail():
        raise OSError("unreadable")

    lock.on_acquire(fail)
    with pytest.raises(OSError):
        with lock:
            pass

    other = FileLock(str(tmp_path / ".lock"), timeout=0)
    other.acquire()
    other.release()
