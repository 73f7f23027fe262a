"""CSV file implementation of the storage interfaces.

Layout under the data directory::

    accounts.csv
    ledger/transactions_YYYYMM.csv
    recurrences.csv
    reports.csv

Every method takes the shared ledger lock for the duration of its file read
or rewrite.
"""

import logging
import re
from dataclasses import replace
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Mapping, Optional

from netledger.domain.entities import Account, Record, Recurrence, Transaction
from netledger.domain.errors import (
    AlreadyExistsError,
    NotFoundError,
    StorageError,
    ValidationError,
    account_exists,
    account_not_found,
)
from netledger.storage.base import AccountStore, RecurrenceStore, ReportStore, TransactionStore
from netledger.storage.csv_files import read_rows, write_rows
from netledger.storage.lock import LedgerLock
from netledger.storage.mappers import (
    ACCOUNT_HEADER,
    RECORD_HEADER,
    RECURRENCE_HEADER,
    TRANSACTION_HEADER,
    account_from_row,
    account_to_row,
    record_from_row,
    record_to_row,
    recurrence_from_row,
    recurrence_to_row,
    transaction_from_row,
    transaction_to_row,
)
from netledger.utils.ids import period_key, period_of_transaction_id, validate_period_key

logger = logging.getLogger(__name__)

_PARTITION_PATTERN = re.compile(r"^transactions_(\d{6})\.csv$")


class CSVTransactionStore(TransactionStore):
    """Transactions in one CSV file per month."""

    def __init__(self, ledger_dir: Path, lock: LedgerLock):
        """Initialize the ledger store.

        Args:
            ledger_dir: Directory holding the partition files
            lock: Shared ledger lock
        """
        self.ledger_dir = ledger_dir
        self.lock = lock

    def partition_path(self, period: str) -> Path:
        """Path of the partition file for a ``YYYYMM`` key."""
        return self.ledger_dir / f"transactions_{period}.csv"

    def _read_partition(self, period: str) -> list[Transaction]:
        path = self.partition_path(period)
        transactions = []
        for row in read_rows(path):
            try:
                transactions.append(transaction_from_row(row))
            except ValueError as e:
                raise StorageError(f"Corrupt record in {path.name}: {e}") from e
        return transactions

    def _write_partition(self, period: str, transactions: list[Transaction]) -> None:
        write_rows(
            self.partition_path(period),
            TRANSACTION_HEADER,
            (transaction_to_row(t) for t in transactions),
        )

    def append_or_replace(self, transaction: Transaction) -> None:
        """Write a transaction to its partition, replacing a same-id record in place."""
        period = period_key(transaction.date)
        try:
            id_period = period_of_transaction_id(transaction.id)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        if id_period != period:
            raise ValidationError(
                f"Transaction {transaction.id} does not belong to period {period}"
            )

        with self.lock:
            transactions = self._read_partition(period)
            for index, existing in enumerate(transactions):
                if existing.id == transaction.id:
                    transactions[index] = transaction
                    break
            else:
                transactions.append(transaction)
            self._write_partition(period, transactions)
        logger.debug("Stored transaction %s in partition %s", transaction.id, period)

    def delete(self, transaction_id: str) -> bool:
        """Remove a transaction. Returns False when it was not stored."""
        try:
            period = period_of_transaction_id(transaction_id)
        except ValueError:
            return False

        with self.lock:
            if not self.partition_path(period).exists():
                return False
            transactions = self._read_partition(period)
            remaining = [t for t in transactions if t.id != transaction_id]
            if len(remaining) == len(transactions):
                return False
            self._write_partition(period, remaining)
        logger.debug("Deleted transaction %s from partition %s", transaction_id, period)
        return True

    def get(self, transaction_id: str) -> Optional[Transaction]:
        """Get transaction by ID."""
        try:
            period = period_of_transaction_id(transaction_id)
        except ValueError:
            return None
        for transaction in self.load_period(period):
            if transaction.id == transaction_id:
                return transaction
        return None

    def load_period(self, period: str) -> list[Transaction]:
        """Load one ``YYYYMM`` partition in file order."""
        validate_period_key(period)
        with self.lock:
            return self._read_partition(period)

    def list_periods(self) -> list[str]:
        """List partition keys present in the ledger, ascending."""
        if not self.ledger_dir.is_dir():
            return []
        periods = []
        for path in self.ledger_dir.iterdir():
            match = _PARTITION_PATTERN.match(path.name)
            if match and path.is_file():
                periods.append(match.group(1))
        return sorted(periods)

    def load_all(self) -> list[Transaction]:
        """Load every readable partition. No ordering is guaranteed."""
        transactions = []
        with self.lock:
            for period in self.list_periods():
                try:
                    transactions.extend(self._read_partition(period))
                except StorageError as e:
                    logger.warning("Skipping unreadable partition %s: %s", period, e)
        return transactions

    def rename_account(self, old_name: str, new_name: str) -> int:
        """Rewrite references to an account. Returns the number of records changed."""
        changed = 0
        with self.lock:
            for period in self.list_periods():
                transactions = self._read_partition(period)
                updated = []
                period_changed = 0
                for t in transactions:
                    if old_name in (t.from_account, t.to_account):
                        t = replace(
                            t,
                            from_account=new_name if t.from_account == old_name else t.from_account,
                            to_account=new_name if t.to_account == old_name else t.to_account,
                        )
                        period_changed += 1
                    updated.append(t)
                if period_changed:
                    self._write_partition(period, updated)
                    changed += period_changed
        return changed


class CSVAccountStore(AccountStore):
    """Accounts held in memory and flushed to ``accounts.csv`` after each change.

    The cache is reloaded whenever the ledger lock is taken and the file on
    disk is no longer the one last loaded or saved by this store.
    """

    def __init__(self, path: Path, lock: LedgerLock):
        """Initialize the account store and load the account file.

        Args:
            path: Path of the accounts file
            lock: Shared ledger lock
        """
        self.path = path
        self.lock = lock
        self._accounts: list[Account] = []
        self._stamp: Optional[tuple[int, int, int]] = None
        self.load()
        lock.on_acquire(self.refresh)

    def _file_stamp(self) -> Optional[tuple[int, int, int]]:
        try:
            stat = self.path.stat()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Could not read {self.path}: {e}") from e
        return (stat.st_ino, stat.st_mtime_ns, stat.st_size)

    def load(self) -> None:
        """(Re)load accounts from disk."""
        with self.lock:
            accounts = []
            for row in read_rows(self.path):
                try:
                    accounts.append(account_from_row(row))
                except ValueError as e:
                    raise StorageError(f"Corrupt record in {self.path.name}: {e}") from e
            self._accounts = accounts
            self._stamp = self._file_stamp()

    def refresh(self) -> None:
        """Reload accounts if another writer replaced the account file."""
        if self._file_stamp() != self._stamp:
            logger.debug("Account file changed on disk, reloading %s", self.path)
            self.load()

    def save(self) -> None:
        """Rewrite the account file from memory."""
        with self.lock:
            write_rows(self.path, ACCOUNT_HEADER, (account_to_row(a) for a in self._accounts))
            self._stamp = self._file_stamp()

    def _index(self, name: str) -> int:
        for index, account in enumerate(self._accounts):
            if account.name == name:
                return index
        raise NotFoundError(account_not_found(name))

    def _save_or_restore(self, previous: list[Account]) -> None:
        try:
            self.save()
        except StorageError:
            self._accounts = previous
            raise

    def list_accounts(self) -> list[Account]:
        """List all accounts in stored order."""
        with self.lock:
            return list(self._accounts)

    def get(self, name: str) -> Optional[Account]:
        """Get account by name."""
        with self.lock:
            for account in self._accounts:
                if account.name == name:
                    return account
        return None

    def exists(self, name: str) -> bool:
        """Check if an account with the given name exists."""
        return self.get(name) is not None

    def add(self, account: Account) -> None:
        """Add an account and persist. Raises AlreadyExistsError on duplicates."""
        with self.lock:
            if self.exists(account.name):
                raise AlreadyExistsError(account_exists(account.name))
            previous = list(self._accounts)
            self._accounts.append(account)
            self._save_or_restore(previous)

    def replace(self, name: str, account: Account) -> None:
        """Replace the account stored under ``name`` and persist."""
        with self.lock:
            index = self._index(name)
            if account.name != name and self.exists(account.name):
                raise AlreadyExistsError(account_exists(account.name))
            previous = list(self._accounts)
            self._accounts[index] = account
            self._save_or_restore(previous)

    def delete(self, name: str) -> None:
        """Delete an account and persist. Raises NotFoundError if absent."""
        with self.lock:
            index = self._index(name)
            previous = list(self._accounts)
            del self._accounts[index]
            self._save_or_restore(previous)

    def update_balance(self, name: str, delta: Decimal) -> Decimal:
        """Add ``delta`` to a balance in memory. Returns the new balance."""
        with self.lock:
            index = self._index(name)
            account = self._accounts[index]
            updated = replace(account, balance=account.balance + delta)
            self._accounts[index] = updated
            return updated.balance

    def set_balances(self, balances: Mapping[str, Decimal]) -> None:
        """Overwrite balances in memory for the named accounts."""
        with self.lock:
            for name in balances:
                self._index(name)
            self._accounts = [
                replace(acc, balance=balances[acc.name]) if acc.name in balances else acc
                for acc in self._accounts
            ]


class CSVRecurrenceStore(RecurrenceStore):
    """Recurrence templates in ``recurrences.csv``."""

    def __init__(self, path: Path, lock: LedgerLock):
        self.path = path
        self.lock = lock

    def _read(self) -> list[Recurrence]:
        recurrences = []
        for row in read_rows(self.path):
            try:
                recurrences.append(recurrence_from_row(row))
            except ValueError as e:
                raise StorageError(f"Corrupt record in {self.path.name}: {e}") from e
        return recurrences

    def _write(self, recurrences: list[Recurrence]) -> None:
        write_rows(self.path, RECURRENCE_HEADER, (recurrence_to_row(r) for r in recurrences))

    def list_recurrences(self) -> list[Recurrence]:
        with self.lock:
            return self._read()

    def get(self, recurrence_id: str) -> Optional[Recurrence]:
        for recurrence in self.list_recurrences():
            if recurrence.id == recurrence_id:
                return recurrence
        return None

    def save(self, recurrence: Recurrence) -> None:
        with self.lock:
            recurrences = self._read()
            for index, existing in enumerate(recurrences):
                if existing.id == recurrence.id:
                    recurrences[index] = recurrence
                    break
            else:
                recurrences.append(recurrence)
            self._write(recurrences)

    def delete(self, recurrence_id: str) -> bool:
        with self.lock:
            recurrences = self._read()
            remaining = [r for r in recurrences if r.id != recurrence_id]
            if len(remaining) == len(recurrences):
                return False
            self._write(remaining)
            return True

    def rename_account(self, old_name: str, new_name: str) -> int:
        with self.lock:
            changed = 0
            updated = []
            for r in self._read():
                if old_name in (r.from_account, r.to_account):
                    r = replace(
                        r,
                        from_account=new_name if r.from_account == old_name else r.from_account,
                        to_account=new_name if r.to_account == old_name else r.to_account,
                    )
                    changed += 1
                updated.append(r)
            if changed:
                self._write(updated)
            return changed


class CSVReportStore(ReportStore):
    """Net-worth records in ``reports.csv``, sorted by date."""

    def __init__(self, path: Path, lock: LedgerLock):
        self.path = path
        self.lock = lock

    def _read(self) -> list[Record]:
        records = []
        for row in read_rows(self.path):
            try:
                records.append(record_from_row(row))
            except ValueError as e:
                raise StorageError(f"Corrupt record in {self.path.name}: {e}") from e
        return records

    def _write(self, records: list[Record]) -> None:
        ordered = sorted(records, key=lambda r: r.date)
        write_rows(self.path, RECORD_HEADER, (record_to_row(r) for r in ordered))

    def list_records(self) -> list[Record]:
        with self.lock:
            return sorted(self._read(), key=lambda r: r.date)

    def get(self, key: date) -> Optional[Record]:
        for record in self.list_records():
            if record.date == key:
                return record
        return None

    def upsert(self, record: Record) -> None:
        with self.lock:
            records = [r for r in self._read() if r.date != record.date]
            records.append(record)
            self._write(records)

    def replace_all(self, records: list[Record]) -> None:
        keys = [r.date for r in records]
        if len(keys) != len(set(keys)):
            raise ValidationError("Report records must have unique dates")
        with self.lock:
            self._write(records)
