"""Abstract storage interfaces."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Iterable, Mapping, Optional

# Import entities directly to avoid circular import through domain/__init__.py
from netledger.domain.entities import (
    Account,
    AccountCategory,
    Record,
    Recurrence,
    Transaction,
)
from netledger.storage.lock import LedgerLock


class TransactionStore(ABC):
    """Ledger of transactions partitioned by month."""

    @abstractmethod
    def append_or_replace(self, transaction: Transaction) -> None:
        """Write a transaction to its partition, replacing a same-id record in place."""
        pass

    @abstractmethod
    def delete(self, transaction_id: str) -> bool:
        """Remove a transaction. Returns False when it was not stored."""
        pass

    @abstractmethod
    def get(self, transaction_id: str) -> Optional[Transaction]:
        """Get transaction by ID."""
        pass

    @abstractmethod
    def load_period(self, period: str) -> list[Transaction]:
        """Load one ``YYYYMM`` partition in file order."""
        pass

    @abstractmethod
    def load_all(self) -> list[Transaction]:
        """Load every readable partition. No ordering is guaranteed."""
        pass

    @abstractmethod
    def list_periods(self) -> list[str]:
        """List partition keys present in the ledger, ascending."""
        pass

    @abstractmethod
    def rename_account(self, old_name: str, new_name: str) -> int:
        """Rewrite references to an account. Returns the number of records changed."""
        pass


class AccountStore(ABC):
    """The account list, held in memory and flushed as one file."""

    @abstractmethod
    def load(self) -> None:
        """(Re)load accounts from disk."""
        pass

    @abstractmethod
    def save(self) -> None:
        """Rewrite the account file from memory."""
        pass

    @abstractmethod
    def list_accounts(self) -> list[Account]:
        """List all accounts in stored order."""
        pass

    @abstractmethod
    def get(self, name: str) -> Optional[Account]:
        """Get account by name."""
        pass

    @abstractmethod
    def exists(self, name: str) -> bool:
        """Check if an account with the given name exists."""
        pass

    @abstractmethod
    def add(self, account: Account) -> None:
        """Add an account and persist. Raises AlreadyExistsError on duplicates."""
        pass

    @abstractmethod
    def replace(self, name: str, account: Account) -> None:
        """Replace the account stored under ``name`` and persist."""
        pass

    @abstractmethod
    def delete(self, name: str) -> None:
        """Delete an account and persist. Raises NotFoundError if absent."""
        pass

    @abstractmethod
    def update_balance(self, name: str, delta: Decimal) -> Decimal:
        """Add ``delta`` to a balance in memory. Returns the new balance."""
        pass

    @abstractmethod
    def set_balances(self, balances: Mapping[str, Decimal]) -> None:
        """Overwrite balances in memory for the named accounts."""
        pass

    def list_by_category(self, category: AccountCategory) -> list[Account]:
        """List accounts of one category, preserving stored order."""
        return [acc for acc in self.list_accounts() if acc.category == category]


class RecurrenceStore(ABC):
    """Recurring transaction templates."""

    @abstractmethod
    def list_recurrences(self) -> list[Recurrence]:
        """List templates in stored order."""
        pass

    @abstractmethod
    def get(self, recurrence_id: str) -> Optional[Recurrence]:
        """Get template by ID."""
        pass

    @abstractmethod
    def save(self, recurrence: Recurrence) -> None:
        """Insert or replace a template by ID."""
        pass

    @abstractmethod
    def delete(self, recurrence_id: str) -> bool:
        """Remove a template. Returns False when it was not stored."""
        pass

    @abstractmethod
    def rename_account(self, old_name: str, new_name: str) -> int:
        """Rewrite references to an account. Returns the number of templates changed."""
        pass


class ReportStore(ABC):
    """Net-worth records, one row per period key."""

    @abstractmethod
    def list_records(self) -> list[Record]:
        """List records ordered by date ascending."""
        pass

    @abstractmethod
    def get(self, key: date) -> Optional[Record]:
        """Get the record for a period key."""
        pass

    @abstractmethod
    def upsert(self, record: Record) -> None:
        """Insert a record or replace the one with the same date."""
        pass

    @abstractmethod
    def replace_all(self, records: list[Record]) -> None:
        """Rewrite the whole report table."""
        pass


@dataclass
class Storage:
    """Handle bundling the stores of one data directory and their shared lock."""

    data_dir: Path
    lock: LedgerLock
    ledger: TransactionStore
    accounts: AccountStore
    recurrences: RecurrenceStore
    reports: ReportStore


def oldest_first(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Sort transactions by timestamp ascending, ties broken by id."""
    return sorted(transactions, key=lambda t: t.sort_key)


def newest_first(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Sort transactions by timestamp descending, ties broken by id."""
    return sorted(transactions, key=lambda t: t.sort_key, reverse=True)
