"""Balance derivation engine.

Balances can be derived two ways that must always agree:

* incrementally, by applying or reversing one transaction's delta on the
  stored balances (``BalanceEngine.apply`` / ``BalanceEngine.reverse``)
* by replay, resetting every account to its opening balance and applying
  the whole history oldest-first (``replay``)

Replay is the source of truth. Services use the incremental path for the
mutation itself and then commit a full replay, which reports and heals any
drift between the two.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, Iterator, Mapping, Optional

from netledger.config import LedgerSettings
from netledger.domain.entities import Account, ReplayResult, ReportGranularity, Transaction
from netledger.domain.errors import (
    InconsistentStateError,
    NotFoundError,
    StorageError,
    balances_disagree,
)
from netledger.storage.base import Storage, oldest_first
from netledger.utils.ids import month_end

logger = logging.getLogger(__name__)


def baseline(accounts: Iterable[Account]) -> dict[str, Decimal]:
    """Starting balances for a replay: each account's opening balance."""
    return {acc.name: acc.opening_balance for acc in accounts}


def apply_effect(balances: dict[str, Decimal], transaction: Transaction, sign: int = 1) -> bool:
    """Apply (sign=1) or reverse (sign=-1) a transaction on a balance map.

    Transactions touching an account missing from ``balances`` are left out
    entirely so that the two legs always move together.

    Returns:
        True if the effect was applied
    """
    if transaction.from_account not in balances or transaction.to_account not in balances:
        logger.warning(
            "Skipping transaction %s: unknown account in %s -> %s",
            transaction.id,
            transaction.from_account,
            transaction.to_account,
        )
        return False
    delta = transaction.amount * sign
    balances[transaction.from_account] -= delta
    balances[transaction.to_account] += delta
    return True


def replay(accounts: Iterable[Account], transactions: Iterable[Transaction]) -> dict[str, Decimal]:
    """Rebuild every balance from the opening balances and the full history."""
    balances = baseline(accounts)
    for transaction in oldest_first(transactions):
        apply_effect(balances, transaction)
    return balances


def period_marker(day: date, granularity: ReportGranularity) -> date:
    """Date that identifies the report period containing ``day``."""
    if granularity == ReportGranularity.DAY:
        return day
    return month_end(day)


def replay_periods(
    accounts: Iterable[Account],
    transactions: Iterable[Transaction],
    granularity: ReportGranularity = ReportGranularity.MONTH,
) -> Iterator[tuple[date, dict[str, Decimal], list[Transaction]]]:
    """Replay the history one period at a time.

    Yields:
        ``(marker, balances, period_transactions)`` after each period that has
        activity, oldest period first. ``balances`` is a fresh copy holding
        the cumulative effect of every transaction up to the period end.
    """
    balances = baseline(accounts)
    current: Optional[date] = None
    period_transactions: list[Transaction] = []

    for transaction in oldest_first(transactions):
        marker = period_marker(transaction.date, granularity)
        if current is not None and marker != current:
            yield current, dict(balances), period_transactions
            period_transactions = []
        current = marker
        apply_effect(balances, transaction)
        period_transactions.append(transaction)

    if current is not None:
        yield current, dict(balances), period_transactions


def compare_balances(
    stored: Mapping[str, Decimal], replayed: Mapping[str, Decimal]
) -> dict[str, tuple[Decimal, Decimal]]:
    """Accounts whose stored balance differs from the replayed one."""
    return {
        name: (stored.get(name, Decimal("0.00")), value)
        for name, value in replayed.items()
        if stored.get(name, Decimal("0.00")) != value
    }


class BalanceEngine:
    """Applies transaction effects to the account store and replays history."""

    def __init__(self, storage: Storage, settings: Optional[LedgerSettings] = None):
        """Initialize balance engine.

        Args:
            storage: Storage handle
            settings: Ledger settings (defaults to LedgerSettings())
        """
        self.storage = storage
        self.settings = settings or LedgerSettings()

    def _move(self, debit: str, credit: str, amount: Decimal) -> None:
        accounts = self.storage.accounts
        with self.storage.lock:
            accounts.update_balance(debit, -amount)
            try:
                accounts.update_balance(credit, amount)
            except NotFoundError:
                # compensate the first leg
                accounts.update_balance(debit, amount)
                raise
            try:
                accounts.save()
            except StorageError:
                accounts.update_balance(credit, -amount)
                accounts.update_balance(debit, amount)
                raise

    def apply(self, transaction: Transaction) -> None:
        """Incrementally apply a transaction and persist the balances."""
        self._move(transaction.from_account, transaction.to_account, transaction.amount)
        logger.debug("Applied %s (%s)", transaction.id, transaction.amount)

    def reverse(self, transaction: Transaction) -> None:
        """Incrementally undo a transaction and persist the balances."""
        self._move(transaction.to_account, transaction.from_account, transaction.amount)
        logger.debug("Reversed %s (%s)", transaction.id, transaction.amount)

    def stored_balances(self) -> dict[str, Decimal]:
        """Balances currently held by the account store."""
        return {acc.name: acc.balance for acc in self.storage.accounts.list_accounts()}

    def replay_balances(self) -> dict[str, Decimal]:
        """Replay the full history without touching the store."""
        with self.storage.lock:
            accounts = self.storage.accounts.list_accounts()
            transactions = self.storage.ledger.load_all()
        return replay(accounts, transactions)

    def commit(
        self, replayed: Mapping[str, Decimal], strict: Optional[bool] = None
    ) -> dict[str, tuple[Decimal, Decimal]]:
        """Persist replayed balances as authoritative.

        Discrepancies against the stored balances are logged before being
        overwritten. In strict mode they are raised as InconsistentStateError
        once the replayed balances are saved.

        Args:
            replayed: Balances from a full replay
            strict: Overrides ``settings.strict_consistency`` when given

        Returns:
            The discrepancies that were healed
        """
        with self.storage.lock:
            discrepancies = compare_balances(self.stored_balances(), replayed)
            for name, (stored, value) in sorted(discrepancies.items()):
                logger.error(
                    "Balance drift on %s: stored %s, replayed %s", name, stored, value
                )
            if discrepancies:
                self.storage.accounts.set_balances(replayed)
            self.storage.accounts.save()

        if strict is None:
            strict = self.settings.strict_consistency
        if discrepancies and strict:
            raise InconsistentStateError(balances_disagree(discrepancies), discrepancies)
        return discrepancies

    def recompute(self) -> ReplayResult:
        """Replay the full history and commit the result as the stored balances."""
        with self.storage.lock:
            replayed = self.replay_balances()
            discrepancies = self.commit(replayed)
        return ReplayResult(balances=replayed, discrepancies=discrepancies)

    def verify(
        self,
        expected: Optional[Mapping[str, Decimal]] = None,
        actual: Optional[Mapping[str, Decimal]] = None,
    ) -> None:
        """Check two balance maps against each other without modifying anything.

        Args:
            expected: Authoritative balances (defaults to a fresh replay)
            actual: Balances to check (defaults to the stored balances)

        Raises:
            InconsistentStateError: If any account disagrees
        """
        with self.storage.lock:
            if expected is None:
                expected = self.replay_balances()
            if actual is None:
                actual = self.stored_balances()
        discrepancies = compare_balances(actual, expected)
        if discrepancies:
            raise InconsistentStateError(balances_disagree(discrepancies), discrepancies)
