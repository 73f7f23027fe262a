"""Transaction domain service."""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from netledger.config import LedgerSettings, MAX_DESCRIPTION_LENGTH
from netledger.domain.audit import AuditSink, NullAuditSink
from netledger.domain.entities import Transaction
from netledger.domain.errors import (
    NotFoundError,
    ValidationError,
    account_not_found,
    transaction_not_found,
)
from netledger.domain.report import ReportService
from netledger.storage.base import Storage, newest_first
from netledger.utils.amount_parser import check_transfer_amount, quantize
from netledger.utils.ids import transaction_id_for, validate_period_key

logger = logging.getLogger(__name__)


class TransactionService:
    """Service for recording, correcting and removing transactions.

    Each mutation holds the ledger lock while it persists the record, applies
    the incremental balance change and recomputes balances and reports from
    the full history.
    """

    def __init__(
        self,
        storage: Storage,
        reports: Optional[ReportService] = None,
        settings: Optional[LedgerSettings] = None,
        audit: Optional[AuditSink] = None,
    ):
        """Initialize transaction service.

        Args:
            storage: Storage handle
            reports: Report service used for the post-mutation recompute
            settings: Ledger settings
            audit: Audit sink for mutation outcomes
        """
        self.storage = storage
        self.settings = settings or LedgerSettings()
        self.audit = audit or NullAuditSink()
        self.reports = reports or ReportService(storage, settings=self.settings)
        self.engine = self.reports.engine

    def validate_transfer(
        self, from_account: str, to_account: str, amount: Decimal, description: str = ""
    ) -> None:
        """Check that a movement of money can be recorded.

        Raises:
            ValidationError: If the accounts are equal, the amount is out of
                range or the description is too long
            NotFoundError: If either account does not exist
        """
        if from_account == to_account:
            raise ValidationError("Source and destination accounts must be different")
        for name in (from_account, to_account):
            if not self.storage.accounts.exists(name):
                raise NotFoundError(account_not_found(name))
        try:
            check_transfer_amount(amount, self.settings.max_amount)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        if len(description) > MAX_DESCRIPTION_LENGTH:
            raise ValidationError(
                f"Description must be at most {MAX_DESCRIPTION_LENGTH} characters"
            )

    def _unique_id(self, timestamp: datetime) -> str:
        sequence = 1
        while True:
            transaction_id = transaction_id_for(timestamp, sequence)
            if self.storage.ledger.get(transaction_id) is None:
                return transaction_id
            sequence += 1

    def create_transaction(
        self,
        from_account: str,
        to_account: str,
        amount: Decimal,
        description: str = "",
        timestamp: Optional[datetime] = None,
    ) -> Transaction:
        """Record money moving from one account to another.

        Args:
            from_account: Account the money leaves
            to_account: Account the money enters
            amount: Positive amount, rounded to cents
            description: Optional free text
            timestamp: When it happened (defaults to now)

        Returns:
            The stored transaction

        Raises:
            ValidationError: If the transfer is invalid
            NotFoundError: If either account does not exist
            StorageError: If a ledger file cannot be written
        """
        amount = quantize(amount)
        description = description.strip()
        timestamp = (timestamp or datetime.now()).replace(microsecond=0)
        self.validate_transfer(from_account, to_account, amount, description)

        transaction_id = "-"
        try:
            with self.storage.lock:
                transaction_id = self._unique_id(timestamp)
                transaction = Transaction(
                    id=transaction_id,
                    from_account=from_account,
                    to_account=to_account,
                    amount=amount,
                    timestamp=timestamp,
                    description=description,
                )
                self.storage.ledger.append_or_replace(transaction)
                try:
                    self.engine.apply(transaction)
                except Exception:
                    self.storage.ledger.delete(transaction.id)
                    raise
                self.reports.reconcile(transaction.id)
        except Exception:
            self.audit.record("CREATE_TRANSACTION", transaction_id, False)
            raise

        logger.info(
            "Created transaction %s: %s -> %s %s",
            transaction.id,
            from_account,
            to_account,
            amount,
        )
        self.audit.record("CREATE_TRANSACTION", transaction.id, True)
        return transaction

    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        """Get transaction by ID.

        Args:
            transaction_id: Transaction ID

        Returns:
            Transaction entity or None if not found
        """
        return self.storage.ledger.get(transaction_id)

    def update_transaction(
        self,
        transaction_id: str,
        from_account: Optional[str] = None,
        to_account: Optional[str] = None,
        amount: Optional[Decimal] = None,
        description: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> Transaction:
        """Update transaction fields.

        The old effect is reversed before the new one is applied. When the
        timestamp moves to another second the transaction gets a new id (and
        possibly a new partition) and the old record is removed.

        Args:
            transaction_id: Transaction ID to update
            from_account: Optional new source account
            to_account: Optional new destination account
            amount: Optional new amount
            description: Optional new description
            timestamp: Optional new timestamp

        Returns:
            The updated transaction

        Raises:
            NotFoundError: If the transaction or an account doesn't exist
            ValidationError: If the updated transfer is invalid
        """
        with self.storage.lock:
            old = self.storage.ledger.get(transaction_id)
            if old is None:
                raise NotFoundError(transaction_not_found(transaction_id))

            from_account = old.from_account if from_account is None else from_account
            to_account = old.to_account if to_account is None else to_account
            amount = old.amount if amount is None else quantize(amount)
            description = old.description if description is None else description.strip()
            timestamp = old.timestamp if timestamp is None else timestamp.replace(microsecond=0)
            self.validate_transfer(from_account, to_account, amount, description)

            try:
                new_id = old.id if timestamp == old.timestamp else self._unique_id(timestamp)
                new = Transaction(
                    id=new_id,
                    from_account=from_account,
                    to_account=to_account,
                    amount=amount,
                    timestamp=timestamp,
                    description=description,
                )
                self._swap(old, new)
                self.reports.reconcile(new.id)
            except Exception:
                self.audit.record("UPDATE_TRANSACTION", transaction_id, False)
                raise

        logger.info("Updated transaction %s (now %s)", transaction_id, new.id)
        self.audit.record("UPDATE_TRANSACTION", new.id, True)
        return new

    def _swap(self, old: Transaction, new: Transaction) -> None:
        ledger = self.storage.ledger
        moved = new.id != old.id

        self.engine.reverse(old)
        try:
            ledger.append_or_replace(new)
            if moved:
                try:
                    ledger.delete(old.id)
                except Exception:
                    ledger.delete(new.id)
                    raise
        except Exception:
            self.engine.apply(old)
            raise

        try:
            self.engine.apply(new)
        except Exception:
            ledger.append_or_replace(old)
            if moved:
                ledger.delete(new.id)
            self.engine.apply(old)
            raise

    def delete_transaction(self, transaction_id: str) -> Transaction:
        """Delete a transaction and undo its effect on balances.

        Args:
            transaction_id: Transaction ID to delete

        Returns:
            The removed transaction

        Raises:
            NotFoundError: If transaction doesn't exist
        """
        with self.storage.lock:
            transaction = self.storage.ledger.get(transaction_id)
            if transaction is None:
                raise NotFoundError(transaction_not_found(transaction_id))

            try:
                self.engine.reverse(transaction)
                try:
                    self.storage.ledger.delete(transaction_id)
                except Exception:
                    self.engine.apply(transaction)
                    raise
                self.reports.reconcile(transaction_id)
            except Exception:
                self.audit.record("DELETE_TRANSACTION", transaction_id, False)
                raise

        logger.info("Deleted transaction %s", transaction_id)
        self.audit.record("DELETE_TRANSACTION", transaction_id, True)
        return transaction

    def list_transactions(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        account: Optional[str] = None,
    ) -> list[Transaction]:
        """List transactions with filters, newest first.

        Args:
            start_date: Optional start date filter (inclusive)
            end_date: Optional end date filter (inclusive)
            account: Optional account name on either side of the transfer

        Returns:
            List of transaction entities
        """
        transactions = self.storage.ledger.load_all()
        if start_date is not None:
            transactions = [t for t in transactions if t.date >= start_date]
        if end_date is not None:
            transactions = [t for t in transactions if t.date <= end_date]
        if account is not None:
            transactions = [
                t for t in transactions if account in (t.from_account, t.to_account)
            ]
        return newest_first(transactions)

    def list_period(self, period: str) -> list[Transaction]:
        """List the transactions of one ``YYYYMM`` partition, newest first."""
        try:
            validate_period_key(period)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        return newest_first(self.storage.ledger.load_period(period))
