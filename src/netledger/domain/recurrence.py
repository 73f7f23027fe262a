"""Recurring transaction scheduler."""

import logging
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from dateutil.relativedelta import relativedelta

from netledger.config import LedgerSettings, MAX_DESCRIPTION_LENGTH
from netledger.domain.audit import AuditSink, NullAuditSink
from netledger.domain.entities import Recurrence, Transaction
from netledger.domain.errors import (
    NotFoundError,
    StorageError,
    ValidationError,
    recurrence_not_found,
)
from netledger.domain.transaction import TransactionService
from netledger.storage.base import Storage
from netledger.utils.amount_parser import quantize
from netledger.utils.ids import recurrence_id_for

logger = logging.getLogger(__name__)


def next_occurrence(day_of_month: int, on_or_after: date) -> date:
    """First date on or after ``on_or_after`` falling on ``day_of_month``.

    Months shorter than ``day_of_month`` use their last day.
    """
    candidate = on_or_after + relativedelta(day=day_of_month)
    if candidate < on_or_after:
        candidate = on_or_after + relativedelta(months=1, day=day_of_month)
    return candidate


def advance(recurrence: Recurrence) -> date:
    """The occurrence one month after ``recurrence.next_date``.

    The day is clamped to the end of short months and returns to
    ``day_of_month`` in the month after (Jan 31, Feb 28, Mar 31).
    """
    return recurrence.next_date + relativedelta(months=1, day=recurrence.day_of_month)


class RecurrenceService:
    """Service for recurring transaction templates."""

    def __init__(
        self,
        storage: Storage,
        transactions: Optional[TransactionService] = None,
        settings: Optional[LedgerSettings] = None,
        audit: Optional[AuditSink] = None,
    ):
        """Initialize recurrence service.

        Args:
            storage: Storage handle
            transactions: Transaction service used to materialize occurrences
            settings: Ledger settings
            audit: Audit sink for mutation outcomes
        """
        self.storage = storage
        self.settings = settings or LedgerSettings()
        self.audit = audit or NullAuditSink()
        self.transactions = transactions or TransactionService(storage, settings=self.settings)

    def _unique_id(self, now: datetime) -> str:
        base = recurrence_id_for(now)
        recurrence_id = base
        sequence = 1
        while self.storage.recurrences.get(recurrence_id) is not None:
            sequence += 1
            recurrence_id = f"{base}-{sequence}"
        return recurrence_id

    def create_recurrence(
        self,
        from_account: str,
        to_account: str,
        amount: Decimal,
        day_of_month: int,
        description: str = "",
        next_date: Optional[date] = None,
        today: Optional[date] = None,
    ) -> Recurrence:
        """Create a monthly recurring transaction template.

        Args:
            from_account: Account the money leaves
            to_account: Account the money enters
            amount: Positive amount
            day_of_month: Day the transaction recurs on (1-31)
            description: Description; applied transactions get a suffix
            next_date: First due date (defaults to the next occurrence on or after today)
            today: Reference date for the default next date

        Returns:
            The stored template

        Raises:
            ValidationError: If the template is invalid
            NotFoundError: If either account does not exist
        """
        if not 1 <= day_of_month <= 31:
            raise ValidationError("Day of month must be between 1 and 31")
        amount = quantize(amount)
        description = description.strip()
        if len(description) + len(self.settings.recurring_suffix) > MAX_DESCRIPTION_LENGTH:
            raise ValidationError(
                f"Description must be at most "
                f"{MAX_DESCRIPTION_LENGTH - len(self.settings.recurring_suffix)} characters"
            )
        self.transactions.validate_transfer(from_account, to_account, amount, description)

        with self.storage.lock:
            recurrence = Recurrence(
                id=self._unique_id(datetime.now()),
                from_account=from_account,
                to_account=to_account,
                amount=amount,
                day_of_month=day_of_month,
                next_date=next_date or next_occurrence(day_of_month, today or date.today()),
                description=description,
            )
            try:
                self.storage.recurrences.save(recurrence)
            except Exception:
                self.audit.record("CREATE_RECURRENCE", recurrence.id, False)
                raise

        logger.info("Created recurrence %s due %s", recurrence.id, recurrence.next_date)
        self.audit.record("CREATE_RECURRENCE", recurrence.id, True)
        return recurrence

    def get_recurrence(self, recurrence_id: str) -> Optional[Recurrence]:
        """Get template by ID."""
        return self.storage.recurrences.get(recurrence_id)

    def list_recurrences(self) -> list[Recurrence]:
        """List templates ordered by next due date."""
        return sorted(
            self.storage.recurrences.list_recurrences(), key=lambda r: (r.next_date, r.id)
        )

    def list_due(self, on: Optional[date] = None) -> list[Recurrence]:
        """Templates whose next date is on or before ``on`` (default today)."""
        on = on or date.today()
        return [r for r in self.list_recurrences() if r.next_date <= on]

    def delete_recurrence(self, recurrence_id: str) -> None:
        """Delete a template.

        Raises:
            NotFoundError: If the template does not exist
        """
        if not self.storage.recurrences.delete(recurrence_id):
            self.audit.record("DELETE_RECURRENCE", recurrence_id, False)
            raise NotFoundError(recurrence_not_found(recurrence_id))
        logger.info("Deleted recurrence %s", recurrence_id)
        self.audit.record("DELETE_RECURRENCE", recurrence_id, True)

    def apply_recurrence(
        self, recurrence_id: str, now: Optional[datetime] = None
    ) -> Transaction:
        """Materialize one occurrence and advance the template by a month.

        The transaction is dated ``now`` and its description carries the
        recurring suffix. If the advanced template cannot be saved the error
        is logged and the transaction stays recorded.

        Args:
            recurrence_id: Template ID
            now: Timestamp of the created transaction (defaults to now)

        Returns:
            The created transaction

        Raises:
            NotFoundError: If the template or one of its accounts does not exist
        """
        with self.storage.lock:
            recurrence = self.storage.recurrences.get(recurrence_id)
            if recurrence is None:
                raise NotFoundError(recurrence_not_found(recurrence_id))

            try:
                transaction = self.transactions.create_transaction(
                    recurrence.from_account,
                    recurrence.to_account,
                    recurrence.amount,
                    recurrence.description + self.settings.recurring_suffix,
                    timestamp=now,
                )
            except Exception:
                self.audit.record("APPLY_RECURRENCE", recurrence_id, False)
                raise

            advanced = replace(recurrence, next_date=advance(recurrence))
            try:
                self.storage.recurrences.save(advanced)
            except StorageError as e:
                logger.error(
                    "Recurrence %s applied as %s but next date was not advanced: %s",
                    recurrence_id,
                    transaction.id,
                    e,
                )
                self.audit.record("APPLY_RECURRENCE", recurrence_id, False)
                return transaction

        logger.info(
            "Applied recurrence %s as %s, next due %s",
            recurrence_id,
            transaction.id,
            advanced.next_date,
        )
        self.audit.record("APPLY_RECURRENCE", recurrence_id, True)
        return transaction

    def apply_due(
        self, on: Optional[date] = None, now: Optional[datetime] = None
    ) -> list[Transaction]:
        """Apply every template due on or before ``on``, once each.

        A template that fails is logged and skipped so the others still run.
        """
        applied = []
        for recurrence in self.list_due(on):
            try:
                applied.append(self.apply_recurrence(recurrence.id, now=now))
            except ValueError as e:
                logger.error("Could not apply recurrence %s: %s", recurrence.id, e)
        return applied
