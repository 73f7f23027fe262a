"""Account domain service."""

import logging
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Optional, Union

from netledger.config import DEFAULT_ACCOUNTS, LedgerSettings, MAX_NAME_LENGTH
from netledger.domain.audit import AuditSink, NullAuditSink
from netledger.domain.entities import Account, AccountCategory
from netledger.domain.errors import (
    AlreadyExistsError,
    ConflictError,
    DependencyError,
    NotFoundError,
    ValidationError,
    account_delete_blocked,
    account_exists,
    account_not_found,
)
from netledger.domain.report import ReportService
from netledger.storage.base import Storage
from netledger.utils.amount_parser import quantize

logger = logging.getLogger(__name__)


def _validate_name(name: str) -> str:
    name = name.strip()
    if not name:
        raise ValidationError("Account name cannot be empty")
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(f"Account name must be at most {MAX_NAME_LENGTH} characters")
    return name


def _category(value: Union[str, AccountCategory]) -> AccountCategory:
    if isinstance(value, AccountCategory):
        return value
    try:
        return AccountCategory.parse(value)
    except ValueError as e:
        raise ValidationError(str(e)) from e


def _budget(value: Decimal) -> Decimal:
    value = quantize(value)
    if value < 0:
        raise ValidationError("Budget cannot be negative")
    return value


class AccountService:
    """Service for managing accounts."""

    def __init__(
        self,
        storage: Storage,
        reports: Optional[ReportService] = None,
        settings: Optional[LedgerSettings] = None,
        audit: Optional[AuditSink] = None,
    ):
        """Initialize account service.

        Args:
            storage: Storage handle
            reports: Report service used to recompute after balance-affecting changes
            settings: Ledger settings
            audit: Audit sink for mutation outcomes
        """
        self.storage = storage
        self.settings = settings or LedgerSettings()
        self.audit = audit or NullAuditSink()
        self.reports = reports or ReportService(storage, settings=self.settings)

    def create_account(
        self,
        name: str,
        category: Union[str, AccountCategory],
        include_in_net_worth: bool = False,
        opening_balance: Decimal = Decimal("0.00"),
        budget: Decimal = Decimal("0.00"),
        due_date: Optional[date] = None,
        last_payment_date: Optional[date] = None,
        exclude_from_expenses: bool = False,
    ) -> Account:
        """Create a new account.

        The account starts with its balance equal to the opening balance.

        Args:
            name: Unique account name
            category: Category or category label
            include_in_net_worth: Whether the balance counts toward net worth
            opening_balance: Balance before any transaction
            budget: Monthly budget (expense accounts)
            due_date: Next payment due date (liability accounts)
            last_payment_date: Date of the last payment
            exclude_from_expenses: Keep this account out of expense totals

        Returns:
            The created account

        Raises:
            ValidationError: If the name or category is invalid
            AlreadyExistsError: If account name already exists
        """
        name = _validate_name(name)
        opening_balance = quantize(opening_balance)
        account = Account(
            name=name,
            category=_category(category),
            include_in_net_worth=include_in_net_worth,
            balance=opening_balance,
            opening_balance=opening_balance,
            budget=_budget(budget),
            due_date=due_date,
            last_payment_date=last_payment_date,
            exclude_from_expenses=exclude_from_expenses,
        )
        try:
            self.storage.accounts.add(account)
        except Exception:
            self.audit.record("CREATE_ACCOUNT", name, False)
            raise

        logger.info("Created account %s (%s)", name, account.category.value)
        self.audit.record("CREATE_ACCOUNT", name, True)
        return account

    def get_account(self, name: str) -> Optional[Account]:
        """Get account by name.

        Args:
            name: Account name

        Returns:
            Account entity or None if not found
        """
        return self.storage.accounts.get(name)

    def list_accounts(self) -> list[Account]:
        """List all accounts.

        Returns:
            List of account entities
        """
        return self.storage.accounts.list_accounts()

    def list_by_category(self, category: Union[str, AccountCategory]) -> list[Account]:
        """List accounts in one category."""
        return self.storage.accounts.list_by_category(_category(category))

    def update_account(
        self,
        name: str,
        new_name: Optional[str] = None,
        category: Optional[Union[str, AccountCategory]] = None,
        include_in_net_worth: Optional[bool] = None,
        opening_balance: Optional[Decimal] = None,
        budget: Optional[Decimal] = None,
        due_date: Optional[date] = None,
        last_payment_date: Optional[date] = None,
        exclude_from_expenses: Optional[bool] = None,
        clear_due_date: bool = False,
    ) -> Account:
        """Update account fields.

        Renaming rewrites every transaction and recurrence that references
        the account. Changing the opening balance shifts the balance by the
        same delta.

        Args:
            name: Account to update
            new_name: Optional new name
            category: Optional new category
            include_in_net_worth: Optional new net-worth flag
            opening_balance: Optional new opening balance
            budget: Optional new budget
            due_date: Optional new due date
            last_payment_date: Optional new last payment date
            exclude_from_expenses: Optional new expense exclusion flag
            clear_due_date: If True, clear the due date (due_date must be None)

        Returns:
            The updated account

        Raises:
            NotFoundError: If account not found
            AlreadyExistsError: If the new name already exists
            ValidationError: If a new value is invalid
        """
        if clear_due_date and due_date is not None:
            raise ValidationError("Cannot set both due_date and clear_due_date")

        with self.storage.lock:
            account = self.storage.accounts.get(name)
            if account is None:
                raise NotFoundError(account_not_found(name))

            changes = {}
            if new_name is not None and new_name.strip() != name:
                new_name = _validate_name(new_name)
                if self.storage.accounts.exists(new_name):
                    raise AlreadyExistsError(account_exists(new_name))
                changes["name"] = new_name
            if category is not None:
                changes["category"] = _category(category)
            if include_in_net_worth is not None:
                changes["include_in_net_worth"] = include_in_net_worth
            if opening_balance is not None:
                opening_balance = quantize(opening_balance)
                changes["opening_balance"] = opening_balance
                changes["balance"] = account.balance + opening_balance - account.opening_balance
            if budget is not None:
                changes["budget"] = _budget(budget)
            if clear_due_date:
                changes["due_date"] = None
            elif due_date is not None:
                changes["due_date"] = due_date
            if last_payment_date is not None:
                changes["last_payment_date"] = last_payment_date
            if exclude_from_expenses is not None:
                changes["exclude_from_expenses"] = exclude_from_expenses

            updated = replace(account, **changes)
            try:
                self.storage.accounts.replace(name, updated)
                if "name" in changes:
                    self._rename_references(account, updated)
                if {"name", "opening_balance", "category", "include_in_net_worth",
                        "exclude_from_expenses"} & changes.keys():
                    self.reports.reconcile(updated.name)
            except Exception:
                self.audit.record("UPDATE_ACCOUNT", name, False)
                raise

        logger.info("Updated account %s", updated.name)
        self.audit.record("UPDATE_ACCOUNT", updated.name, True)
        return updated

    def _rename_references(self, old: Account, new: Account) -> None:
        try:
            transactions = self.storage.ledger.rename_account(old.name, new.name)
            recurrences = self.storage.recurrences.rename_account(old.name, new.name)
        except Exception:
            logger.error("Rename of %s to %s failed, restoring references", old.name, new.name)
            self.storage.ledger.rename_account(new.name, old.name)
            self.storage.recurrences.rename_account(new.name, old.name)
            self.storage.accounts.replace(new.name, old)
            raise
        logger.info(
            "Renamed %s to %s in %d transaction(s) and %d recurrence(s)",
            old.name,
            new.name,
            transactions,
            recurrences,
        )

    def _reference_counts(self, name: str) -> tuple[int, int]:
        """Count transactions and recurrences naming an account.

        Every partition is read strictly: an unreadable one raises
        StorageError rather than hiding references.
        """
        ledger = self.storage.ledger
        transaction_count = sum(
            1
            for period in ledger.list_periods()
            for t in ledger.load_period(period)
            if name in (t.from_account, t.to_account)
        )
        recurrence_count = sum(
            1
            for r in self.storage.recurrences.list_recurrences()
            if name in (r.from_account, r.to_account)
        )
        return transaction_count, recurrence_count

    def delete_account(self, name: str) -> None:
        """Delete an account.

        Args:
            name: Account name to delete

        Raises:
            NotFoundError: If account not found
            DependencyError: If transactions or recurrences reference the account
            StorageError: If a ledger partition cannot be read
        """
        with self.storage.lock:
            if not self.storage.accounts.exists(name):
                raise NotFoundError(account_not_found(name))

            try:
                transaction_count, recurrence_count = self._reference_counts(name)
            except Exception:
                self.audit.record("DELETE_ACCOUNT", name, False)
                raise
            if transaction_count > 0 or recurrence_count > 0:
                self.audit.record("DELETE_ACCOUNT", name, False)
                raise DependencyError(
                    account_delete_blocked(name, transaction_count, recurrence_count)
                )

            try:
                self.storage.accounts.delete(name)
            except Exception:
                self.audit.record("DELETE_ACCOUNT", name, False)
                raise

        logger.info("Deleted account %s", name)
        self.audit.record("DELETE_ACCOUNT", name, True)

    def initialize_defaults(self, force: bool = False) -> list[Account]:
        """Create the default account set.

        Args:
            force: Add the missing defaults even when accounts already exist

        Returns:
            The accounts that were created

        Raises:
            ConflictError: If accounts exist and force is False
        """
        with self.storage.lock:
            if self.storage.accounts.list_accounts() and not force:
                raise ConflictError(
                    "Accounts already exist. Use --force to add the missing defaults."
                )
            created = []
            for name, category, include in DEFAULT_ACCOUNTS:
                if self.storage.accounts.exists(name):
                    continue
                created.append(
                    self.create_account(name, category, include_in_net_worth=include)
                )
        return created
