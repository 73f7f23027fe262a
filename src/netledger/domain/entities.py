"""Domain model entities for netledger.

These are pure data classes representing ledger concepts, independent of the
on-disk CSV layout. Stores convert rows to and from these entities through
``netledger.storage.mappers``.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional


class AccountCategory(str, Enum):
    """Closed set of account categories."""

    ASSETS = "Assets"
    LIABILITIES = "Liabilities"
    EQUITY = "Equity"
    REVENUE = "Revenue"
    EXPENSES = "Expenses"

    @classmethod
    def parse(cls, label: str) -> "AccountCategory":
        """Parse a category label, accepting the short upper-case aliases.

        Raises:
            ValueError: If the label is not a known category
        """
        key = label.strip().upper()
        category = _CATEGORY_ALIASES.get(key)
        if category is None:
            valid = ", ".join(c.value for c in cls)
            raise ValueError(f"Unknown account category '{label}'. Valid categories: {valid}")
        return category


_CATEGORY_ALIASES = {
    "ASSETS": AccountCategory.ASSETS,
    "ASSET": AccountCategory.ASSETS,
    "LIABILITIES": AccountCategory.LIABILITIES,
    "LIABILITY": AccountCategory.LIABILITIES,
    "EQUITY": AccountCategory.EQUITY,
    "REVENUE": AccountCategory.REVENUE,
    "INCOME": AccountCategory.REVENUE,
    "EXPENSES": AccountCategory.EXPENSES,
    "EXPENSE": AccountCategory.EXPENSES,
}


class ReportGranularity(str, Enum):
    """Period length of one report row."""

    MONTH = "month"
    DAY = "day"


@dataclass(frozen=True)
class Account:
    """Ledger account domain entity."""

    name: str
    category: AccountCategory
    include_in_net_worth: bool = False
    balance: Decimal = Decimal("0.00")
    opening_balance: Decimal = Decimal("0.00")
    budget: Decimal = Decimal("0.00")
    due_date: Optional[date] = None
    last_payment_date: Optional[date] = None
    exclude_from_expenses: bool = False

    @property
    def counts_as_expense(self) -> bool:
        """Whether money flowing into this account is an expense."""
        return self.category == AccountCategory.EXPENSES and not self.exclude_from_expenses


@dataclass(frozen=True)
class Transaction:
    """A movement of ``amount`` from one account to another."""

    id: str
    from_account: str
    to_account: str
    amount: Decimal
    timestamp: datetime
    description: str = ""

    @property
    def date(self) -> date:
        """Logical transaction date."""
        return self.timestamp.date()

    @property
    def sort_key(self) -> tuple[datetime, str]:
        """Total order used for replay: timestamp, then id."""
        return (self.timestamp, self.id)


@dataclass(frozen=True)
class Recurrence:
    """Template that materializes one transaction per month."""

    id: str
    from_account: str
    to_account: str
    amount: Decimal
    day_of_month: int
    next_date: date
    description: str = ""


@dataclass(frozen=True)
class Record:
    """Net-worth snapshot for one period, keyed by ``date``."""

    date: date
    net_worth: Decimal
    assets: Decimal
    liabilities: Decimal
    income: Decimal
    expenses: Decimal

    @property
    def savings(self) -> Decimal:
        """Income left after expenses in the period."""
        return self.income - self.expenses


@dataclass(frozen=True)
class BudgetLine:
    """Budget-versus-actual comparison for one expense account."""

    account: str
    budget: Decimal
    actual: Decimal

    @property
    def remaining(self) -> Decimal:
        return self.budget - self.actual

    @property
    def percent_used(self) -> Decimal:
        if self.budget <= 0:
            return Decimal("0.00")
        return (self.actual / self.budget * 100).quantize(Decimal("0.01"))


@dataclass(frozen=True)
class UpcomingBill:
    """Liability account with a due date in the near future."""

    account: str
    due_date: date
    balance: Decimal
    days_left: int
    urgency: str


@dataclass(frozen=True)
class ReplayResult:
    """Outcome of a full recompute.

    ``discrepancies`` maps account name to ``(stored, replayed)`` for every
    account whose incrementally maintained balance differed from replay.
    """

    balances: dict[str, Decimal]
    records: tuple[Record, ...] = ()
    discrepancies: dict[str, tuple[Decimal, Decimal]] = field(default_factory=dict)

    @property
    def consistent(self) -> bool:
        return not self.discrepancies


@dataclass(frozen=True)
class DashboardSummary:
    """Current totals and month activity for the dashboard view."""

    assets: Decimal
    liabilities: Decimal
    net_worth: Decimal
    month_income: Decimal
    month_expenses: Decimal
    budget_lines: tuple[BudgetLine, ...]
    upcoming_bills: tuple[UpcomingBill, ...]
    history: tuple[Record, ...]

    @property
    def month_savings(self) -> Decimal:
        return self.month_income - self.month_expenses

    @property
    def savings_rate(self) -> Decimal:
        """Percentage of income saved this month; zero without income."""
        if self.month_income == 0:
            return Decimal("0.00")
        return (self.month_savings / self.month_income * 100).quantize(Decimal("0.01"))
