"""Report generation domain service."""

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Mapping, Optional, Sequence

from netledger.config import LedgerSettings, UPCOMING_BILL_DAYS
from netledger.domain.audit import AuditSink, NullAuditSink
from netledger.domain.balance import BalanceEngine, period_marker, replay, replay_periods
from netledger.domain.entities import (
    Account,
    AccountCategory,
    BudgetLine,
    DashboardSummary,
    Record,
    ReplayResult,
    ReportGranularity,
    Transaction,
    UpcomingBill,
)
from netledger.storage.base import Storage
from netledger.utils.ids import period_bounds, period_key

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


def snapshot(
    accounts: Sequence[Account],
    transactions: Iterable[Transaction],
    marker: date,
    balances: Optional[Mapping[str, Decimal]] = None,
) -> Record:
    """Build the net-worth record for one period.

    Net worth sums every account flagged for inclusion. Liability balances
    are signed: a credit card that paid for something holds a negative
    balance and so lowers net worth. Income counts money leaving Revenue
    accounts; expenses count money entering Expenses accounts that are not
    excluded from the expense rollup.

    Args:
        accounts: Accounts, used for category and inclusion flags
        transactions: Transactions of the period
        marker: Period key of the record
        balances: Balances to use instead of the accounts' stored balances
    """
    by_name = {acc.name: acc for acc in accounts}

    def balance_of(acc: Account) -> Decimal:
        return balances.get(acc.name, acc.balance) if balances is not None else acc.balance

    net_worth = assets = liabilities = ZERO
    for acc in accounts:
        if not acc.include_in_net_worth:
            continue
        value = balance_of(acc)
        net_worth += value
        if acc.category == AccountCategory.ASSETS:
            assets += value
        elif acc.category == AccountCategory.LIABILITIES:
            liabilities += value

    income = expenses = ZERO
    for t in transactions:
        source = by_name.get(t.from_account)
        target = by_name.get(t.to_account)
        if source is not None and source.category == AccountCategory.REVENUE:
            income += t.amount
        if target is not None and target.counts_as_expense:
            expenses += t.amount

    return Record(
        date=marker,
        net_worth=net_worth,
        assets=assets,
        liabilities=liabilities,
        income=income,
        expenses=expenses,
    )


class ReportService:
    """Service for net-worth history, budgets and dashboard totals."""

    def __init__(
        self,
        storage: Storage,
        engine: Optional[BalanceEngine] = None,
        settings: Optional[LedgerSettings] = None,
        audit: Optional[AuditSink] = None,
    ):
        """Initialize report service.

        Args:
            storage: Storage handle
            engine: Balance engine (created from storage if omitted)
            settings: Ledger settings
            audit: Audit sink for recompute outcomes
        """
        self.storage = storage
        self.settings = settings or LedgerSettings()
        self.engine = engine or BalanceEngine(storage, self.settings)
        self.audit = audit or NullAuditSink()

    @property
    def granularity(self) -> ReportGranularity:
        return ReportGranularity(self.settings.report_granularity)

    def upsert(self, record: Record) -> None:
        """Store a record, replacing any record with the same period key."""
        self.storage.reports.upsert(record)

    def recalculate_all(self, strict: Optional[bool] = None) -> ReplayResult:
        """Replay the full history into balances and one record per period.

        Each record reflects every transaction up to and including its
        period. The report table is rewritten as a whole and the replayed
        balances become the stored balances.

        Args:
            strict: Overrides ``settings.strict_consistency`` when given

        Returns:
            ReplayResult with balances, records and healed discrepancies

        Raises:
            InconsistentStateError: In strict mode, after healing any drift
        """
        with self.storage.lock:
            accounts = self.storage.accounts.list_accounts()
            transactions = self.storage.ledger.load_all()

            records = [
                snapshot(accounts, period_transactions, marker, balances)
                for marker, balances, period_transactions in replay_periods(
                    accounts, transactions, self.granularity
                )
            ]
            balances = replay(accounts, transactions)

            try:
                self.storage.reports.replace_all(records)
                discrepancies = self.engine.commit(balances, strict=strict)
            except Exception:
                self.audit.record("RECALCULATE_FAILED", "all", False)
                raise

        logger.info(
            "Recalculated %d report record(s) from %d transaction(s)",
            len(records),
            len(transactions),
        )
        self.audit.record("RECALCULATE", "all", True)
        return ReplayResult(
            balances=balances, records=tuple(records), discrepancies=discrepancies
        )

    def reconcile(self, resource: str) -> ReplayResult:
        """Recompute after a mutation that is already saved.

        Drift found here is healed, logged and audited but never raised, so
        the mutation that triggered it still reports success.
        """
        result = self.recalculate_all(strict=False)
        if result.discrepancies:
            logger.warning(
                "Healed balance drift on %s while saving %s",
                ", ".join(sorted(result.discrepancies)),
                resource,
            )
            self.audit.record("HEAL_DRIFT", resource, True)
        return result

    def refresh_period(self, day: date) -> Optional[Record]:
        """Recompute and store only the record for the period containing ``day``.

        Returns:
            The stored record, or None if the period has no transactions
        """
        marker = period_marker(day, self.granularity)
        with self.storage.lock:
            accounts = self.storage.accounts.list_accounts()
            transactions = [
                t for t in self.storage.ledger.load_all()
                if period_marker(t.date, self.granularity) <= marker
            ]
            for period, balances, period_transactions in replay_periods(
                accounts, transactions, self.granularity
            ):
                if period == marker:
                    record = snapshot(accounts, period_transactions, marker, balances)
                    self.upsert(record)
                    return record
        return None

    def list_records(self) -> list[Record]:
        """All stored records, oldest first."""
        return self.storage.reports.list_records()

    def recent(self, count: int) -> list[Record]:
        """The ``count`` most recent records, oldest first."""
        records = self.list_records()
        return records[-count:] if count > 0 else []

    def get(self, period: str) -> Optional[Record]:
        """Stored monthly record for a ``YYYYMM`` period."""
        _, last = period_bounds(period)
        return self.storage.reports.get(last)

    def budget_vs_actual(self, period: str) -> list[BudgetLine]:
        """Compare each expense account's budget with its spending in a month.

        Accounts excluded from the expense rollup get no line.
        """
        with self.storage.lock:
            accounts = self.storage.accounts.list_by_category(AccountCategory.EXPENSES)
            transactions = self.storage.ledger.load_period(period)

        spent = {acc.name: ZERO for acc in accounts if acc.counts_as_expense}
        for t in transactions:
            if t.to_account in spent:
                spent[t.to_account] += t.amount

        return [
            BudgetLine(account=acc.name, budget=acc.budget, actual=spent[acc.name])
            for acc in accounts
            if acc.counts_as_expense
        ]

    def upcoming_bills(
        self, today: Optional[date] = None, within_days: int = UPCOMING_BILL_DAYS
    ) -> list[UpcomingBill]:
        """Liability accounts due within ``within_days``, soonest first."""
        today = today or date.today()
        horizon = today + timedelta(days=within_days)
        bills = []
        for acc in self.storage.accounts.list_by_category(AccountCategory.LIABILITIES):
            if acc.due_date is None or not today <= acc.due_date <= horizon:
                continue
            days_left = (acc.due_date - today).days
            if days_left < 3:
                urgency = "high"
            elif days_left < 7:
                urgency = "medium"
            else:
                urgency = "normal"
            bills.append(
                UpcomingBill(
                    account=acc.name,
                    due_date=acc.due_date,
                    balance=acc.balance,
                    days_left=days_left,
                    urgency=urgency,
                )
            )
        return sorted(bills, key=lambda b: b.days_left)

    def dashboard(self, today: Optional[date] = None, history: int = 12) -> DashboardSummary:
        """Current totals, this month's activity, budgets, bills and history."""
        today = today or date.today()
        period = period_key(today)
        with self.storage.lock:
            accounts = self.storage.accounts.list_accounts()
            month = snapshot(accounts, self.storage.ledger.load_period(period), today)
            budget_lines = self.budget_vs_actual(period)
            bills = self.upcoming_bills(today)
            records = self.recent(history)

        return DashboardSummary(
            assets=month.assets,
            liabilities=month.liabilities,
            net_worth=month.net_worth,
            month_income=month.income,
            month_expenses=month.expenses,
            budget_lines=tuple(budget_lines),
            upcoming_bills=tuple(bills),
            history=tuple(records),
        )
