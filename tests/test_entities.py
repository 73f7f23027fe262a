"""Tests for domain entities."""

import pytest
from datetime import date, datetime
from decimal import Decimal

from netledger.domain.entities import (
    Account,
    AccountCategory,
    BudgetLine,
    DashboardSummary,
    Record,
    Transaction,
)


class TestAccount:
    """Tests for Account entity."""

    def test_defaults(self):
        """Test a new account starts empty."""
        account = Account(name="Cash", category=AccountCategory.ASSETS)
        assert account.balance == Decimal("0.00")
        assert account.include_in_net_worth is False
        assert account.due_date is None

    def test_account_immutability(self):
        """Test that Account entities are immutable."""
        account = Account(name="Cash", category=AccountCategory.ASSETS)
        with pytest.raises(Exception):  # dataclass frozen raises FrozenInstanceError
            account.name = "Wallet"

    def test_counts_as_expense(self):
        """Test only non-excluded expense accounts count as expenses."""
        assert Account(name="Food", category=AccountCategory.EXPENSES).counts_as_expense
        assert not Account(
            name="Backup", category=AccountCategory.EXPENSES, exclude_from_expenses=True
        ).counts_as_expense
        assert not Account(name="Cash", category=AccountCategory.ASSETS).counts_as_expense


class TestAccountCategory:
    """Tests for category parsing."""

    @pytest.mark.parametrize(
        "label,expected",
        [
            ("Assets", AccountCategory.ASSETS),
            ("asset", AccountCategory.ASSETS),
            ("LIABILITY", AccountCategory.LIABILITIES),
            ("income", AccountCategory.REVENUE),
            (" Expenses ", AccountCategory.EXPENSES),
            ("equity", AccountCategory.EQUITY),
        ],
    )
    def test_parse(self, label, expected):
        assert AccountCategory.parse(label) == expected

    def test_parse_unknown(self):
        """Test unknown labels list the valid categories."""
        with pytest.raises(ValueError, match="Valid categories"):
            AccountCategory.parse("Savings")


class TestTransaction:
    """Tests for Transaction entity."""

    def test_date_and_sort_key(self):
        """Test the date and replay order derive from the timestamp."""
        t = Transaction(
            id="TRAN20250115093000",
            from_account="Salary",
            to_account="Cash",
            amount=Decimal("10.00"),
            timestamp=datetime(2025, 1, 15, 9, 30),
        )
        assert t.date == date(2025, 1, 15)
        assert t.sort_key == (datetime(2025, 1, 15, 9, 30), "TRAN20250115093000")


class TestDerivedFigures:
    """Tests for budget, record and dashboard arithmetic."""

    def test_budget_line(self):
        line = BudgetLine(account="Food", budget=Decimal("500.00"), actual=Decimal("50.00"))
        assert line.remaining == Decimal("450.00")
        assert line.percent_used == Decimal("10.00")

    def test_budget_line_without_budget(self):
        """Test an unbudgeted account reports zero percent used."""
        line = BudgetLine(account="Food", budget=Decimal("0.00"), actual=Decimal("20.00"))
        assert line.percent_used == Decimal("0.00")
        assert line.remaining == Decimal("-20.00")

    def test_record_savings(self):
        record = Record(
            date=date(2025, 1, 31),
            net_worth=Decimal("950.00"),
            assets=Decimal("950.00"),
            liabilities=Decimal("0.00"),
            income=Decimal("1000.00"),
            expenses=Decimal("50.00"),
        )
        assert record.savings == Decimal("950.00")

    def test_savings_rate(self):
        """Test the savings rate and its zero-income case."""
        summary = DashboardSummary(
            assets=Decimal("0"),
            liabilities=Decimal("0"),
            net_worth=Decimal("0"),
            month_income=Decimal("2000.00"),
            month_expenses=Decimal("500.00"),
            budget_lines=(),
            upcoming_bills=(),
            history=(),
        )
        assert summary.month_savings == Decimal("1500.00")
        assert summary.savings_rate == Decimal("75.00")

        idle = DashboardSummary(
            assets=Decimal("0"),
            liabilities=Decimal("0"),
            net_worth=Decimal("0"),
            month_income=Decimal("0"),
            month_expenses=Decimal("10.00"),
            budget_lines=(),
            upcoming_bills=(),
            history=(),
        )
        assert idle.savings_rate == Decimal("0.00")
