"""Mapper functions to convert between domain entities and CSV rows.

This layer isolates the file layout, so the column order of a table can
change without touching the domain services.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Optional

from netledger.domain import entities as domain
from netledger.utils.amount_parser import quantize

ACCOUNT_HEADER = [
    "name",
    "category",
    "includeInNetWorth",
    "balance",
    "openingBalance",
    "budget",
    "dueDate",
    "lastPaymentDate",
    "excludeFromExpenses",
]
TRANSACTION_HEADER = ["id", "date", "time", "from", "to", "description", "amount"]
RECURRENCE_HEADER = ["id", "from", "to", "description", "amount", "nextDate", "dayOfMonth"]
RECORD_HEADER = ["date", "netWorth", "assets", "liabilities", "income", "expenses"]


def _money(value: str) -> Decimal:
    try:
        return quantize(Decimal(value.strip() or "0"))
    except InvalidOperation:
        raise ValueError(f"Invalid amount '{value}'")


def _format_money(value: Decimal) -> str:
    return f"{value:.2f}"


def _flag(value: str) -> bool:
    return value.strip().lower() in ("yes", "true", "1")


def _format_flag(value: bool) -> str:
    return "yes" if value else "no"


def _optional_date(value: str) -> Optional[date]:
    value = value.strip()
    return date.fromisoformat(value) if value else None


def _format_optional_date(value: Optional[date]) -> str:
    return value.isoformat() if value else ""


def _cell(row: list[str], index: int) -> str:
    return row[index] if index < len(row) else ""


def account_from_row(row: list[str]) -> domain.Account:
    """Convert an accounts.csv row to an Account entity.

    Raises:
        ValueError: If the row is malformed
    """
    if len(row) < 4:
        raise ValueError(f"Account row has {len(row)} columns, expected at least 4")
    return domain.Account(
        name=row[0],
        category=domain.AccountCategory.parse(row[1]),
        include_in_net_worth=_flag(row[2]),
        balance=_money(row[3]),
        opening_balance=_money(_cell(row, 4)),
        budget=_money(_cell(row, 5)),
        due_date=_optional_date(_cell(row, 6)),
        last_payment_date=_optional_date(_cell(row, 7)),
        exclude_from_expenses=_flag(_cell(row, 8)),
    )


def account_to_row(account: domain.Account) -> list[str]:
    """Convert an Account entity to an accounts.csv row."""
    return [
        account.name,
        account.category.value,
        _format_flag(account.include_in_net_worth),
        _format_money(account.balance),
        _format_money(account.opening_balance),
        _format_money(account.budget),
        _format_optional_date(account.due_date),
        _format_optional_date(account.last_payment_date),
        _format_flag(account.exclude_from_expenses),
    ]


def transaction_from_row(row: list[str]) -> domain.Transaction:
    """Convert a ledger partition row to a Transaction entity.

    Raises:
        ValueError: If the row is malformed
    """
    if len(row) < 7:
        raise ValueError(f"Transaction row has {len(row)} columns, expected 7")
    timestamp = datetime.combine(
        date.fromisoformat(row[1]), datetime.strptime(row[2], "%H:%M:%S").time()
    )
    return domain.Transaction(
        id=row[0],
        timestamp=timestamp,
        from_account=row[3],
        to_account=row[4],
        description=row[5],
        amount=_money(row[6]),
    )


def transaction_to_row(transaction: domain.Transaction) -> list[str]:
    """Convert a Transaction entity to a ledger partition row."""
    return [
        transaction.id,
        transaction.timestamp.date().isoformat(),
        transaction.timestamp.strftime("%H:%M:%S"),
        transaction.from_account,
        transaction.to_account,
        transaction.description,
        _format_money(transaction.amount),
    ]


def recurrence_from_row(row: list[str]) -> domain.Recurrence:
    """Convert a recurrences.csv row to a Recurrence entity.

    Raises:
        ValueError: If the row is malformed
    """
    if len(row) < 7:
        raise ValueError(f"Recurrence row has {len(row)} columns, expected 7")
    return domain.Recurrence(
        id=row[0],
        from_account=row[1],
        to_account=row[2],
        description=row[3],
        amount=_money(row[4]),
        next_date=date.fromisoformat(row[5]),
        day_of_month=int(row[6]),
    )


def recurrence_to_row(recurrence: domain.Recurrence) -> list[str]:
    """Convert a Recurrence entity to a recurrences.csv row."""
    return [
        recurrence.id,
        recurrence.from_account,
        recurrence.to_account,
        recurrence.description,
        _format_money(recurrence.amount),
        recurrence.next_date.isoformat(),
        str(recurrence.day_of_month),
    ]


def record_from_row(row: list[str]) -> domain.Record:
    """Convert a reports.csv row to a Record entity.

    Raises:
        ValueError: If the row is malformed
    """
    if len(row) < 6:
        raise ValueError(f"Report row has {len(row)} columns, expected 6")
    return domain.Record(
        date=date.fromisoformat(row[0]),
        net_worth=_money(row[1]),
        assets=_money(row[2]),
        liabilities=_money(row[3]),
        income=_money(row[4]),
        expenses=_money(row[5]),
    )


def record_to_row(record: domain.Record) -> list[str]:
    """Convert a Record entity to a reports.csv row."""
    return [
        record.date.isoformat(),
        _format_money(record.net_worth),
        _format_money(record.assets),
        _format_money(record.liabilities),
        _format_money(record.income),
        _format_money(record.expenses),
    ]
