"""Runtime settings for netledger.

The CLI binds every setting to a ``NETLEDGER_*`` environment variable through
its options. The data directory itself is resolved by
``netledger.storage.factories``.
"""

from dataclasses import dataclass
from decimal import Decimal

from netledger.utils.amount_parser import MAX_AMOUNT

MAX_NAME_LENGTH = 50
MAX_DESCRIPTION_LENGTH = 1000
RECURRING_SUFFIX = " (Recurring)"
DAILY_BATCH_SECONDS = 24 * 60 * 60
UPCOMING_BILL_DAYS = 30
REPORT_GRANULARITIES = ("month", "day")

# Accounts created by ``init-accounts`` on an empty ledger
DEFAULT_ACCOUNTS = [
    ("Cash", "Assets", True),
    ("Bank Account", "Assets", True),
    ("Credit Card", "Liabilities", True),
    ("Salary", "Revenue", False),
    ("Food & Dining", "Expenses", False),
    ("Transportation", "Expenses", False),
]


@dataclass(frozen=True)
class LedgerSettings:
    """Tunable behaviour of the ledger services."""

    max_amount: Decimal = MAX_AMOUNT
    report_granularity: str = "month"
    strict_consistency: bool = False
    batch_interval_seconds: float = DAILY_BATCH_SECONDS
    recurring_suffix: str = RECURRING_SUFFIX
