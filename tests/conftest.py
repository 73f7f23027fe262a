"""Shared pytest fixtures for netledger tests."""

from datetime import datetime
from decimal import Decimal

import pytest

from netledger.cli.services import build_services
from netledger.config import LedgerSettings
from netledger.domain.audit import AuditSink
from netledger.storage.factories import create_csv_storage


class RecordingAuditSink(AuditSink):
    """Audit sink that keeps entries in memory."""

    def __init__(self):
        self.entries = []

    def write(self, action: str, resource: str, success: bool) -> None:
        self.entries.append((action, resource, success))


@pytest.fixture
def data_dir(tmp_path):
    """Return a fresh ledger data directory."""
    return tmp_path / "ledger-data"


@pytest.fixture
def storage(data_dir):
    """Create CSV storage in a temporary directory."""
    return create_csv_storage(str(data_dir))


@pytest.fixture
def settings():
    """Default ledger settings."""
    return LedgerSettings()


@pytest.fixture
def audit_sink():
    """Audit sink that records entries for assertions."""
    return RecordingAuditSink()


@pytest.fixture
def services(storage, settings, audit_sink):
    """All services wired to the temporary storage."""
    return build_services(storage, settings, audit_sink)


@pytest.fixture
def account_service(services):
    """Create an AccountService with temporary storage."""
    return services.accounts


@pytest.fixture
def transaction_service(services):
    """Create a TransactionService with temporary storage."""
    return services.transactions


@pytest.fixture
def report_service(services):
    """Create a ReportService with temporary storage."""
    return services.reports


@pytest.fixture
def recurrence_service(services):
    """Create a RecurrenceService with temporary storage."""
    return services.recurrences


@pytest.fixture
def engine(services):
    """Balance engine sharing the services' storage."""
    return services.engine


@pytest.fixture
def sample_accounts(account_service):
    """Create a small chart of accounts: Cash, Salary, Food, Credit Card."""
    account_service.create_account("Cash", "Assets", include_in_net_worth=True)
    account_service.create_account("Salary", "Revenue")
    account_service.create_account("Food", "Expenses", budget=Decimal("500"))
    account_service.create_account("Credit Card", "Liabilities", include_in_net_worth=True)
    return {acc.name: acc for acc in account_service.list_accounts()}


@pytest.fixture
def jan_15():
    """A fixed timestamp in January 2025."""
    return datetime(2025, 1, 15, 9, 30, 0)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
