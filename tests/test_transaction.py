"""Tests for add and transaction commands."""

import pytest
from netledger.cli.main import cli


def run(cli_runner, data_dir, *args, **kwargs):
    return cli_runner.invoke(cli, ["--data-dir", str(data_dir), *args], **kwargs)


@pytest.fixture
def ledger(cli_runner, data_dir):
    """A data directory with the default accounts."""
    result = run(cli_runner, data_dir, "init-accounts")
    assert result.exit_code == 0
    return data_dir


def add(cli_runner, data_dir, *args):
    result = run(cli_runner, data_dir, "add", *args)
    assert result.exit_code == 0, result.output
    first_line = result.output.splitlines()[0]
    return first_line.split()[-1]


def test_add_transaction(cli_runner, ledger):
    """Test adding a transaction with date and time."""
    result = run(cli_runner, ledger, "add", "--from", "Salary", "--to", "Cash",
                 "--amount", "$1,000", "--date", "2025-01-15", "--time", "09:30",
                 "--description", "January pay")

    assert result.exit_code == 0
    assert "Created transaction TRAN20250115093000" in result.output
    assert "Amount: $1,000.00" in result.output
    assert "Description: January pay" in result.output
    assert (ledger / "ledger" / "transactions_202501.csv").exists()


def test_add_invalid_amount(cli_runner, ledger):
    """Test non-positive and unparseable amounts are rejected."""
    for amount in ["0", "-5", "lots"]:
        result = run(cli_runner, ledger, "add", "--from", "Salary", "--to", "Cash", "--amount", amount)
        assert result.exit_code == 1
        assert "Invalid amount" in result.output


def test_add_same_account(cli_runner, ledger):
    """Test source and destination must differ."""
    result = run(cli_runner, ledger, "add", "--from", "Cash", "--to", "Cash", "--amount", "5")
    assert result.exit_code == 1
    assert "must be different" in result.output


def test_add_unknown_account(cli_runner, ledger):
    """Test an unknown account is reported."""
    result = run(cli_runner, ledger, "add", "--from", "Cash", "--to", "Casino", "--amount", "5")
    assert result.exit_code == 1
    assert "Account 'Casino' not found" in result.output


def test_time_requires_date(cli_runner, ledger):
    """Test --time without --date is refused."""
    result = run(cli_runner, ledger, "add", "--from", "Salary", "--to", "Cash",
                 "--amount", "5", "--time", "10:00")
    assert result.exit_code == 1


def test_list_and_show(cli_runner, ledger):
    """Test listing newest first and showing one transaction."""
    first = add(cli_runner, ledger, "--from", "Salary", "--to", "Cash", "--amount", "100", "--date", "2025-01-15")
    second = add(cli_runner, ledger, "--from", "Cash", "--to", "Food & Dining", "--amount", "20",
                 "--date", "2025-02-01", "--description", "Dinner")

    result = run(cli_runner, ledger, "transaction", "list")
    assert result.exit_code == 0
    assert "Found 2 transaction(s)" in result.output
    assert result.output.index(second) < result.output.index(first)

    result = run(cli_runner, ledger, "transaction", "list", "--month", "2025-01")
    assert first in result.output
    assert second not in result.output

    result = run(cli_runner, ledger, "transaction", "list", "--account", "Food & Dining")
    assert "Found 1 transaction(s)" in result.output

    result = run(cli_runner, ledger, "transaction", "show", second)
    assert result.exit_code == 0
    assert "Description: Dinner" in result.output
    assert "To: Food & Dining" in result.output


def test_list_empty(cli_runner, ledger):
    """Test listing without transactions."""
    result = run(cli_runner, ledger, "transaction", "list")
    assert "No transactions found." in result.output


def test_update_transaction(cli_runner, ledger):
    """Test updating the amount and moving the date."""
    txn_id = add(cli_runner, ledger, "--from", "Salary", "--to", "Cash", "--amount", "100",
                 "--date", "2025-01-15")

    result = run(cli_runner, ledger, "transaction", "update", txn_id, "--amount", "150")
    assert result.exit_code == 0
    assert f"Updated transaction {txn_id}" in result.output

    result = run(cli_runner, ledger, "transaction", "update", txn_id, "--date", "2025-03-01")
    assert result.exit_code == 0
    assert "new ID: TRAN20250301000000" in result.output

    result = run(cli_runner, ledger, "account", "list")
    assert "150.00" in result.output


def test_delete_transaction(cli_runner, ledger):
    """Test deleting with confirmation and unknown ids."""
    txn_id = add(cli_runner, ledger, "--from", "Salary", "--to", "Cash", "--amount", "100")

    result = run(cli_runner, ledger, "transaction", "delete", txn_id, input="y\n")
    assert result.exit_code == 0
    assert f"Deleted transaction {txn_id}" in result.output

    result = run(cli_runner, ledger, "transaction", "delete", txn_id, "--yes")
    assert result.exit_code == 1
    assert "not found" in result.output
