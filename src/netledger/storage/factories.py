"""Storage factory functions for creating ledger storage handles."""

import os
from pathlib import Path
from typing import Optional

from netledger.storage.base import Storage
from netledger.storage.csv_store import (
    CSVAccountStore,
    CSVRecurrenceStore,
    CSVReportStore,
    CSVTransactionStore,
)
from netledger.storage.lock import LedgerLock

LOCK_FILE_NAME = ".lock"


def resolve_data_dir(data_dir: Optional[str] = None) -> Path:
    """Resolve the ledger data directory.

    Args:
        data_dir: Explicit directory. If None, checks the NETLEDGER_DATA_DIR
            environment variable, then defaults to ~/.netledger

    Returns:
        Path of the data directory (created if missing)
    """
    if data_dir is None:
        data_dir = os.environ.get("NETLEDGER_DATA_DIR")

    if data_dir is None:
        path = Path.home() / ".netledger"
    else:
        path = Path(data_dir).expanduser()

    path.mkdir(parents=True, exist_ok=True)
    return path


def create_csv_storage(data_dir: Optional[str] = None) -> Storage:
    """Create a CSV-backed storage handle.

    All stores of the handle share one LedgerLock, backed by the
    ``.lock`` file of the data directory so that processes sharing the
    directory exclude each other.

    Args:
        data_dir: Path to the data directory (see resolve_data_dir)

    Returns:
        Storage bundling the ledger, account, recurrence and report stores
    """
    path = resolve_data_dir(data_dir)
    lock = LedgerLock(path / LOCK_FILE_NAME)
    return Storage(
        data_dir=path,
        lock=lock,
        ledger=CSVTransactionStore(path / "ledger", lock),
        accounts=CSVAccountStore(path / "accounts.csv", lock),
        recurrences=CSVRecurrenceStore(path / "recurrences.csv", lock),
        reports=CSVReportStore(path / "reports.csv", lock),
    )
