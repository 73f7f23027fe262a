"""Storage layer for netledger."""

from netledger.storage.base import Storage
from netledger.storage.factories import create_csv_storage

__all__ = ["Storage", "create_csv_storage"]
