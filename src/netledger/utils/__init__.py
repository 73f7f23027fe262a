"""Utility functions for netledger."""

from netledger.utils.date_parser import parse_date, parse_period, parse_timestamp
from netledger.utils.amount_parser import parse_amount, parse_transfer_amount

__all__ = ["parse_date", "parse_period", "parse_timestamp", "parse_amount", "parse_transfer_amount"]
