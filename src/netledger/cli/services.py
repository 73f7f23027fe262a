"""Wiring of the ledger services for CLI commands."""

from dataclasses import dataclass

import click

from netledger.config import LedgerSettings
from netledger.domain.account import AccountService
from netledger.domain.audit import AuditSink
from netledger.domain.balance import BalanceEngine
from netledger.domain.recurrence import RecurrenceService
from netledger.domain.report import ReportService
from netledger.domain.transaction import TransactionService
from netledger.storage.base import Storage


@dataclass
class Services:
    """Services sharing one storage handle, settings and audit sink."""

    storage: Storage
    settings: LedgerSettings
    engine: BalanceEngine
    reports: ReportService
    accounts: AccountService
    transactions: TransactionService
    recurrences: RecurrenceService


def build_services(storage: Storage, settings: LedgerSettings, audit: AuditSink) -> Services:
    """Create every service over one storage handle."""
    engine = BalanceEngine(storage, settings)
    reports = ReportService(storage, engine=engine, settings=settings, audit=audit)
    transactions = TransactionService(storage, reports=reports, settings=settings, audit=audit)
    return Services(
        storage=storage,
        settings=settings,
        engine=engine,
        reports=reports,
        accounts=AccountService(storage, reports=reports, settings=settings, audit=audit),
        transactions=transactions,
        recurrences=RecurrenceService(
            storage, transactions=transactions, settings=settings, audit=audit
        ),
    )


def get_services(ctx: click.Context) -> Services:
    """Services created by the top-level command group."""
    return ctx.obj["services"]
