"""Domain layer for netledger application."""

__all__ = [
    "AccountService",
    "BalanceEngine",
    "DailyBatch",
    "RecurrenceService",
    "ReportService",
    "TransactionService",
]

_SERVICES = {
    "AccountService": "netledger.domain.account",
    "BalanceEngine": "netledger.domain.balance",
    "DailyBatch": "netledger.domain.batch",
    "RecurrenceService": "netledger.domain.recurrence",
    "ReportService": "netledger.domain.report",
    "TransactionService": "netledger.domain.transaction",
}


# Services import the storage layer, which imports domain.entities, so they
# are resolved lazily to keep this package importable from storage.
def __getattr__(name):
    if name in _SERVICES:
        from importlib import import_module
        return getattr(import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
