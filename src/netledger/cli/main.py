"""Main CLI entry point."""

import logging
from decimal import Decimal

import click

from netledger.cli.option_parsing import positive_amount_callback
from netledger.cli.services import build_services
from netledger.config import DAILY_BATCH_SECONDS, REPORT_GRANULARITIES, LedgerSettings
from netledger.domain.audit import default_audit_sink
from netledger.storage.factories import create_csv_storage
from netledger.utils.amount_parser import MAX_AMOUNT

# Import and register all commands at module level
from netledger.cli.commands import (
    account,
    add,
    batch,
    init_accounts,
    recurrence,
    report,
    transaction,
)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


@click.group()
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False),
    help="Ledger data directory (overrides NETLEDGER_DATA_DIR environment variable)",
    envvar="NETLEDGER_DATA_DIR",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    envvar="NETLEDGER_LOG_LEVEL",
    help="Logging verbosity",
)
@click.option(
    "--report-granularity",
    type=click.Choice(REPORT_GRANULARITIES, case_sensitive=False),
    default="month",
    show_default=True,
    envvar="NETLEDGER_REPORT_GRANULARITY",
    help="Period length of one report row",
)
@click.option(
    "--strict/--no-strict",
    default=False,
    envvar="NETLEDGER_STRICT",
    help="Fail recalculations that had to correct stored balances",
)
@click.option(
    "--batch-interval",
    type=click.FloatRange(min=0, min_open=True),
    default=DAILY_BATCH_SECONDS,
    show_default=True,
    envvar="NETLEDGER_BATCH_INTERVAL",
    help="Seconds between scheduled batch runs",
)
@click.option(
    "--max-amount",
    callback=positive_amount_callback,
    envvar="NETLEDGER_MAX_AMOUNT",
    help=f"Largest amount a single transaction may move (default: {MAX_AMOUNT:,})",
)
@click.pass_context
def cli(
    ctx,
    data_dir: str | None,
    log_level: str,
    report_granularity: str,
    strict: bool,
    batch_interval: float,
    max_amount: Decimal | None,
):
    """Netledger - personal double-entry money ledger.

    Record money moving between accounts, keep balances consistent with
    the transaction history and follow net worth month by month.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Open storage only when actually running a command (not when showing help)
    if ctx.invoked_subcommand is not None:
        settings = LedgerSettings(
            max_amount=max_amount or MAX_AMOUNT,
            report_granularity=report_granularity.lower(),
            strict_consistency=strict,
            batch_interval_seconds=batch_interval,
        )
        try:
            storage = create_csv_storage(data_dir)
        except (ValueError, OSError) as e:
            click.echo(f"Error: {e}", err=True)
            ctx.exit(1)
        audit = default_audit_sink(storage.data_dir / "audit.log")
        ctx.obj["services"] = build_services(storage, settings, audit)


# Register all commands
init_accounts.register_commands(cli)
account.register_commands(cli)
add.register_commands(cli)
transaction.register_commands(cli)
recurrence.register_commands(cli)
report.register_commands(cli)
batch.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
