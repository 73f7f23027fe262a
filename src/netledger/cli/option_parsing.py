"""CLI helpers that parse option values or exit with an error."""

from datetime import date, datetime
from decimal import Decimal

import click

from netledger.utils.amount_parser import parse_amount, parse_transfer_amount
from netledger.utils.date_parser import parse_date, parse_period, parse_timestamp


def date_or_exit(ctx: click.Context, value: str, label: str = "date") -> date:
    """Parse a date option or exit with an error."""
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def timestamp_or_exit(ctx: click.Context, day: str | None, clock: str | None) -> datetime:
    """Parse --date/--time options into a timestamp or exit with an error."""
    try:
        return parse_timestamp(day, clock)
    except ValueError as e:
        click.echo(f"Error: Invalid date or time: {e}", err=True)
        ctx.exit(1)


def amount_or_exit(ctx: click.Context, value: str, transfer: bool = True) -> Decimal:
    """Parse an amount option or exit with an error.

    Transfer amounts must be positive and within the configured maximum.
    """
    try:
        if transfer:
            return parse_transfer_amount(value, ctx.obj["services"].settings.max_amount)
        return parse_amount(value)
    except ValueError as e:
        click.echo(f"Error: Invalid amount: {e}", err=True)
        ctx.exit(1)


def period_or_exit(ctx: click.Context, value: str | None) -> str:
    """Parse a month option (default: this month) into a ``YYYYMM`` key."""
    try:
        return parse_period(value or "this month")
    except ValueError as e:
        click.echo(f"Error: Invalid month: {e}", err=True)
        ctx.exit(1)


def positive_amount_callback(ctx: click.Context, param: click.Parameter, value: str | None) -> Decimal | None:
    """Click callback turning an amount option into a positive Decimal."""
    if value is None:
        return None
    try:
        amount = parse_amount(value)
    except ValueError as e:
        raise click.BadParameter(str(e))
    if amount <= 0:
        raise click.BadParameter("must be positive")
    return amount
