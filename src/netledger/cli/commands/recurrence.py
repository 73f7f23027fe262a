"""Recurring transaction commands."""

import click

from netledger.cli.error_handling import handle_domain_error
from netledger.cli.option_parsing import amount_or_exit, date_or_exit
from netledger.cli.services import get_services
from netledger.domain.entities import Recurrence


def _echo_row(rec: Recurrence) -> None:
    click.echo(
        f"{rec.id:20s} | next {rec.next_date} (day {rec.day_of_month:2d}) | "
        f"{rec.from_account} -> {rec.to_account} | ${rec.amount:,.2f} | {rec.description}"
    )


@click.group()
def recurrence_group():
    """Manage monthly recurring transactions."""
    pass


@recurrence_group.command("create")
@click.option("--from", "from_account", required=True, help="Account the money leaves")
@click.option("--to", "to_account", required=True, help="Account the money enters")
@click.option("--amount", required=True, help="Positive amount")
@click.option("--day", "day_of_month", type=click.IntRange(1, 31), required=True,
              help="Day of the month (1-31; short months use their last day)")
@click.option("--description", default="", help="Description")
@click.option("--start", help="First due date (default: next occurrence from today)")
@click.pass_context
def create_recurrence(
    ctx,
    from_account: str,
    to_account: str,
    amount: str,
    day_of_month: int,
    description: str,
    start: str | None,
):
    """Create a monthly recurring transaction.

    Examples:
        netledger recurrence create --from "Bank Account" --to Rent --amount 1200 --day 1
        netledger recurrence create --from Salary --to "Bank Account" --amount 3000 --day 31
    """
    services = get_services(ctx)

    try:
        rec = services.recurrences.create_recurrence(
            from_account,
            to_account,
            amount_or_exit(ctx, amount),
            day_of_month,
            description,
            next_date=date_or_exit(ctx, start, "start date") if start else None,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Created recurrence {rec.id}, next due {rec.next_date}")


@recurrence_group.command("list")
@click.pass_context
def list_recurrences(ctx):
    """List recurring transactions by next due date."""
    services = get_services(ctx)

    recurrences = services.recurrences.list_recurrences()
    if not recurrences:
        click.echo("No recurrences found.")
        return

    for rec in recurrences:
        _echo_row(rec)


@recurrence_group.command("due")
@click.option("--on", "on_date", help="Reference date (default: today)")
@click.pass_context
def list_due(ctx, on_date: str | None):
    """List recurring transactions that are due."""
    services = get_services(ctx)

    due = services.recurrences.list_due(date_or_exit(ctx, on_date) if on_date else None)
    if not due:
        click.echo("Nothing is due.")
        return

    for rec in due:
        _echo_row(rec)


@recurrence_group.command("apply")
@click.argument("recurrence_id", required=False)
@click.option("--all-due", is_flag=True, help="Apply every recurrence that is due today")
@click.pass_context
def apply_recurrence(ctx, recurrence_id: str | None, all_due: bool):
    """Record one occurrence now and advance the next due date by a month."""
    services = get_services(ctx)

    if bool(recurrence_id) == all_due:
        click.echo("Error: Give either a RECURRENCE_ID or --all-due.", err=True)
        ctx.exit(1)

    if all_due:
        applied = services.recurrences.apply_due()
        click.echo(f"Applied {len(applied)} recurrence(s)")
        for txn in applied:
            click.echo(f"  {txn.id}: {txn.description} ${txn.amount:,.2f}")
        return

    try:
        txn = services.recurrences.apply_recurrence(recurrence_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    rec = services.recurrences.get_recurrence(recurrence_id)
    click.echo(f"Created transaction {txn.id}")
    if rec is not None:
        click.echo(f"Next due {rec.next_date}")


@recurrence_group.command("delete")
@click.argument("recurrence_id")
@click.pass_context
def delete_recurrence(ctx, recurrence_id: str):
    """Delete a recurring transaction. Recorded transactions are kept."""
    services = get_services(ctx)

    try:
        services.recurrences.delete_recurrence(recurrence_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Deleted recurrence {recurrence_id}")


def register_commands(cli):
    """Register recurrence commands with main CLI."""
    cli.add_command(recurrence_group, name="recurrence")
