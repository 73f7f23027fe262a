"""Transaction management commands."""

import click

from netledger.cli.error_handling import handle_domain_error
from netledger.cli.option_parsing import (
    amount_or_exit,
    date_or_exit,
    period_or_exit,
    timestamp_or_exit,
)
from netledger.cli.services import get_services
from netledger.domain.entities import Transaction


def _echo_row(txn: Transaction) -> None:
    click.echo(
        f"{txn.id:22s} | {txn.timestamp:%Y-%m-%d %H:%M} | "
        f"{txn.from_account:>18s} -> {txn.to_account:18s} | "
        f"${txn.amount:>12,.2f} | {txn.description}"
    )


@click.group()
def transaction_group():
    """Manage transactions."""
    pass


@transaction_group.command("update")
@click.argument("transaction_id")
@click.option("--from", "from_account", help="New source account")
@click.option("--to", "to_account", help="New destination account")
@click.option("--amount", help="New amount")
@click.option("--description", help="New description")
@click.option("--date", "day", help="New date (YYYY-MM-DD or relative)")
@click.option("--time", "clock", help="New time of day; requires --date")
@click.pass_context
def update_transaction(
    ctx,
    transaction_id: str,
    from_account: str | None,
    to_account: str | None,
    amount: str | None,
    description: str | None,
    day: str | None,
    clock: str | None,
) -> None:
    """Update a transaction.

    Updates only the fields that are provided. Changing the date gives the
    transaction a new ID.

    Examples:
        netledger transaction update TRAN20250115093000 --amount 75
        netledger transaction update TRAN20250115093000 --to Transportation
    """
    services = get_services(ctx)

    if clock and not day:
        click.echo("Error: --time requires --date", err=True)
        ctx.exit(1)

    try:
        updated = services.transactions.update_transaction(
            transaction_id,
            from_account=from_account,
            to_account=to_account,
            amount=amount_or_exit(ctx, amount) if amount is not None else None,
            description=description,
            timestamp=timestamp_or_exit(ctx, day, clock) if day is not None else None,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    if updated.id != transaction_id:
        click.echo(f"Updated transaction {transaction_id} (new ID: {updated.id})")
    else:
        click.echo(f"Updated transaction {transaction_id}")


@transaction_group.command("delete")
@click.argument("transaction_id")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_transaction(ctx, transaction_id: str, yes: bool) -> None:
    """Delete a transaction and reverse its effect on balances."""
    services = get_services(ctx)

    txn = services.transactions.get_transaction(transaction_id)
    if txn is None:
        click.echo(f"Error: Transaction {transaction_id} not found", err=True)
        ctx.exit(1)

    if not yes:
        _echo_row(txn)
        if not click.confirm("Are you sure you want to delete this transaction?"):
            click.echo("Deletion cancelled.")
            return

    try:
        services.transactions.delete_transaction(transaction_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Deleted transaction {transaction_id}")


@transaction_group.command("list")
@click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'yesterday')")
@click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today')")
@click.option("--month", help="Only one month (e.g., 2025-01, 'last month')")
@click.option("--account", help="Account on either side of the transfer")
@click.option("--limit", type=int, help="Show at most this many transactions")
@click.pass_context
def list_transactions(
    ctx,
    start_date: str | None,
    end_date: str | None,
    month: str | None,
    account: str | None,
    limit: int | None,
):
    """View transactions, newest first."""
    services = get_services(ctx)

    if month and (start_date or end_date):
        click.echo("Error: --month cannot be combined with --start-date or --end-date.", err=True)
        ctx.exit(1)

    if month:
        try:
            transactions = services.transactions.list_period(period_or_exit(ctx, month))
        except ValueError as e:
            handle_domain_error(ctx, e)
        if account:
            transactions = [
                t for t in transactions if account in (t.from_account, t.to_account)
            ]
    else:
        transactions = services.transactions.list_transactions(
            start_date=date_or_exit(ctx, start_date, "start date") if start_date else None,
            end_date=date_or_exit(ctx, end_date, "end date") if end_date else None,
            account=account,
        )

    if limit is not None:
        transactions = transactions[:limit]

    if not transactions:
        click.echo("No transactions found.")
        return

    click.echo(f"\nFound {len(transactions)} transaction(s):")
    click.echo("-" * 110)
    for txn in transactions:
        _echo_row(txn)


@transaction_group.command("show")
@click.argument("transaction_id")
@click.pass_context
def show_transaction(ctx, transaction_id: str):
    """Show one transaction."""
    services = get_services(ctx)

    txn = services.transactions.get_transaction(transaction_id)
    if txn is None:
        click.echo(f"Error: Transaction {transaction_id} not found", err=True)
        ctx.exit(1)

    click.echo(f"Transaction ID: {txn.id}")
    click.echo(f"  Date: {txn.timestamp:%Y-%m-%d %H:%M:%S}")
    click.echo(f"  From: {txn.from_account}")
    click.echo(f"  To: {txn.to_account}")
    click.echo(f"  Amount: ${txn.amount:,.2f}")
    if txn.description:
        click.echo(f"  Description: {txn.description}")


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
