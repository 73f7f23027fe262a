"""Add transaction command."""

import click

from netledger.cli.error_handling import handle_domain_error
from netledger.cli.option_parsing import amount_or_exit, timestamp_or_exit
from netledger.cli.services import get_services


@click.command("add")
@click.option("--from", "from_account", required=True, help="Account the money leaves")
@click.option("--to", "to_account", required=True, help="Account the money enters")
@click.option("--amount", required=True, help="Positive amount (e.g., 123.45 or $1,200)")
@click.option("--description", default="", help="Transaction description")
@click.option(
    "--date",
    "day",
    help="Transaction date (YYYY-MM-DD or relative like 'today', 'yesterday'; default: now)",
)
@click.option("--time", "clock", help="Time of day (e.g., 14:30); requires --date")
@click.pass_context
def add_transaction(
    ctx,
    from_account: str,
    to_account: str,
    amount: str,
    description: str,
    day: str | None,
    clock: str | None,
):
    """Record money moving from one account to another.

    Examples:
        netledger add --from Salary --to Cash --amount 1000 --description "January pay"
        netledger add --from Cash --to "Food & Dining" --amount 50 --date yesterday
    """
    services = get_services(ctx)

    if clock and not day:
        click.echo("Error: --time requires --date", err=True)
        ctx.exit(1)

    txn_amount = amount_or_exit(ctx, amount)
    timestamp = timestamp_or_exit(ctx, day, clock)

    try:
        transaction = services.transactions.create_transaction(
            from_account,
            to_account,
            txn_amount,
            description,
            timestamp=timestamp,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Created transaction {transaction.id}")
    click.echo(f"  From: {transaction.from_account}")
    click.echo(f"  To: {transaction.to_account}")
    click.echo(f"  Date: {transaction.timestamp:%Y-%m-%d %H:%M:%S}")
    click.echo(f"  Amount: ${transaction.amount:,.2f}")
    if transaction.description:
        click.echo(f"  Description: {transaction.description}")


def register_commands(cli):
    """Register add command with main CLI."""
    cli.add_command(add_transaction)
