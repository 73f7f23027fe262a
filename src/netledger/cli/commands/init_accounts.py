"""Initialize default accounts."""

import click

from netledger.cli.error_handling import handle_domain_error
from netledger.cli.services import get_services


@click.command("init-accounts")
@click.option("--force", is_flag=True, help="Add missing defaults even if accounts exist")
@click.pass_context
def init_accounts(ctx, force: bool):
    """Initialize the ledger with a default set of accounts."""
    services = get_services(ctx)

    try:
        created = services.accounts.initialize_defaults(force=force)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not created:
        click.echo("All default accounts already exist.")
        return

    click.echo(f"Created {len(created)} account(s):")
    for acc in created:
        click.echo(f"  {acc.name} ({acc.category.value})")


def register_commands(cli):
    """Register init-accounts command with main CLI."""
    cli.add_command(init_accounts)
