"""Account management commands."""

import click

from netledger.cli.error_handling import handle_domain_error
from netledger.cli.option_parsing import amount_or_exit, date_or_exit
from netledger.cli.services import get_services
from netledger.domain.entities import AccountCategory

CATEGORY_HELP = "Category: Assets, Liabilities, Equity, Revenue or Expenses"


@click.group()
def account_group():
    """Manage accounts."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option("--category", required=True, help=CATEGORY_HELP)
@click.option(
    "--net-worth/--no-net-worth",
    "include_in_net_worth",
    default=None,
    help="Count the balance toward net worth (default: yes for assets and liabilities)",
)
@click.option("--opening-balance", help="Balance before the first transaction")
@click.option("--budget", help="Monthly budget (expense accounts)")
@click.option("--due-date", help="Next payment due date (liability accounts)")
@click.option("--last-payment", help="Date of the last payment")
@click.option(
    "--exclude-from-expenses",
    is_flag=True,
    help="Keep money entering this account out of expense totals",
)
@click.pass_context
def create_account(
    ctx,
    name: str,
    category: str,
    include_in_net_worth: bool | None,
    opening_balance: str | None,
    budget: str | None,
    due_date: str | None,
    last_payment: str | None,
    exclude_from_expenses: bool,
):
    """Create a new account.

    Examples:
        netledger account create "Savings" --category Assets --opening-balance 2500
        netledger account create "Groceries" --category Expenses --budget 400
        netledger account create "Visa" --category Liabilities --due-date 2025-02-10
    """
    services = get_services(ctx)

    try:
        parsed_category = AccountCategory.parse(category)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if include_in_net_worth is None:
        include_in_net_worth = parsed_category in (
            AccountCategory.ASSETS,
            AccountCategory.LIABILITIES,
        )

    kwargs = {}
    if opening_balance is not None:
        kwargs["opening_balance"] = amount_or_exit(ctx, opening_balance, transfer=False)
    if budget is not None:
        kwargs["budget"] = amount_or_exit(ctx, budget, transfer=False)
    if due_date is not None:
        kwargs["due_date"] = date_or_exit(ctx, due_date, "due date")
    if last_payment is not None:
        kwargs["last_payment_date"] = date_or_exit(ctx, last_payment, "last payment date")

    try:
        account = services.accounts.create_account(
            name,
            parsed_category,
            include_in_net_worth=include_in_net_worth,
            exclude_from_expenses=exclude_from_expenses,
            **kwargs,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Created account '{account.name}' ({account.category.value})")
    if account.opening_balance:
        click.echo(f"  Opening balance: ${account.opening_balance:,.2f}")


@account_group.command("list")
@click.option("--category", help=CATEGORY_HELP)
@click.pass_context
def list_accounts(ctx, category: str | None):
    """List accounts with their balances."""
    services = get_services(ctx)

    try:
        if category:
            accounts = services.accounts.list_by_category(category)
        else:
            accounts = services.accounts.list_accounts()
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 78)
    for acc in accounts:
        flags = []
        if acc.include_in_net_worth:
            flags.append("net worth")
        if acc.exclude_from_expenses:
            flags.append("excluded")
        if acc.budget:
            flags.append(f"budget ${acc.budget:,.2f}")
        if acc.due_date:
            flags.append(f"due {acc.due_date}")
        click.echo(
            f"{acc.name:25s} | {acc.category.value:11s} | ${acc.balance:>14,.2f}"
            + (f" | {', '.join(flags)}" if flags else "")
        )


@account_group.command("update")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option("--name", "new_name", help="New account name")
@click.option("--category", help=CATEGORY_HELP)
@click.option("--net-worth/--no-net-worth", "include_in_net_worth", default=None)
@click.option("--opening-balance", help="New opening balance")
@click.option("--budget", help="New monthly budget")
@click.option("--due-date", help="New due date")
@click.option("--clear-due-date", is_flag=True, help="Remove the due date")
@click.option("--last-payment", help="Date of the last payment")
@click.option(
    "--exclude-from-expenses/--include-in-expenses",
    "exclude_from_expenses",
    default=None,
    help="Keep money entering this account out of expense totals",
)
@click.pass_context
def update_account(
    ctx,
    name: str,
    new_name: str | None,
    category: str | None,
    include_in_net_worth: bool | None,
    opening_balance: str | None,
    budget: str | None,
    due_date: str | None,
    clear_due_date: bool,
    last_payment: str | None,
    exclude_from_expenses: bool | None,
) -> None:
    """Update an account.

    Updates only the fields that are provided. Renaming also rewrites every
    transaction and recurrence that references the account.

    Examples:
        netledger account update "Cash" --name "Wallet"
        netledger account update "Groceries" --budget 450
        netledger account update "Visa" --clear-due-date
    """
    services = get_services(ctx)

    try:
        services.accounts.update_account(
            name,
            new_name=new_name,
            category=category,
            include_in_net_worth=include_in_net_worth,
            opening_balance=(
                amount_or_exit(ctx, opening_balance, transfer=False)
                if opening_balance is not None
                else None
            ),
            budget=amount_or_exit(ctx, budget, transfer=False) if budget is not None else None,
            due_date=date_or_exit(ctx, due_date, "due date") if due_date is not None else None,
            last_payment_date=(
                date_or_exit(ctx, last_payment, "last payment date")
                if last_payment is not None
                else None
            ),
            exclude_from_expenses=exclude_from_expenses,
            clear_due_date=clear_due_date,
        )
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Updated account '{new_name or name}'")


@account_group.command("delete")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_account(ctx, name: str, yes: bool) -> None:
    """Delete an account.

    The account can only be deleted if no transaction or recurrence
    references it. Use 'transaction delete' and 'recurrence delete' to
    remove them first.
    """
    services = get_services(ctx)

    if services.accounts.get_account(name) is None:
        click.echo(f"Error: Account '{name}' not found", err=True)
        ctx.exit(1)

    if not yes and not click.confirm(f"Are you sure you want to delete account '{name}'?"):
        click.echo("Deletion cancelled.")
        return

    try:
        services.accounts.delete_account(name)
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Deleted account '{name}'")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
