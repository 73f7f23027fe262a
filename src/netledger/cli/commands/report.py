"""Report commands."""

import click

from netledger.cli.error_handling import handle_domain_error
from netledger.cli.option_parsing import period_or_exit
from netledger.cli.services import get_services
from netledger.domain.entities import Record


def _echo_record(record: Record) -> None:
    click.echo(
        f"{record.date} | net worth ${record.net_worth:>14,.2f} | "
        f"assets ${record.assets:>12,.2f} | liabilities ${record.liabilities:>12,.2f} | "
        f"income ${record.income:>10,.2f} | expenses ${record.expenses:>10,.2f}"
    )


@click.group()
def report_group():
    """Net worth reports, budgets and consistency checks."""
    pass


@report_group.command("recalculate")
@click.pass_context
def recalculate(ctx):
    """Rebuild balances and every report from the full transaction history."""
    services = get_services(ctx)

    try:
        result = services.reports.recalculate_all()
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Recalculated {len(result.records)} report record(s)")
    if result.discrepancies:
        click.echo(f"Corrected {len(result.discrepancies)} account balance(s):")
        for name, (stored, replayed) in sorted(result.discrepancies.items()):
            click.echo(f"  {name}: ${stored:,.2f} -> ${replayed:,.2f}")


@report_group.command("verify")
@click.pass_context
def verify(ctx):
    """Check stored balances against the transaction history without changing anything."""
    services = get_services(ctx)

    try:
        services.engine.verify()
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo("Balances are consistent with the transaction history.")


@report_group.command("list")
@click.option("--count", type=int, default=12, show_default=True, help="Number of periods")
@click.pass_context
def list_reports(ctx, count: int):
    """Show the most recent net worth records."""
    services = get_services(ctx)

    records = services.reports.recent(count)
    if not records:
        click.echo("No reports found. Run 'netledger report recalculate'.")
        return

    for record in records:
        _echo_record(record)


@report_group.command("budget")
@click.option("--month", help="Month (e.g., 2025-01, 'last month'; default: this month)")
@click.pass_context
def budget(ctx, month: str | None):
    """Compare expense budgets with actual spending."""
    services = get_services(ctx)

    period = period_or_exit(ctx, month)
    try:
        lines = services.reports.budget_vs_actual(period)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not lines:
        click.echo("No expense accounts found.")
        return

    click.echo(f"\nBudget vs actual for {period[:4]}-{period[4:]}:")
    click.echo("-" * 80)
    for line in lines:
        click.echo(
            f"{line.account:25s} | budget ${line.budget:>10,.2f} | "
            f"actual ${line.actual:>10,.2f} | left ${line.remaining:>10,.2f} | "
            f"{line.percent_used}%"
        )


@report_group.command("dashboard")
@click.pass_context
def dashboard(ctx):
    """Show totals, this month's activity, budgets and upcoming bills."""
    services = get_services(ctx)

    try:
        summary = services.reports.dashboard()
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Net worth:    ${summary.net_worth:>14,.2f}")
    click.echo(f"  Assets:     ${summary.assets:>14,.2f}")
    click.echo(f"  Liabilities:${summary.liabilities:>14,.2f}")
    click.echo("\nThis month:")
    click.echo(f"  Income:     ${summary.month_income:>14,.2f}")
    click.echo(f"  Expenses:   ${summary.month_expenses:>14,.2f}")
    click.echo(f"  Savings:    ${summary.month_savings:>14,.2f} ({summary.savings_rate}%)")

    if summary.budget_lines:
        click.echo("\nBudgets:")
        for line in summary.budget_lines:
            click.echo(
                f"  {line.account:25s} ${line.actual:,.2f} of ${line.budget:,.2f}"
            )

    if summary.upcoming_bills:
        click.echo("\nUpcoming bills:")
        for bill in summary.upcoming_bills:
            click.echo(
                f"  [{bill.urgency}] {bill.account} due {bill.due_date} "
                f"({bill.days_left} day(s)), balance ${bill.balance:,.2f}"
            )


def register_commands(cli):
    """Register report commands with main CLI."""
    cli.add_command(report_group, name="report")
