"""Daily batch command."""

import time

import click

from netledger.cli.services import get_services
from netledger.domain.batch import DailyBatch


@click.command("batch")
@click.option("--once", is_flag=True, help="Run a single batch and exit")
@click.option(
    "--interval",
    type=click.FloatRange(min=1),
    help="Seconds between runs (default: --batch-interval of the main command)",
)
@click.pass_context
def run_batch(ctx, once: bool, interval: float | None):
    """Apply due recurrences and recompute reports, once or on a schedule."""
    services = get_services(ctx)
    job = DailyBatch(
        services.reports,
        services.recurrences,
        interval=interval or services.settings.batch_interval_seconds,
    )

    if once:
        if not job.run_once():
            click.echo("Error: Batch failed, see log for details", err=True)
            ctx.exit(1)
        click.echo("Batch completed")
        return

    click.echo(f"Running batch every {job.interval:g} seconds. Press Ctrl+C to stop.")
    job.run_once()
    job.start()
    try:
        while job.running:
            time.sleep(1)
    except KeyboardInterrupt:
        pass
    finally:
        job.stop()
    click.echo("Stopped")


def register_commands(cli):
    """Register batch command with main CLI."""
    cli.add_command(run_batch)
