"""CLI entry point for flashcount."""

from pathlib import Path

import typer

from flashcount.commands.admin import config_command, init_command
from flashcount.commands.advance import advance_command
from flashcount.commands.assets import assets_command
from flashcount.commands.budget import budget_command
from flashcount.commands.merge import merge_command
from flashcount.commands.report import report_command
from flashcount.logging_config import configure_logging

app = typer.Typer(
    name="flashcount",
    help="FlashCount - recurring bills, budgets and spending reports from a ledger backup",
    add_completion=False,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """FlashCount - recurring bills, budgets and spending reports from a ledger backup."""
    configure_logging(verbose)


@app.command(name="init")
def init(
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite existing config"),
) -> None:
    """Create the default configuration file."""
    init_command(force)


@app.command(name="config")
def config() -> None:
    """Show the settings in effect."""
    config_command()


@app.command()
def advance(
    backup: Path,
    now: str = typer.Option(None, "--now", help="Reference time, ISO-8601 (default: now)"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show postings without writing the backup"),
) -> None:
    """Post every recurring bill that has come due since it last ran."""
    advance_command(backup, now, dry_run)


@app.command()
def budget(
    backup: Path,
    month: str = typer.Option(None, "--month", help="Month to analyze (YYYY-MM, default: current)"),
    ledger: str = typer.Option(None, "--ledger", help="Only budgets of this ledger id"),
) -> None:
    """Project month-end spending against your budgets."""
    budget_command(backup, month, ledger)


@app.command(name="report")
def report(
    backup: Path,
    period: str = typer.Option("monthly", "--period", "-p", help="'weekly' or 'monthly'"),
    now: str = typer.Option(None, "--now", help="Reference time, ISO-8601 (default: now)"),
    ledger: str = typer.Option(None, "--ledger", help="Only transactions of this ledger id"),
) -> None:
    """Show your spending report for this week or month."""
    report_command(backup, period, now, ledger)


@app.command()
def assets(
    backup: Path,
    all: bool = typer.Option(False, "--all", "-a", help="Include sold and archived assets"),
    now: str = typer.Option(None, "--now", help="Reference time, ISO-8601 (default: now)"),
) -> None:
    """Show depreciation of your physical assets and your net worth."""
    assets_command(backup, all, now)


@app.command()
def merge(
    backup: Path,
    incoming: Path,
    dry_run: bool = typer.Option(False, "--dry-run", help="Show what would be imported without writing the backup"),
) -> None:
    """Import entries from another backup that this one does not have yet."""
    merge_command(backup, incoming, dry_run)


if __name__ == "__main__":
    app()
