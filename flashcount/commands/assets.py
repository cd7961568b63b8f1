"""Assets command: depreciation of physical assets and account net worth."""

from pathlib import Path

from rich.console import Console
from rich.table import Table

from flashcount.commands.common import exit_with_error, parse_now
from flashcount.config import load_settings
from flashcount.domain.assets import (
    actual_daily_cost,
    current_value,
    daily_cost,
    days_held,
    days_to_target,
    progress_to_target,
    summarize_net_worth,
)
from flashcount.domain.errors import FlashCountError
from flashcount.domain.models import format_money
from flashcount.store.backup import load_backup

console = Console()


def assets_command(backup: Path, all: bool = False, now: str | None = None) -> None:
    """Show physical asset depreciation and net worth."""
    try:
        settings = load_settings()
        reference = parse_now(now)
        snapshot = load_backup(backup)
        symbol = settings.currency_symbol

        assets = [a for a in snapshot.physical_assets if all or not a.is_archived]
        if assets:
            table = Table(title=f"Physical assets ({len(assets)})")
            table.add_column("Name", style="cyan")
            table.add_column("Category", style="magenta")
            table.add_column("Days", justify="right")
            table.add_column("Price", justify="right")
            table.add_column("Value now", justify="right")
            table.add_column("Per day", justify="right")
            table.add_column("Target", justify="right")
            table.add_column("Progress", justify="right")

            for asset in assets:
                remaining = days_to_target(asset, reference)
                if asset.sold_price is not None:
                    per_day = f"{format_money(actual_daily_cost(asset, reference), symbol)} [dim](sold)[/dim]"
                else:
                    per_day = format_money(daily_cost(asset, reference), symbol)
                progress = f"{progress_to_target(asset, reference) * 100:.0f}%"
                if remaining:
                    progress = f"{progress} [dim]({remaining}d left)[/dim]"

                table.add_row(
                    asset.name,
                    asset.category.value,
                    str(days_held(asset, reference)),
                    format_money(asset.purchase_price, symbol),
                    format_money(current_value(asset, reference), symbol),
                    per_day,
                    format_money(asset.target_daily_cost, symbol),
                    progress,
                )
            console.print(table)
        else:
            console.print("[dim]No physical assets[/dim]")

        if snapshot.accounts:
            worth = summarize_net_worth(snapshot.accounts)
            console.print(f"\n  [bold]Assets:[/bold]      {format_money(worth.total_assets, symbol)}")
            console.print(f"  [bold]Liabilities:[/bold] {format_money(worth.total_liabilities, symbol)}")
            style = "green" if worth.net_worth >= 0 else "red"
            console.print(f"  [bold]Net worth:[/bold]   [{style}]{format_money(worth.net_worth, symbol)}[/{style}]")

    except FlashCountError as e:
        exit_with_error(console, f"Error: {e}")
    except OSError as e:
        exit_with_error(console, f"Filesystem error: {e}")
