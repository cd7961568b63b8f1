"""Admin commands for creating and showing configuration."""

from rich.console import Console
from rich.table import Table

from flashcount.commands.common import exit_with_error
from flashcount.config import create_default_config, get_config_path, load_settings
from flashcount.dates import WEEKDAY_NAMES
from flashcount.domain.errors import FlashCountError

console = Console()


def init_command(force: bool = False) -> None:
    """Write the default config file."""
    config_path = get_config_path()

    if config_path.exists() and not force:
        console.print("[red]Initialization failed:[/red]", style="bold")
        console.print(f"  Config already exists: {config_path}")
        console.print("\n[yellow]Use 'flashcount init --force' to overwrite[/yellow]")
        exit_with_error(console, "Nothing written")

    try:
        console.print(f"[cyan]Creating config file at {config_path}...[/cyan]")
        create_default_config(config_path)
    except OSError as e:
        exit_with_error(console, f"Filesystem error: {e}")

    console.print("[green]✓[/green] Config file created (permissions: 600)")


def config_command() -> None:
    """Show the settings in effect."""
    config_path = get_config_path()

    try:
        settings = load_settings(config_path)
    except (FlashCountError, OSError) as e:
        exit_with_error(console, f"Config error: {e}")

    source = str(config_path) if config_path.exists() else "defaults (no config file)"
    table = Table(title=f"Settings from {source}")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    table.add_row("calendar.week_start", WEEKDAY_NAMES[settings.week_start])
    table.add_row("calendar.month_policy", settings.month_policy.value)
    table.add_row("recurring.max_catchup", str(settings.max_catchup))
    table.add_row("report.uncategorized_label", settings.uncategorized_label)
    table.add_row("report.top_share_threshold", f"{settings.thresholds.top_share:.2f}")
    table.add_row("report.period_change_threshold", f"{settings.thresholds.period_change:.2f}")
    table.add_row("report.category_change_threshold", f"{settings.thresholds.category_change:.2f}")
    table.add_row("display.currency_symbol", settings.currency_symbol)

    console.print(table)
