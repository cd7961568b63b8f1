"""Merge command: import another backup's new entries into a backup file."""

import logging
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.table import Table

from flashcount.commands.common import exit_with_error
from flashcount.domain.errors import FlashCountError
from flashcount.store.backup import dump_backup, import_backup, load_backup

logger = logging.getLogger(__name__)
console = Console()


def merge_command(backup: Path, incoming: Path, dry_run: bool = False) -> None:
    """Add entries from incoming that backup does not have yet."""
    try:
        base = load_backup(backup)
        merged, result = import_backup(base, incoming)

        table = Table(title=f"Import from {incoming.name}")
        table.add_column("Kind", style="cyan")
        table.add_column("Imported", justify="right")
        for label, count in [
            ("Categories", result.categories),
            ("Ledgers", result.ledgers),
            ("Transactions", result.transactions),
            ("Accounts", result.accounts),
            ("Physical assets", result.physical_assets),
            ("Recurring rules", result.recurring_rules),
            ("Budgets", result.budgets),
        ]:
            table.add_row(label, str(count) if count else "[dim]0[/dim]")
        console.print(table)
        if result.skipped:
            console.print(f"[yellow]Skipped {result.skipped} existing or unsupported entries[/yellow]")

        if result.imported == 0:
            console.print("[dim]No new data[/dim]")
            return

        if dry_run:
            console.print("\n[yellow]Dry run: backup not modified[/yellow]")
            return

        dump_backup(merged, backup, created_at=datetime.now())
        logger.info("Merged %s into %s: %s", incoming, backup, result.summary.replace("\n", "; "))
        console.print(f"\n[green]✓[/green] {result.imported} entries added to {backup}")

    except FlashCountError as e:
        exit_with_error(console, f"Error: {e}")
    except OSError as e:
        exit_with_error(console, f"Filesystem error: {e}")
