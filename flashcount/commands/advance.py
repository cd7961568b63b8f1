"""Advance command: post recurring bills that have come due."""

import logging
from pathlib import Path

from rich.console import Console
from rich.table import Table

from flashcount.commands.common import exit_with_error, parse_now
from flashcount.config import load_settings
from flashcount.domain.errors import FlashCountError
from flashcount.domain.models import Direction, format_money
from flashcount.domain.recurring import advance_rules
from flashcount.store.backup import apply_advance_results, dump_backup, load_backup

logger = logging.getLogger(__name__)
console = Console()


def advance_command(backup: Path, now: str | None = None, dry_run: bool = False) -> None:
    """Catch up every active recurring rule in a backup file."""
    try:
        settings = load_settings()
        reference = parse_now(now)
        snapshot = load_backup(backup)

        results = advance_rules(
            snapshot.recurring_rules,
            reference,
            policy=settings.month_policy,
            max_iterations=settings.max_catchup,
        )
        postings = [p for r in results for p in r.postings]

        if not postings:
            console.print("[dim]No recurring rules are due[/dim]")
            return

        table = Table(title=f"Recurring postings up to {reference:%Y-%m-%d} ({len(postings)})")
        table.add_column("Date", style="cyan")
        table.add_column("Label", style="white")
        table.add_column("Amount", justify="right")

        for posting in postings:
            amount = format_money(posting.amount, settings.currency_symbol)
            if posting.direction is Direction.EXPENSE:
                amount_display = f"[red]-{amount}[/red]"
            else:
                amount_display = f"[green]+{amount}[/green]"
            table.add_row(posting.posted_date.isoformat(), posting.label, amount_display)

        console.print(table)

        for result in results:
            if result.changed:
                console.print(f"  {result.rule.title}: next due [cyan]{result.rule.next_due_date}[/cyan]")

        if dry_run:
            console.print("\n[yellow]Dry run: backup not modified[/yellow]")
            return

        dump_backup(apply_advance_results(snapshot, results, reference), backup, created_at=reference)
        logger.info("Wrote %d postings to %s", len(postings), backup)
        console.print(f"\n[green]✓[/green] {len(postings)} transaction(s) added to {backup}")

    except FlashCountError as e:
        exit_with_error(console, f"Error: {e}")
    except OSError as e:
        exit_with_error(console, f"Filesystem error: {e}")
