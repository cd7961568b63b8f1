"""Budget command: project month-end spending against each budget."""

from datetime import date, datetime, timedelta
from pathlib import Path

from rich.console import Console
from rich.table import Table

from flashcount.commands.common import exit_with_error
from flashcount.config import load_settings
from flashcount.dates import month_range
from flashcount.domain.budget import BudgetAlertLevel, analyze_budget
from flashcount.domain.errors import FlashCountError
from flashcount.domain.models import Month, format_money
from flashcount.store.backup import load_backup

console = Console()

ALERT_STYLES = {
    BudgetAlertLevel.HEALTHY: "green",
    BudgetAlertLevel.WARNING: "yellow",
    BudgetAlertLevel.DANGER: "red",
}


def reference_date_for(since: date, until: date, today: date) -> date:
    """Pick the day to analyze: today inside the month, else the month's last day."""
    if since <= today < until:
        return today
    return until - timedelta(days=1)


def budget_command(backup: Path, month: str | None = None, ledger: str | None = None) -> None:
    """Analyze every budget for a month."""
    try:
        settings = load_settings()
        target_month = Month(month) if month else Month(datetime.now().strftime("%Y-%m"))
        try:
            since, until, label = month_range(target_month)
        except ValueError:
            exit_with_error(console, f"Invalid month {target_month!r}, expected YYYY-MM")
        reference = reference_date_for(since, until, date.today())

        snapshot = load_backup(backup)
        category_names = {c.id: c.name for c in snapshot.categories}
        ledger_names = {ledger_.id: ledger_.name for ledger_ in snapshot.ledgers}

        budgets = [
            b
            for b in snapshot.budgets
            if b.year == since.year and b.month == since.month and (ledger is None or b.ledger_id == ledger)
        ]
        if not budgets:
            console.print(f"[yellow]No budgets set for {label}[/yellow]")
            return

        symbol = settings.currency_symbol
        table = Table(title=f"Budgets - {label} (day {reference.day})")
        table.add_column("Budget", style="cyan")
        table.add_column("Limit", justify="right")
        table.add_column("Spent", justify="right")
        table.add_column("Used", justify="right")
        table.add_column("Projected", justify="right")
        table.add_column("Per day left", justify="right")
        table.add_column("Status", justify="center")

        messages: list[str] = []
        for budget in budgets:
            analysis = analyze_budget(budget, snapshot.transactions, reference)
            name = ledger_names.get(budget.ledger_id, budget.ledger_id) if budget.ledger_id else "All ledgers"
            if budget.category_id:
                name = f"{name} / {category_names.get(budget.category_id, budget.category_id)}"
            style = ALERT_STYLES[analysis.alert_level]

            table.add_row(
                name,
                format_money(analysis.budget_limit, symbol),
                format_money(analysis.total_spent, symbol),
                f"{analysis.usage_percent * 100:.0f}%",
                f"[{style}]{format_money(analysis.projected_total, symbol)}[/{style}]",
                format_money(analysis.daily_allowance, symbol),
                f"{analysis.alert_level.emoji} [{style}]{analysis.alert_level.value}[/{style}]",
            )
            messages.append(f"[{style}]{name}:[/{style}] {analysis.alert_message(symbol)}")

        console.print(table)
        for message in messages:
            console.print(f"  {message}")

    except FlashCountError as e:
        exit_with_error(console, f"Error: {e}")
    except OSError as e:
        exit_with_error(console, f"Filesystem error: {e}")
