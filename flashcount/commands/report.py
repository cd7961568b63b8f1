"""Report command: weekly or monthly spending summary."""

from pathlib import Path

from rich.console import Console

from flashcount.commands.common import exit_with_error, format_percent, parse_now
from flashcount.config import load_settings
from flashcount.domain.errors import ConfigurationError, FlashCountError
from flashcount.domain.models import EntityId, Money, format_money
from flashcount.domain.report import CategorySpending, DailyPoint, ReportData, ReportPeriod, generate_report
from flashcount.domain.transactions import filter_by_ledger
from flashcount.store.backup import load_backup

console = Console()


def calculate_histogram_bar_length(amount: Money, max_amount: Money, bar_width: int) -> int:
    """Calculate histogram bar length.

    Args:
        amount: Amount to display.
        max_amount: Maximum amount in dataset.
        bar_width: Maximum bar width in characters.

    Returns:
        Bar length in characters.
    """
    if max_amount <= 0:
        return 0
    return int((abs(amount) / max_amount) * bar_width)


def render_category_line(category: CategorySpending, max_amount: Money, symbol: str, bar_width: int = 30) -> None:
    """Render one category of the breakdown with a histogram bar."""
    bar = "█" * calculate_histogram_bar_length(category.amount, max_amount, bar_width)
    amount_display = format_money(category.amount, symbol)
    share = f"{category.percentage * 100:.0f}%"
    change = format_percent(category.change_from_last_period)
    console.print(f"  {category.name:20} {amount_display:>12} {share:>5} {change:>6}  {bar}")


def render_daily_series(points: list[DailyPoint], symbol: str, bar_width: int = 30) -> None:
    """Render the per-day expense series."""
    max_amount = Money(max((p.amount for p in points), default=0))
    for point in points:
        bar = "█" * calculate_histogram_bar_length(point.amount, max_amount, bar_width)
        console.print(f"  {point.label:>4} {format_money(point.amount, symbol):>12}  {bar}")


def render_report(report: ReportData, symbol: str) -> None:
    """Print a report."""
    end_display = report.end.strftime("%Y-%m-%d")
    console.print(f"[bold cyan]{report.period.value.title()} report[/bold cyan] {report.start:%Y-%m-%d} to {end_display}\n")

    console.print(f"  [bold]Expenses:[/bold] {format_money(report.total_expense, symbol)} ({format_percent(report.expense_change)})")
    console.print(f"  [bold]Income:[/bold]   {format_money(report.total_income, symbol)} ({format_percent(report.income_change)})")
    net_style = "green" if report.net_change >= 0 else "red"
    console.print(f"  [bold]Net:[/bold]      [{net_style}]{format_money(report.net_change, symbol, include_sign=True)}[/{net_style}]")
    console.print(f"  [bold]Streak:[/bold]   {report.streak_days} day(s)\n")

    if report.category_breakdown:
        console.print("[bold red]Expenses by category:[/bold red]\n")
        max_amount = report.category_breakdown[0].amount
        for category in report.category_breakdown:
            render_category_line(category, max_amount, symbol)
        console.print()

    if report.daily_expenses:
        console.print("[bold]Daily spending:[/bold]\n")
        render_daily_series(report.daily_expenses, symbol)
        console.print()

    if report.insights:
        console.print("[bold yellow]Insights:[/bold yellow]")
        for insight in report.insights:
            console.print(f"  • {insight}")


def report_command(
    backup: Path,
    period: str = "monthly",
    now: str | None = None,
    ledger: str | None = None,
) -> None:
    """Generate a weekly or monthly report from a backup file."""
    try:
        settings = load_settings()
        try:
            report_period = ReportPeriod(period.lower())
        except ValueError:
            raise ConfigurationError(f"Unknown period {period!r}, expected 'weekly' or 'monthly'") from None
        reference = parse_now(now)

        snapshot = load_backup(backup)
        transactions = filter_by_ledger(snapshot.transactions, EntityId(ledger) if ledger else None)

        if not transactions:
            console.print("[dim]No transactions yet[/dim]")
            return

        report = generate_report(
            transactions,
            report_period,
            reference,
            week_start=settings.week_start,
            thresholds=settings.thresholds,
            uncategorized_label=settings.uncategorized_label,
        )
        render_report(report, settings.currency_symbol)

    except FlashCountError as e:
        exit_with_error(console, f"Error: {e}")
    except OSError as e:
        exit_with_error(console, f"Filesystem error: {e}")
