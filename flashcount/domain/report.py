"""Pure functions for weekly and monthly spending reports.

This module contains the functional core for reporting operations:
- No I/O operations (no files, no console)
- No side effects
- Pure data transformations
- Easy to test

A report compares the period containing ``now`` with the period before it.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum

from flashcount.dates import month_window, previous_month_start, start_of_day, week_window
from flashcount.domain.models import Direction, Money
from flashcount.domain.transactions import (
    DEFAULT_CATEGORY_COLOR,
    DEFAULT_CATEGORY_ICON,
    Transaction,
    filter_window,
    total_by_direction,
)

UNCATEGORIZED = "Uncategorized"
WEEKDAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


class ReportPeriod(str, Enum):
    """Report granularity."""

    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @property
    def label(self) -> str:
        return "this week" if self is ReportPeriod.WEEKLY else "this month"


@dataclass(frozen=True)
class InsightThresholds:
    """Thresholds (as fractions) that decide which insights are reported."""

    top_share: float = 0.40
    period_change: float = 0.10
    category_change: float = 0.20


@dataclass(frozen=True)
class CategorySpending:
    """Expense total for one category in the current period."""

    name: str
    icon: str
    color: str
    amount: Money
    percentage: float  # 0 to 1
    change_from_last_period: float | None  # -0.2 means 20% lower


@dataclass(frozen=True)
class DailyPoint:
    """Expense total for a single day."""

    day: datetime
    label: str
    amount: Money


@dataclass(frozen=True)
class ReportData:
    """Immutable report for one period."""

    period: ReportPeriod
    start: datetime
    end: datetime
    total_expense: Money
    total_income: Money
    net_change: Money
    expense_change: float | None
    income_change: float | None
    category_breakdown: list[CategorySpending] = field(default_factory=list)
    daily_expenses: list[DailyPoint] = field(default_factory=list)
    streak_days: int = 0
    insights: list[str] = field(default_factory=list)


def period_windows(
    period: ReportPeriod,
    now: datetime,
    week_start: int = 0,
) -> tuple[datetime, datetime, datetime, datetime]:
    """Calculate the current and previous windows for a period.

    Returns:
        Tuple of (current_start, current_end, previous_start, previous_end).
        previous_end always equals current_start.
    """
    if period is ReportPeriod.WEEKLY:
        start, end = week_window(now, week_start)
        return start, end, start - timedelta(days=7), start
    start, end = month_window(now)
    return start, end, previous_month_start(start), start


def percent_change(current: Decimal, previous: Decimal) -> float | None:
    """Relative change from previous to current, None when there is no prior amount."""
    if previous > 0:
        return float((current - previous) / previous)
    return None


def _category_name(txn: Transaction, uncategorized_label: str) -> str:
    return txn.category.name if txn.category is not None else uncategorized_label


def _group_by_category(
    transactions: Iterable[Transaction],
    uncategorized_label: str,
) -> dict[str, list[Transaction]]:
    grouped: dict[str, list[Transaction]] = {}
    for txn in transactions:
        grouped.setdefault(_category_name(txn, uncategorized_label), []).append(txn)
    return grouped


def build_category_breakdown(
    expenses: Sequence[Transaction],
    total_expense: Decimal,
    previous_expenses: Sequence[Transaction],
    uncategorized_label: str = UNCATEGORIZED,
) -> list[CategorySpending]:
    """Group expenses by category name, largest first.

    Args:
        expenses: Current-period expense transactions.
        total_expense: Sum of current-period expenses.
        previous_expenses: Previous-period expense transactions.
        uncategorized_label: Group name for transactions without a category.

    Returns:
        CategorySpending list sorted by amount descending; equal amounts keep
        the order in which their category first appeared.
    """
    grouped = _group_by_category(expenses, uncategorized_label)
    previous_grouped = _group_by_category(previous_expenses, uncategorized_label)

    breakdown: list[CategorySpending] = []
    for name, txns in grouped.items():
        amount = sum((t.amount for t in txns), Decimal(0))
        previous_amount = sum((t.amount for t in previous_grouped.get(name, [])), Decimal(0))
        first = txns[0].category
        breakdown.append(
            CategorySpending(
                name=name,
                icon=first.icon if first is not None else DEFAULT_CATEGORY_ICON,
                color=first.color if first is not None else DEFAULT_CATEGORY_COLOR,
                amount=Money(amount),
                percentage=float(amount / total_expense) if total_expense > 0 else 0.0,
                change_from_last_period=percent_change(amount, previous_amount),
            )
        )

    return sorted(breakdown, key=lambda c: c.amount, reverse=True)


def day_label(day: datetime, period: ReportPeriod) -> str:
    """Label a day: weekday name for weekly reports, day of month for monthly ones."""
    if period is ReportPeriod.WEEKLY:
        return WEEKDAY_LABELS[day.weekday()]
    return str(day.day)


def build_daily_expenses(
    expenses: Sequence[Transaction],
    start: datetime,
    end: datetime,
    period: ReportPeriod,
) -> list[DailyPoint]:
    """Sum expenses per calendar day over [start, end), including empty days."""
    points: list[DailyPoint] = []
    current = start
    while current < end:
        next_day = current + timedelta(days=1)
        total = sum((t.amount for t in expenses if current <= t.date < next_day), Decimal(0))
        points.append(DailyPoint(day=current, label=day_label(current, period), amount=Money(total)))
        current = next_day
    return points


def calculate_streak(transactions: Iterable[Transaction], now: datetime) -> int:
    """Count consecutive days, back from today, that have at least one transaction."""
    days_with_activity = {start_of_day(t.date) for t in transactions}
    if not days_with_activity:
        return 0

    streak = 0
    check = start_of_day(now)
    while check in days_with_activity:
        streak += 1
        check -= timedelta(days=1)
    return streak


def generate_insights(
    category_breakdown: Sequence[CategorySpending],
    expense_change: float | None,
    period: ReportPeriod,
    thresholds: InsightThresholds = InsightThresholds(),
) -> list[str]:
    """Derive short observations from a report.

    Args:
        category_breakdown: Categories sorted largest first.
        expense_change: Period-over-period expense change, or None.
        period: Report period (used in wording).
        thresholds: Share and change thresholds.

    Returns:
        Insight strings in display order.
    """
    insights: list[str] = []
    when = period.label

    if category_breakdown:
        top = category_breakdown[0]
        pct = int(top.percentage * 100)
        insights.append(f"{top.name} was the largest category {when} at {pct}%")
        if pct > Decimal(str(thresholds.top_share)) * 100:
            insights.append(f"Spending is concentrated in {top.name}, consider reining it in")

    if expense_change is not None:
        pct = int(abs(expense_change) * 100)
        if expense_change > thresholds.period_change:
            insights.append(f"Total spending {when} is up {pct}% on the previous period")
        elif expense_change < -thresholds.period_change:
            insights.append(f"Total spending {when} is down {pct}% on the previous period, keep it up!")
        else:
            insights.append(f"Total spending {when} is about the same as the previous period")

    for category in category_breakdown[:3]:
        change = category.change_from_last_period
        if change is not None and abs(change) > thresholds.category_change:
            arrow = "↑" if change > 0 else "↓"
            insights.append(f"{category.name} {arrow} {int(abs(change) * 100)}% vs previous period")

    return insights


def generate_report(
    transactions: Sequence[Transaction],
    period: ReportPeriod,
    now: datetime,
    *,
    week_start: int = 0,
    thresholds: InsightThresholds = InsightThresholds(),
    uncategorized_label: str = UNCATEGORIZED,
) -> ReportData:
    """Build the report for the period containing now.

    Args:
        transactions: Full transaction snapshot (the streak looks at all of it).
        period: Weekly or monthly.
        now: Reference instant.
        week_start: Weekday index weeks start on (Monday = 0).
        thresholds: Insight thresholds.
        uncategorized_label: Group name for transactions without a category.

    Returns:
        ReportData for the current period.
    """
    current_start, current_end, previous_start, previous_end = period_windows(period, now, week_start)

    current = filter_window(transactions, current_start, current_end)
    previous = filter_window(transactions, previous_start, previous_end)

    total_expense = total_by_direction(current, Direction.EXPENSE)
    total_income = total_by_direction(current, Direction.INCOME)
    expense_change = percent_change(total_expense, total_by_direction(previous, Direction.EXPENSE))
    income_change = percent_change(total_income, total_by_direction(previous, Direction.INCOME))

    current_expenses = [t for t in current if t.is_expense]
    previous_expenses = [t for t in previous if t.is_expense]

    breakdown = build_category_breakdown(current_expenses, total_expense, previous_expenses, uncategorized_label)
    daily = build_daily_expenses(current_expenses, current_start, min(current_end, now), period)

    return ReportData(
        period=period,
        start=current_start,
        end=current_end,
        total_expense=total_expense,
        total_income=total_income,
        net_change=Money(total_income - total_expense),
        expense_change=expense_change,
        income_change=income_change,
        category_breakdown=breakdown,
        daily_expenses=daily,
        streak_days=calculate_streak(transactions, now),
        insights=generate_insights(breakdown, expense_change, period, thresholds),
    )
