"""Pure functions for budget analysis.

This module contains the functional core for budget operations:
- No I/O operations (no files, no console)
- No side effects
- Pure data transformations
- Easy to test

Month-end spend is projected from the average daily spend so far.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from flashcount.dates import add_months, days_in_month
from flashcount.domain.errors import ConfigurationError
from flashcount.domain.models import EntityId, Money
from flashcount.domain.transactions import Transaction

WARNING_THRESHOLD = 0.8


class BudgetAlertLevel(str, Enum):
    """Budget status tier."""

    HEALTHY = "healthy"  # projected < 80%
    WARNING = "warning"  # projected 80% to 100%
    DANGER = "danger"  # projected or actual > 100%

    @property
    def emoji(self) -> str:
        return {"healthy": "🟢", "warning": "🟡", "danger": "🔴"}[self.value]

    @property
    def message(self) -> str:
        return {
            "healthy": "Plenty of budget left, keep it up!",
            "warning": "Watch your spending, you are nearing the limit",
            "danger": "At this pace you will overspend by month end!",
        }[self.value]


@dataclass(frozen=True)
class Budget:
    """Monthly spending limit for a ledger, optionally narrowed to one category."""

    id: EntityId
    monthly_limit: Money
    year: int
    month: int
    ledger_id: EntityId | None = None
    category_id: EntityId | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class BudgetAnalysis:
    """Immutable result of analyzing one month's spending against a limit."""

    budget_limit: Money
    total_spent: Money
    days_elapsed: int
    days_remaining: int
    total_days_in_month: int
    daily_average: Money
    projected_total: Money
    remaining_budget: Money
    daily_allowance: Money
    usage_percent: float
    projected_percent: float
    alert_level: BudgetAlertLevel

    def alert_message(self, symbol: str = "¥") -> str:
        """Friendly status line for the alert tier, amounts in whole currency units."""
        if self.alert_level is BudgetAlertLevel.HEALTHY:
            return "Budget is on track, keep it up"
        if self.alert_level is BudgetAlertLevel.WARNING:
            return (
                f"Watch your spending! {symbol}{int(self.remaining_budget)} left, "
                f"{symbol}{int(self.daily_allowance)} per day available"
            )
        if self.projected_total > self.budget_limit:
            over = int(self.projected_total - self.budget_limit)
            return f"At this pace you will be {symbol}{over} over budget by month end!"
        return "Budget used up, hold back on spending!"


def classify_alert(usage_percent: float, projected_percent: float) -> BudgetAlertLevel:
    """Pick the alert tier. Already being over budget is always danger."""
    if projected_percent > 1.0 or usage_percent > 1.0:
        return BudgetAlertLevel.DANGER
    if projected_percent > WARNING_THRESHOLD:
        return BudgetAlertLevel.WARNING
    return BudgetAlertLevel.HEALTHY


def analyze(limit: Decimal, spent: Decimal, reference_date: date | datetime) -> BudgetAnalysis:
    """Analyze spending so far in the month containing reference_date.

    Args:
        limit: Monthly budget limit (0 means no meaningful limit).
        spent: Amount spent so far this month (positive).
        reference_date: Day the analysis is made for.

    Returns:
        BudgetAnalysis with projection, allowance and alert tier.

    Raises:
        ConfigurationError: If limit or spent is negative.
    """
    if limit < 0:
        raise ConfigurationError(f"Budget limit must not be negative, got {limit}")
    if spent < 0:
        raise ConfigurationError(f"Spent amount must not be negative, got {spent}")

    days_elapsed = max(reference_date.day, 1)
    total_days = days_in_month(reference_date.year, reference_date.month)
    days_remaining = max(total_days - days_elapsed, 0)

    daily_average = spent / days_elapsed
    projected_total = daily_average * total_days
    remaining = limit - spent
    if days_remaining > 0:
        daily_allowance = max(remaining / days_remaining, Decimal(0))
    else:
        daily_allowance = Decimal(0)

    usage_percent = float(spent / limit) if limit > 0 else 0.0
    projected_percent = float(projected_total / limit) if limit > 0 else 0.0

    return BudgetAnalysis(
        budget_limit=Money(limit),
        total_spent=Money(spent),
        days_elapsed=days_elapsed,
        days_remaining=days_remaining,
        total_days_in_month=total_days,
        daily_average=Money(daily_average),
        projected_total=Money(projected_total),
        remaining_budget=Money(remaining),
        daily_allowance=Money(daily_allowance),
        usage_percent=usage_percent,
        projected_percent=projected_percent,
        alert_level=classify_alert(usage_percent, projected_percent),
    )


def budget_spent(budget: Budget, transactions: Iterable[Transaction]) -> Money:
    """Sum expenses that count against a budget.

    Only expense transactions dated in the budget's month count, restricted
    to the budget's ledger when it has one and to its category when it has one.
    """
    start = datetime(budget.year, budget.month, 1)
    end = datetime.combine(add_months(start.date(), 1), start.time())

    total = Decimal(0)
    for txn in transactions:
        if not txn.is_expense or not start <= txn.date < end:
            continue
        if budget.ledger_id is not None and txn.ledger_id != budget.ledger_id:
            continue
        if budget.category_id is not None and txn.category_id != budget.category_id:
            continue
        total += txn.amount
    return Money(total)


def find_budget(
    budgets: Iterable[Budget],
    year: int,
    month: int,
    ledger_id: EntityId | None = None,
    category_id: EntityId | None = None,
) -> Budget | None:
    """Find the budget for a month, ledger and category (None category = ledger total)."""
    for budget in budgets:
        if (
            budget.year == year
            and budget.month == month
            and budget.ledger_id == ledger_id
            and budget.category_id == category_id
        ):
            return budget
    return None


def analyze_budget(
    budget: Budget,
    transactions: Iterable[Transaction],
    reference_date: date | datetime,
) -> BudgetAnalysis:
    """Analyze a stored budget against the transactions that count toward it."""
    return analyze(budget.monthly_limit, budget_spent(budget, transactions), reference_date)
