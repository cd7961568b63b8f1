"""Tests for flashcount.domain.report pure functions."""

from datetime import datetime
from decimal import Decimal

import pytest

from flashcount.domain.models import Direction, EntityId, Money
from flashcount.domain.report import (
    CategorySpending,
    InsightThresholds,
    ReportPeriod,
    build_category_breakdown,
    build_daily_expenses,
    calculate_streak,
    generate_insights,
    generate_report,
    percent_change,
    period_windows,
)
from flashcount.domain.transactions import CategoryRef, Transaction

FOOD = CategoryRef(id=EntityId("cat-food"), name="Food", icon="fork.knife", color="#FF6B6B")
TRANSPORT = CategoryRef(id=EntityId("cat-transport"), name="Transport", icon="car.fill", color="#4ECDC4")

# Thursday
NOW = datetime(2025, 3, 13, 15, 30)


def _txn(
    amount: str,
    when: datetime,
    category: CategoryRef | None = None,
    direction: Direction = Direction.EXPENSE,
    txn_id: str = "t",
) -> Transaction:
    return Transaction(
        id=EntityId(txn_id),
        amount=Money(Decimal(amount)),
        direction=direction,
        date=when,
        category=category,
    )


def _spending(name: str, percentage: float, change: float | None) -> CategorySpending:
    return CategorySpending(
        name=name,
        icon="questionmark",
        color="#667EEA",
        amount=Money(Decimal(100)),
        percentage=percentage,
        change_from_last_period=change,
    )


@pytest.fixture
def week_transactions() -> list[Transaction]:
    """Two expenses this week, one the week before."""
    return [
        _txn("100", datetime(2025, 3, 5, 12, 0), FOOD, txn_id="prev-food"),
        _txn("120", datetime(2025, 3, 12, 19, 0), FOOD, txn_id="food"),
        _txn("80", datetime(2025, 3, 13, 8, 15), TRANSPORT, txn_id="bus"),
    ]


class TestPeriodWindows:
    """Tests for period_windows."""

    def test_weekly(self) -> None:
        """Should return this week and the week before it."""
        assert period_windows(ReportPeriod.WEEKLY, NOW) == (
            datetime(2025, 3, 10),
            datetime(2025, 3, 17),
            datetime(2025, 3, 3),
            datetime(2025, 3, 10),
        )

    def test_monthly_across_year(self) -> None:
        """Should return January and the December before it."""
        assert period_windows(ReportPeriod.MONTHLY, datetime(2025, 1, 20)) == (
            datetime(2025, 1, 1),
            datetime(2025, 2, 1),
            datetime(2024, 12, 1),
            datetime(2025, 1, 1),
        )


class TestPercentChange:
    """Tests for percent_change."""

    def test_relative_change(self) -> None:
        """Should return the fractional change."""
        assert percent_change(Decimal(150), Decimal(100)) == pytest.approx(0.5)
        assert percent_change(Decimal(50), Decimal(100)) == pytest.approx(-0.5)

    def test_no_previous_amount(self) -> None:
        """Should return None instead of dividing by zero."""
        assert percent_change(Decimal(150), Decimal(0)) is None


class TestGenerateReport:
    """Tests for generate_report."""

    def test_totals_and_changes(self, week_transactions: list[Transaction]) -> None:
        """Should double expenses week over week and leave income change undefined."""
        report = generate_report(week_transactions, ReportPeriod.WEEKLY, NOW)

        assert report.start == datetime(2025, 3, 10)
        assert report.end == datetime(2025, 3, 17)
        assert report.total_expense == Decimal(200)
        assert report.total_income == Decimal(0)
        assert report.net_change == Decimal(-200)
        assert report.expense_change == pytest.approx(1.0)
        assert report.income_change is None

    def test_category_breakdown(self, week_transactions: list[Transaction]) -> None:
        """Should rank categories by amount with shares summing to one."""
        report = generate_report(week_transactions, ReportPeriod.WEEKLY, NOW)

        breakdown = report.category_breakdown
        assert [c.name for c in breakdown] == ["Food", "Transport"]
        assert breakdown[0].amount == Decimal(120)
        assert breakdown[0].icon == "fork.knife"
        assert breakdown[0].percentage == pytest.approx(0.6)
        assert breakdown[0].change_from_last_period == pytest.approx(0.2)
        assert breakdown[1].change_from_last_period is None
        assert sum(c.percentage for c in breakdown) == pytest.approx(1.0)

    def test_daily_series_stops_at_now(self, week_transactions: list[Transaction]) -> None:
        """Should list one point per day from the week start up to today."""
        report = generate_report(week_transactions, ReportPeriod.WEEKLY, NOW)

        assert [p.label for p in report.daily_expenses] == ["Mon", "Tue", "Wed", "Thu"]
        assert [p.amount for p in report.daily_expenses] == [0, 0, Decimal(120), Decimal(80)]

    def test_streak(self, week_transactions: list[Transaction]) -> None:
        """Should count yesterday and today."""
        report = generate_report(week_transactions, ReportPeriod.WEEKLY, NOW)

        assert report.streak_days == 2

    def test_insights(self, week_transactions: list[Transaction]) -> None:
        """Should report the top category, its concentration and the overall rise."""
        report = generate_report(week_transactions, ReportPeriod.WEEKLY, NOW)

        assert report.insights == [
            "Food was the largest category this week at 60%",
            "Spending is concentrated in Food, consider reining it in",
            "Total spending this week is up 100% on the previous period",
        ]

    def test_uncategorized_bucket(self) -> None:
        """Should group transactions without a category under the fallback label."""
        transactions = [
            _txn("30", datetime(2025, 3, 11), txn_id="a"),
            _txn("20", datetime(2025, 3, 12), txn_id="b"),
        ]

        report = generate_report(transactions, ReportPeriod.WEEKLY, NOW, uncategorized_label="Other")

        assert len(report.category_breakdown) == 1
        bucket = report.category_breakdown[0]
        assert bucket.name == "Other"
        assert bucket.icon == "questionmark"
        assert bucket.amount == Decimal(50)

    def test_monthly_labels_are_day_numbers(self) -> None:
        """Should label monthly points by day of month."""
        report = generate_report([], ReportPeriod.MONTHLY, NOW)

        assert len(report.daily_expenses) == 13
        assert report.daily_expenses[0].label == "1"
        assert report.daily_expenses[-1].label == "13"

    def test_empty_snapshot(self) -> None:
        """Should produce a zero report without insights."""
        report = generate_report([], ReportPeriod.WEEKLY, NOW)

        assert report.total_expense == 0
        assert report.expense_change is None
        assert report.category_breakdown == []
        assert report.streak_days == 0
        assert report.insights == []

    def test_income_only(self) -> None:
        """Should count income and leave the breakdown empty."""
        transactions = [_txn("500", datetime(2025, 3, 11), direction=Direction.INCOME)]

        report = generate_report(transactions, ReportPeriod.WEEKLY, NOW)

        assert report.total_income == Decimal(500)
        assert report.net_change == Decimal(500)
        assert report.category_breakdown == []

    def test_sunday_week_start(self, week_transactions: list[Transaction]) -> None:
        """Should start the week on Sunday when asked."""
        report = generate_report(week_transactions, ReportPeriod.WEEKLY, NOW, week_start=6)

        assert report.start == datetime(2025, 3, 9)
        assert report.daily_expenses[0].label == "Sun"


class TestBuildCategoryBreakdown:
    """Tests for build_category_breakdown."""

    def test_ties_keep_first_appearance(self) -> None:
        """Should keep the order categories first appeared in when amounts tie."""
        expenses = [
            _txn("50", datetime(2025, 3, 11), TRANSPORT),
            _txn("50", datetime(2025, 3, 12), FOOD),
        ]

        breakdown = build_category_breakdown(expenses, Decimal(100), [])

        assert [c.name for c in breakdown] == ["Transport", "Food"]

    def test_zero_total(self) -> None:
        """Should report zero shares when there is nothing to divide by."""
        breakdown = build_category_breakdown([_txn("10", datetime(2025, 3, 11), FOOD)], Decimal(0), [])

        assert breakdown[0].percentage == 0.0


class TestBuildDailyExpenses:
    """Tests for build_daily_expenses."""

    def test_empty_days_are_zero(self) -> None:
        """Should include days without spending."""
        points = build_daily_expenses(
            [_txn("10", datetime(2025, 3, 12, 23, 59))],
            datetime(2025, 3, 10),
            datetime(2025, 3, 13),
            ReportPeriod.WEEKLY,
        )

        assert [p.day for p in points] == [datetime(2025, 3, 10), datetime(2025, 3, 11), datetime(2025, 3, 12)]
        assert [p.amount for p in points] == [0, 0, Decimal(10)]


class TestCalculateStreak:
    """Tests for calculate_streak."""

    def test_gap_breaks_streak(self) -> None:
        """Should stop counting at the first day without activity."""
        transactions = [
            _txn("1", datetime(2025, 3, 13, 9, 0)),
            _txn("1", datetime(2025, 3, 12, 21, 0)),
            _txn("1", datetime(2025, 3, 10, 9, 0)),
        ]

        assert calculate_streak(transactions, NOW) == 2

    def test_no_activity_today(self) -> None:
        """Should be zero when nothing was recorded today."""
        assert calculate_streak([_txn("1", datetime(2025, 3, 12))], NOW) == 0

    def test_counts_income_too(self) -> None:
        """Should count any transaction, not only expenses."""
        transactions = [_txn("1", datetime(2025, 3, 13), direction=Direction.INCOME)]

        assert calculate_streak(transactions, NOW) == 1


class TestGenerateInsights:
    """Tests for generate_insights."""

    def test_spending_down(self) -> None:
        """Should congratulate on a drop in spending."""
        insights = generate_insights([], -0.5, ReportPeriod.MONTHLY)

        assert insights == ["Total spending this month is down 50% on the previous period, keep it up!"]

    def test_spending_flat(self) -> None:
        """Should call small changes about the same."""
        insights = generate_insights([], 0.05, ReportPeriod.WEEKLY)

        assert insights == ["Total spending this week is about the same as the previous period"]

    def test_top_share_compares_whole_percent(self) -> None:
        """Should not flag a 40.5% share against a 40% threshold."""
        insights = generate_insights([_spending("Food", 0.405, None)], None, ReportPeriod.WEEKLY)

        assert insights == ["Food was the largest category this week at 40%"]

    def test_top_share_half_percent_threshold(self) -> None:
        """Should flag a 30% share against a 29.5% threshold."""
        thresholds = InsightThresholds(top_share=0.295)

        insights = generate_insights([_spending("Food", 0.30, None)], None, ReportPeriod.WEEKLY, thresholds)

        assert insights == [
            "Food was the largest category this week at 30%",
            "Spending is concentrated in Food, consider reining it in",
        ]

    def test_top_share_below_half_percent_threshold(self) -> None:
        """Should not flag a 25% share against a 29.5% threshold."""
        thresholds = InsightThresholds(top_share=0.295)

        insights = generate_insights([_spending("Food", 0.25, None)], None, ReportPeriod.WEEKLY, thresholds)

        assert insights == ["Food was the largest category this week at 25%"]

    def test_category_swings(self) -> None:
        """Should report large changes among the top three categories only."""
        breakdown = [
            _spending("Food", 0.3, -0.5),
            _spending("Transport", 0.25, 0.1),
            _spending("Fun", 0.2, 0.75),
            _spending("Gifts", 0.1, 3.0),
        ]

        insights = generate_insights(breakdown, None, ReportPeriod.WEEKLY)

        assert insights[1:] == ["Food ↓ 50% vs previous period", "Fun ↑ 75% vs previous period"]

    def test_custom_thresholds(self) -> None:
        """Should honour configured thresholds."""
        thresholds = InsightThresholds(top_share=0.25, period_change=0.5, category_change=0.1)

        insights = generate_insights([_spending("Food", 0.3, 0.15)], 0.3, ReportPeriod.WEEKLY, thresholds)

        assert insights == [
            "Food was the largest category this week at 30%",
            "Spending is concentrated in Food, consider reining it in",
            "Total spending this week is about the same as the previous period",
            "Food ↑ 15% vs previous period",
        ]
