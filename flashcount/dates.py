"""Date utilities for flashcount.

Pure functions for calendar stepping and period windows. All datetimes are
naive local time; windows are half-open ``[start, end)``.
"""

import calendar
from datetime import date, datetime, timedelta
from enum import Enum

from flashcount.domain.errors import ConfigurationError
from flashcount.domain.models import Frequency, Month, parse_frequency

WEEKDAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


class MonthPolicy(str, Enum):
    """How month and year stepping treats days past the end of the target month."""

    CLAMP = "clamp"  # Jan 31 + 1 month -> Feb 28
    OVERFLOW = "overflow"  # Jan 31 + 1 month -> Mar 3


def days_in_month(year: int, month: int) -> int:
    """Return the number of days in a calendar month."""
    return calendar.monthrange(year, month)[1]


def _shift(d: date, year: int, month: int, policy: MonthPolicy) -> date:
    last_day = days_in_month(year, month)
    if d.day <= last_day:
        return d.replace(year=year, month=month)
    if policy is MonthPolicy.OVERFLOW:
        return d.replace(year=year, month=month, day=last_day) + timedelta(days=d.day - last_day)
    return d.replace(year=year, month=month, day=last_day)


def add_months(d: date, n: int, policy: MonthPolicy = MonthPolicy.CLAMP) -> date:
    """Add n calendar months to a date.

    Args:
        d: Starting date.
        n: Months to add (may be negative).
        policy: What to do when the day does not exist in the target month.

    Returns:
        The shifted date.
    """
    month_index = d.month - 1 + n
    year = d.year + month_index // 12
    month = month_index % 12 + 1
    return _shift(d, year, month, policy)


def add_years(d: date, n: int, policy: MonthPolicy = MonthPolicy.CLAMP) -> date:
    """Add n calendar years to a date (Feb 29 follows the month policy)."""
    return _shift(d, d.year + n, d.month, policy)


def step_date(d: date, frequency: Frequency | str, policy: MonthPolicy = MonthPolicy.CLAMP) -> date:
    """Advance a due date by one period of the given frequency.

    Raises:
        ConfigurationError: If the frequency is not recognised.
    """
    freq = parse_frequency(frequency)
    if freq is Frequency.DAILY:
        return d + timedelta(days=1)
    if freq is Frequency.WEEKLY:
        return d + timedelta(weeks=1)
    if freq is Frequency.MONTHLY:
        return add_months(d, 1, policy)
    if freq is Frequency.YEARLY:
        return add_years(d, 1, policy)
    raise ConfigurationError(f"Unrecognized frequency: {frequency!r}")


def parse_month_policy(value: str) -> MonthPolicy:
    """Parse a month policy name from config.

    Raises:
        ConfigurationError: If the name is unknown.
    """
    try:
        return MonthPolicy(value.lower())
    except ValueError:
        raise ConfigurationError(f"Unknown month policy: {value!r} (expected 'clamp' or 'overflow')") from None


def parse_weekday(value: str) -> int:
    """Parse a weekday name ("monday"...) to its index (Monday = 0).

    Raises:
        ConfigurationError: If the name is unknown.
    """
    try:
        return WEEKDAY_NAMES.index(value.lower())
    except ValueError:
        raise ConfigurationError(f"Unknown weekday: {value!r}") from None


def start_of_day(dt: datetime) -> datetime:
    """Return midnight of the day containing dt."""
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def week_window(now: datetime, week_start: int = 0) -> tuple[datetime, datetime]:
    """Return the calendar week containing now.

    Args:
        now: Reference instant.
        week_start: Weekday index the week starts on (Monday = 0).

    Returns:
        Tuple of (start, end) where end is exactly seven days after start.
    """
    today = start_of_day(now)
    offset = (today.weekday() - week_start) % 7
    start = today - timedelta(days=offset)
    return start, start + timedelta(days=7)


def month_window(now: datetime) -> tuple[datetime, datetime]:
    """Return the calendar month containing now as (first midnight, next month's first midnight)."""
    start = start_of_day(now).replace(day=1)
    end = datetime.combine(add_months(start.date(), 1), start.time())
    return start, end


def previous_month_start(month_start: datetime) -> datetime:
    """Return midnight on the first day of the month before month_start."""
    return datetime.combine(add_months(month_start.date(), -1), month_start.time())


def month_range(month: Month) -> tuple[date, date, str]:
    """Calculate date range and label for a month.

    Args:
        month: Month in YYYY-MM format.

    Returns:
        Tuple of (since, until, label) where:
        - since: First day of month
        - until: First day of next month
        - label: Human-readable month (e.g., "January 2025")

    Raises:
        ValueError: If the month is not a valid YYYY-MM string.
    """
    dt = datetime.strptime(month, "%Y-%m").date()
    until = add_months(dt, 1)
    label = dt.strftime("%B %Y")
    return dt, until, label
