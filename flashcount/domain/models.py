"""Domain type definitions for flashcount.

These types are shared by every part of the functional core:
- Money: fixed-point amount (decimal.Decimal), always positive on entities
- Month: Month in YYYY-MM format
- Direction: whether a transaction or rule is an expense or income
- Frequency: how often a recurring rule posts
"""

from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import NewType

from flashcount.domain.errors import ConfigurationError

# Money amounts are Decimals to avoid floating point errors
Money = NewType("Money", Decimal)

# Month is always in YYYY-MM format (e.g., "2025-01")
Month = NewType("Month", str)

# Opaque identifiers owned by the host store
EntityId = NewType("EntityId", str)


class Direction(str, Enum):
    """Sign of a ledger entry. Amounts stay positive; direction carries the sign."""

    EXPENSE = "expense"
    INCOME = "income"


class Frequency(str, Enum):
    """Posting frequency of a recurring rule."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


def parse_frequency(value: "Frequency | str") -> Frequency:
    """Convert a stored frequency value to a Frequency.

    Args:
        value: Frequency member or its string value.

    Returns:
        The matching Frequency.

    Raises:
        ConfigurationError: If the value is not a known frequency.
    """
    if isinstance(value, Frequency):
        return value
    try:
        return Frequency(str(value).lower())
    except ValueError:
        raise ConfigurationError(f"Unrecognized frequency: {value!r}") from None


def parse_direction(value: "Direction | str") -> Direction:
    """Convert a stored direction value to a Direction.

    Raises:
        ConfigurationError: If the value is not "expense" or "income".
    """
    if isinstance(value, Direction):
        return value
    try:
        return Direction(str(value).lower())
    except ValueError:
        raise ConfigurationError(f"Unrecognized direction: {value!r}") from None


def to_money(value: Decimal | int | float | str) -> Money:
    """Convert a number to Money.

    Floats go through their shortest string form so 0.1 stays 0.1.

    Raises:
        ConfigurationError: If the value is not numeric.
    """
    if isinstance(value, bool):
        raise ConfigurationError(f"Not a money amount: {value!r}")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except InvalidOperation:
            raise ConfigurationError(f"Not a money amount: {value!r}") from None
    if not result.is_finite():
        raise ConfigurationError(f"Not a money amount: {value!r}")
    return Money(result)


def format_money(amount: Decimal, symbol: str = "¥", include_sign: bool = False) -> str:
    """Format money amount for display.

    Args:
        amount: Amount to format.
        symbol: Currency symbol prefix.
        include_sign: Whether to include + or - sign.

    Returns:
        Formatted string (e.g., "-¥1,234.50" or "¥1,234.50").
    """
    formatted = f"{symbol}{abs(amount):,.2f}"

    if amount < 0:
        return f"-{formatted}"
    if include_sign:
        return f"+{formatted}"
    return formatted
