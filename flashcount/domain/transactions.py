"""Pure functions and value types for ledger transactions.

This module contains the functional core for transaction data:
- No I/O operations (no files, no console)
- No side effects
- Pure data transformations
- Easy to test

Amounts are always positive; Direction carries the sign.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from flashcount.domain.errors import ConfigurationError
from flashcount.domain.models import Direction, EntityId, Money

DEFAULT_CATEGORY_ICON = "questionmark"
DEFAULT_CATEGORY_COLOR = "#667EEA"


@dataclass(frozen=True)
class CategoryRef:
    """Category as seen from a transaction, resolved by the host."""

    id: EntityId | None
    name: str
    icon: str = DEFAULT_CATEGORY_ICON
    color: str = DEFAULT_CATEGORY_COLOR


@dataclass(frozen=True)
class Category:
    """Stored spending or income category."""

    id: EntityId
    name: str
    icon: str
    color_hex: str
    is_expense: bool = True
    sort_order: int = 0
    is_archived: bool = False

    def as_ref(self) -> CategoryRef:
        return CategoryRef(id=self.id, name=self.name, icon=self.icon, color=self.color_hex)


@dataclass(frozen=True)
class Ledger:
    """Named grouping of transactions (e.g. personal, business)."""

    id: EntityId
    name: str
    icon: str
    color_hex: str
    is_default: bool = False
    is_archived: bool = False
    created_at: datetime | None = None
    sort_order: int = 0


@dataclass(frozen=True)
class Transaction:
    """Immutable transaction data.

    category_id is the stored reference; category is its resolved form and
    stays None when the reference points at a category that no longer exists.
    """

    id: EntityId
    amount: Money
    direction: Direction
    date: datetime
    note: str = ""
    created_at: datetime | None = None
    category: CategoryRef | None = None
    ledger_id: EntityId | None = None
    recurring_rule_id: EntityId | None = None
    category_id: EntityId | None = None

    def __post_init__(self) -> None:
        if self.amount <= 0:
            raise ConfigurationError(f"Transaction {self.id} amount must be positive, got {self.amount}")
        if self.category_id is None and self.category is not None:
            object.__setattr__(self, "category_id", self.category.id)

    @property
    def is_expense(self) -> bool:
        return self.direction is Direction.EXPENSE


def signed_amount(txn: Transaction) -> Money:
    """Return the amount negated for expenses, positive for income."""
    return Money(-txn.amount if txn.is_expense else txn.amount)


def in_window(txn: Transaction, start: datetime, end: datetime) -> bool:
    """Check whether a transaction falls in the half-open window [start, end)."""
    return start <= txn.date < end


def filter_window(transactions: Iterable[Transaction], start: datetime, end: datetime) -> list[Transaction]:
    """Keep transactions inside [start, end), preserving input order."""
    return [t for t in transactions if in_window(t, start, end)]


def total_by_direction(transactions: Iterable[Transaction], direction: Direction) -> Money:
    """Sum the amounts of transactions with the given direction.

    Returns:
        Total as Money (Decimal 0 when nothing matches).
    """
    return Money(sum((t.amount for t in transactions if t.direction is direction), Decimal(0)))


def filter_by_ledger(transactions: Iterable[Transaction], ledger_id: EntityId | None) -> list[Transaction]:
    """Keep transactions in one ledger. A ledger_id of None keeps everything."""
    if ledger_id is None:
        return list(transactions)
    return [t for t in transactions if t.ledger_id == ledger_id]
