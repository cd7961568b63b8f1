"""Recurring rule catch-up engine.

A recurring rule (rent, a subscription) carries the date its next posting is
due. Advancing a rule against a reference instant emits one posting for
every period that has come due since, in chronological order, and returns
the rule with its due date moved past the reference. Rules are never
mutated in place; the caller persists the returned value.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from datetime import date, datetime

from flashcount.dates import MonthPolicy, step_date
from flashcount.domain.errors import ConfigurationError, InternalConsistencyError
from flashcount.domain.models import Direction, EntityId, Frequency, Money, parse_frequency
from flashcount.domain.transactions import CategoryRef, Transaction

logger = logging.getLogger(__name__)

# A daily rule left alone for ~27 years; anything beyond is treated as a bug.
DEFAULT_MAX_CATCHUP = 10_000


@dataclass(frozen=True)
class RecurringRule:
    """Template that periodically materializes a transaction."""

    id: EntityId
    title: str
    amount: Money
    direction: Direction
    frequency: Frequency
    next_due_date: date
    is_active: bool = True
    note: str = ""
    created_at: datetime | None = None
    category_id: EntityId | None = None
    ledger_id: EntityId | None = None

    def __post_init__(self) -> None:
        if self.amount <= 0:
            raise ConfigurationError(f"Recurring rule {self.title!r} amount must be positive, got {self.amount}")


@dataclass(frozen=True)
class GeneratedPosting:
    """One missed occurrence of a rule, ready for the host to insert."""

    rule_id: EntityId
    amount: Money
    direction: Direction
    posted_date: date
    label: str
    category_id: EntityId | None = None
    ledger_id: EntityId | None = None


@dataclass(frozen=True)
class AdvanceResult:
    """Postings produced by one advance, plus the rule state to persist."""

    rule: RecurringRule
    postings: list[GeneratedPosting] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.postings)


def posting_label(rule: RecurringRule) -> str:
    """Build the note attached to generated transactions, e.g. "[monthly] Rent"."""
    return f"[{parse_frequency(rule.frequency).value}] {rule.title}"


def _reference_date(now: datetime | date) -> date:
    return now.date() if isinstance(now, datetime) else now


def advance_rule(
    rule: RecurringRule,
    now: datetime | date,
    *,
    policy: MonthPolicy = MonthPolicy.CLAMP,
    max_iterations: int = DEFAULT_MAX_CATCHUP,
) -> AdvanceResult:
    """Catch a rule up to a reference instant.

    While the rule's next due date is on or before the calendar date of now,
    emit a posting dated on the due date and step the due date by one
    period. Inactive rules come back unchanged with no postings.

    Args:
        rule: Rule snapshot to advance.
        now: Reference instant (a datetime or a plain date).
        policy: Day-clamping policy for monthly and yearly steps.
        max_iterations: Upper bound on postings emitted in one call.

    Returns:
        AdvanceResult with the postings and the updated rule.

    Raises:
        ConfigurationError: If the rule's frequency is not recognised.
        InternalConsistencyError: If a step does not move the due date forward
            or the loop exceeds max_iterations.
    """
    if not rule.is_active:
        return AdvanceResult(rule=rule)

    frequency = parse_frequency(rule.frequency)
    label = posting_label(rule)
    today = _reference_date(now)

    postings: list[GeneratedPosting] = []
    due = rule.next_due_date
    while due <= today:
        if len(postings) >= max_iterations:
            logger.error("Rule %s exceeded %d catch-up postings (due date %s)", rule.id, max_iterations, due)
            raise InternalConsistencyError(
                f"Recurring rule {rule.title!r} needs more than {max_iterations} postings to catch up"
            )
        postings.append(
            GeneratedPosting(
                rule_id=rule.id,
                amount=rule.amount,
                direction=rule.direction,
                posted_date=due,
                label=label,
                category_id=rule.category_id,
                ledger_id=rule.ledger_id,
            )
        )
        next_due = step_date(due, frequency, policy)
        if next_due <= due:
            raise InternalConsistencyError(f"Stepping {due} by {frequency.value} did not advance the due date")
        due = next_due

    if not postings:
        return AdvanceResult(rule=rule)

    logger.info("Rule %s (%s): %d posting(s), next due %s", rule.id, rule.title, len(postings), due)
    return AdvanceResult(rule=replace(rule, next_due_date=due), postings=postings)


def advance_rules(
    rules: Iterable[RecurringRule],
    now: datetime | date,
    *,
    policy: MonthPolicy = MonthPolicy.CLAMP,
    max_iterations: int = DEFAULT_MAX_CATCHUP,
) -> list[AdvanceResult]:
    """Advance every rule in a snapshot, one result per rule in input order."""
    return [advance_rule(rule, now, policy=policy, max_iterations=max_iterations) for rule in rules]


def posting_to_transaction(
    posting: GeneratedPosting,
    transaction_id: EntityId,
    created_at: datetime | None = None,
    category: CategoryRef | None = None,
) -> Transaction:
    """Materialize a posting as a transaction dated at midnight of its posting day.

    Args:
        posting: Posting produced by advance_rule.
        transaction_id: Identifier chosen by the host.
        created_at: Creation timestamp to record.
        category: Resolved category, if the host has one for posting.category_id.
    """
    return Transaction(
        id=transaction_id,
        amount=posting.amount,
        direction=posting.direction,
        date=datetime.combine(posting.posted_date, datetime.min.time()),
        note=posting.label,
        created_at=created_at,
        category=category,
        ledger_id=posting.ledger_id,
        recurring_rule_id=posting.rule_id,
        category_id=posting.category_id,
    )
