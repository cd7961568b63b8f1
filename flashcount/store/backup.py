"""JSON backup codec.

A backup is a single JSON document holding every entity the app stores:

    {"version": ..., "createdAt": ..., "categories": [...], "ledgers": [...],
     "transactions": [...], "assets": [...], "physicalAssets": [...],
     "recurringRules": [...], "budgets": [...]}

Keys are camelCase, ids are strings, amounts are JSON numbers and dates are
ISO-8601 strings. This module converts between that payload and the domain
value types.

The app stores frequencies, account types and asset categories under its own
raw codes (e.g. "每月" for monthly). Both those codes and the English values
are read; the app's codes are written so it can import what we export. Dates
are written with a UTC offset and whole seconds, which is what its decoder
accepts.
"""

import json
import logging
import os
import stat
import tempfile
import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any, TypeVar

import pandas as pd

from flashcount.domain.assets import Account, AccountType, PhysicalAsset, PhysicalAssetCategory
from flashcount.domain.budget import Budget
from flashcount.domain.errors import BackupFormatError, FlashCountError, UnsupportedEntryError
from flashcount.domain.models import (
    Direction,
    EntityId,
    Frequency,
    Money,
    parse_direction,
    parse_frequency,
    to_money,
)
from flashcount.domain.recurring import AdvanceResult, RecurringRule, posting_to_transaction
from flashcount.domain.transactions import Category, CategoryRef, Ledger, Transaction

logger = logging.getLogger(__name__)

BACKUP_VERSION = "1.2.0"

FREQUENCY_CODES: dict[Frequency, str] = {
    Frequency.DAILY: "每天",
    Frequency.WEEKLY: "每周",
    Frequency.MONTHLY: "每月",
    Frequency.YEARLY: "每年",
}

ACCOUNT_TYPE_CODES: dict[AccountType, str] = {
    AccountType.BANK_CARD: "银行卡",
    AccountType.CASH: "现金",
    AccountType.INVESTMENT: "理财",
    AccountType.CREDIT_CARD: "信用卡",
    AccountType.LOAN: "贷款",
    AccountType.ONLINE_PAY: "网络账户",
    AccountType.OTHER: "其他",
}

ASSET_CATEGORY_CODES: dict[PhysicalAssetCategory, str] = {
    PhysicalAssetCategory.PHONE: "手机",
    PhysicalAssetCategory.LAPTOP: "笔记本",
    PhysicalAssetCategory.DESKTOP: "电脑",
    PhysicalAssetCategory.TABLET: "平板",
    PhysicalAssetCategory.HEADPHONE: "耳机",
    PhysicalAssetCategory.SPEAKER: "音箱",
    PhysicalAssetCategory.WATCH: "手表",
    PhysicalAssetCategory.CAMERA: "相机",
    PhysicalAssetCategory.CONSOLE: "游戏机",
    PhysicalAssetCategory.DRONE: "无人机",
    PhysicalAssetCategory.CAR: "汽车",
    PhysicalAssetCategory.HOUSE: "房产",
    PhysicalAssetCategory.OTHER: "其他",
}

E = TypeVar("E", bound=Enum)
T = TypeVar("T", Category, Ledger, Transaction, Account, PhysicalAsset, RecurringRule, Budget)


@dataclass(frozen=True)
class Snapshot:
    """Everything in one backup, as domain values."""

    version: str = BACKUP_VERSION
    created_at: datetime | None = None
    categories: list[Category] = field(default_factory=list)
    ledgers: list[Ledger] = field(default_factory=list)
    transactions: list[Transaction] = field(default_factory=list)
    accounts: list[Account] = field(default_factory=list)
    physical_assets: list[PhysicalAsset] = field(default_factory=list)
    recurring_rules: list[RecurringRule] = field(default_factory=list)
    budgets: list[Budget] = field(default_factory=list)

    def category_refs(self) -> dict[str, CategoryRef]:
        return {c.id: c.as_ref() for c in self.categories}


@dataclass(frozen=True)
class ImportResult:
    """How many entries of each kind a merge brought in, and how many it skipped."""

    categories: int = 0
    ledgers: int = 0
    transactions: int = 0
    accounts: int = 0
    physical_assets: int = 0
    recurring_rules: int = 0
    budgets: int = 0
    skipped: int = 0

    @property
    def imported(self) -> int:
        return (
            self.categories
            + self.ledgers
            + self.transactions
            + self.accounts
            + self.physical_assets
            + self.recurring_rules
            + self.budgets
        )

    @property
    def summary(self) -> str:
        counts = [
            ("categories", self.categories),
            ("ledgers", self.ledgers),
            ("transactions", self.transactions),
            ("accounts", self.accounts),
            ("physical assets", self.physical_assets),
            ("recurring rules", self.recurring_rules),
            ("budgets", self.budgets),
        ]
        parts = [f"{label} {count}" for label, count in counts if count > 0]
        text = "Imported: " + ", ".join(parts) if parts else "No new data"
        if self.skipped > 0:
            text += f"\nSkipped {self.skipped} existing or unsupported entries"
        return text


def parse_datetime(raw: Any) -> datetime:
    """Parse an ISO-8601 value to a naive local datetime.

    Timezone-aware values are converted to local time before the zone is dropped.

    Raises:
        BackupFormatError: If the value is not a parseable date.
    """
    if raw is None:
        raise BackupFormatError("Missing date")
    if not isinstance(raw, str):
        raise BackupFormatError(f"Dates must be ISO-8601 strings, got {raw!r}")
    try:
        timestamp = pd.to_datetime(raw)
    except (ValueError, TypeError, pd.errors.ParserError) as e:
        raise BackupFormatError(f"Invalid date {raw!r}: {e}") from e
    if pd.isna(timestamp):
        raise BackupFormatError(f"Invalid date {raw!r}")
    parsed = timestamp.to_pydatetime()
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def _optional_datetime(raw: Any) -> datetime | None:
    return None if raw is None else parse_datetime(raw)


def format_datetime(value: datetime | None) -> str | None:
    """Format a naive local datetime as ISO-8601 with its UTC offset, to the second."""
    if value is None:
        return None
    return value.replace(microsecond=0).astimezone().isoformat()


def _format_date(value: date) -> str | None:
    return format_datetime(datetime.combine(value, datetime.min.time()))


def _money(raw: Any) -> Money:
    if raw is None:
        raise BackupFormatError("Missing amount")
    return to_money(raw)


def _coded(raw: Any, enum_type: type[E], codes: dict[E, str], what: str) -> E:
    for member, code in codes.items():
        if raw == code:
            return member
    try:
        return enum_type(str(raw).lower())
    except ValueError:
        raise UnsupportedEntryError(f"Unknown {what} {raw!r}") from None


def _direction(item: dict[str, Any]) -> Direction:
    # The app itself only writes the boolean isExpense.
    if "direction" in item:
        return parse_direction(item["direction"])
    return Direction.EXPENSE if item.get("isExpense", True) else Direction.INCOME


def category_from_dto(item: dict[str, Any]) -> Category:
    return Category(
        id=EntityId(item["id"]),
        name=item["name"],
        icon=item.get("icon", "questionmark"),
        color_hex=item.get("colorHex", "#667EEA"),
        is_expense=item.get("isExpense", True),
        sort_order=item.get("sortOrder", 0),
        is_archived=item.get("isArchived", False),
    )


def ledger_from_dto(item: dict[str, Any]) -> Ledger:
    return Ledger(
        id=EntityId(item["id"]),
        name=item["name"],
        icon=item.get("icon", "book.fill"),
        color_hex=item.get("colorHex", "#667EEA"),
        is_default=item.get("isDefault", False),
        is_archived=item.get("isArchived", False),
        created_at=_optional_datetime(item.get("createdAt")),
        sort_order=item.get("sortOrder", 0),
    )


def transaction_from_dto(item: dict[str, Any], categories: dict[str, CategoryRef]) -> Transaction:
    category_id = item.get("categoryId")
    category = None
    if category_id is not None:
        category = categories.get(category_id)
        if category is None:
            logger.warning("Transaction %s references unknown category %s", item.get("id"), category_id)
    return Transaction(
        id=EntityId(item["id"]),
        amount=_money(item.get("amount")),
        direction=_direction(item),
        date=parse_datetime(item["date"]),
        note=item.get("note", ""),
        created_at=_optional_datetime(item.get("createdAt")),
        category=category,
        ledger_id=item.get("ledgerId"),
        recurring_rule_id=item.get("recurringRuleId"),
        category_id=category_id,
    )


def rule_from_dto(item: dict[str, Any]) -> RecurringRule:
    return RecurringRule(
        id=EntityId(item["id"]),
        title=item["title"],
        amount=_money(item.get("amount")),
        direction=_direction(item),
        frequency=_coded(item["frequency"], Frequency, FREQUENCY_CODES, "frequency"),
        next_due_date=parse_datetime(item["nextDueDate"]).date(),
        is_active=item.get("isActive", True),
        note=item.get("note", ""),
        created_at=_optional_datetime(item.get("createdAt")),
        category_id=item.get("categoryId"),
        ledger_id=item.get("ledgerId"),
    )


def budget_from_dto(item: dict[str, Any]) -> Budget:
    return Budget(
        id=EntityId(item["id"]),
        monthly_limit=_money(item.get("monthlyLimit")),
        year=int(item["year"]),
        month=int(item["month"]),
        ledger_id=item.get("ledgerId"),
        category_id=item.get("categoryId"),
        created_at=_optional_datetime(item.get("createdAt")),
    )


def account_from_dto(item: dict[str, Any]) -> Account:
    return Account(
        id=EntityId(item["id"]),
        name=item["name"],
        type=_coded(item.get("type", "other"), AccountType, ACCOUNT_TYPE_CODES, "account type"),
        balance=_money(item.get("balance")),
        icon=item.get("icon", ""),
        color_hex=item.get("colorHex", "#667EEA"),
        note=item.get("note", ""),
        is_archived=item.get("isArchived", False),
        updated_at=_optional_datetime(item.get("updatedAt")),
        created_at=_optional_datetime(item.get("createdAt")),
    )


def physical_asset_from_dto(item: dict[str, Any]) -> PhysicalAsset:
    sold_price = item.get("soldPrice")
    return PhysicalAsset(
        id=EntityId(item["id"]),
        name=item["name"],
        category=_coded(
            item.get("category", "other"), PhysicalAssetCategory, ASSET_CATEGORY_CODES, "asset category"
        ),
        purchase_price=_money(item.get("purchasePrice")),
        purchase_date=parse_datetime(item["purchaseDate"]),
        salvage_value=_money(item.get("salvageValue")),
        target_daily_cost=_money(item.get("targetDailyCost")),
        sold_price=None if sold_price is None else to_money(sold_price),
        sold_date=_optional_datetime(item.get("soldDate")),
        note=item.get("note", ""),
        is_archived=item.get("isArchived", False),
    )


def _load_section(
    payload: dict[str, Any],
    key: str,
    convert: Callable[[dict[str, Any]], Any],
    unsupported: list[str] | None = None,
) -> list[Any]:
    """Convert one section's entries.

    When unsupported is a list, entries with an unknown frequency, type or
    category are logged, recorded there as "key[index]" and left out.
    Otherwise they fail the whole load like any other bad entry.
    """
    items = payload.get(key, [])
    if not isinstance(items, list):
        raise BackupFormatError(f"'{key}' must be a list")
    result = []
    for index, item in enumerate(items):
        try:
            result.append(convert(item))
        except KeyError as e:
            raise BackupFormatError(f"{key}[{index}] is missing field {e}") from e
        except (TypeError, AttributeError) as e:
            raise BackupFormatError(f"{key}[{index}] is malformed: {e}") from e
        except UnsupportedEntryError as e:
            if unsupported is None:
                raise BackupFormatError(f"{key}[{index}]: {e}") from e
            logger.warning("Skipping %s[%d]: %s", key, index, e)
            unsupported.append(f"{key}[{index}]")
        except FlashCountError as e:
            raise BackupFormatError(f"{key}[{index}]: {e}") from e
    return result


def snapshot_from_payload(payload: Any, unsupported: list[str] | None = None) -> Snapshot:
    """Convert a decoded backup document to a Snapshot.

    Args:
        payload: Decoded JSON document.
        unsupported: If given, entries with unknown enum codes are skipped and
            recorded here instead of failing the load.

    Raises:
        BackupFormatError: If the payload is not a backup or an entry is invalid.
    """
    if not isinstance(payload, dict):
        raise BackupFormatError("Backup must be a JSON object")

    categories = _load_section(payload, "categories", category_from_dto)
    refs = {c.id: c.as_ref() for c in categories}

    return Snapshot(
        version=str(payload.get("version", BACKUP_VERSION)),
        created_at=_optional_datetime(payload.get("createdAt")),
        categories=categories,
        ledgers=_load_section(payload, "ledgers", ledger_from_dto),
        transactions=_load_section(payload, "transactions", lambda item: transaction_from_dto(item, refs)),
        accounts=_load_section(payload, "assets", account_from_dto, unsupported),
        physical_assets=_load_section(payload, "physicalAssets", physical_asset_from_dto, unsupported),
        recurring_rules=_load_section(payload, "recurringRules", rule_from_dto, unsupported),
        budgets=_load_section(payload, "budgets", budget_from_dto),
    )


def category_to_dto(category: Category) -> dict[str, Any]:
    return {
        "id": category.id,
        "name": category.name,
        "icon": category.icon,
        "colorHex": category.color_hex,
        "isExpense": category.is_expense,
        "sortOrder": category.sort_order,
        "isArchived": category.is_archived,
    }


def ledger_to_dto(ledger: Ledger, stamp: datetime) -> dict[str, Any]:
    return {
        "id": ledger.id,
        "name": ledger.name,
        "icon": ledger.icon,
        "colorHex": ledger.color_hex,
        "isDefault": ledger.is_default,
        "isArchived": ledger.is_archived,
        "createdAt": format_datetime(ledger.created_at or stamp),
        "sortOrder": ledger.sort_order,
    }


def transaction_to_dto(txn: Transaction) -> dict[str, Any]:
    return {
        "id": txn.id,
        "amount": float(txn.amount),
        "direction": txn.direction.value,
        "isExpense": txn.is_expense,
        "note": txn.note,
        "date": format_datetime(txn.date),
        "createdAt": format_datetime(txn.created_at or txn.date),
        "categoryId": txn.category_id,
        "ledgerId": txn.ledger_id,
        "recurringRuleId": txn.recurring_rule_id,
    }


def rule_to_dto(rule: RecurringRule, stamp: datetime) -> dict[str, Any]:
    return {
        "id": rule.id,
        "title": rule.title,
        "amount": float(rule.amount),
        "direction": rule.direction.value,
        "isExpense": rule.direction is Direction.EXPENSE,
        "frequency": FREQUENCY_CODES[parse_frequency(rule.frequency)],
        "nextDueDate": _format_date(rule.next_due_date),
        "isActive": rule.is_active,
        "note": rule.note,
        "createdAt": format_datetime(rule.created_at or stamp),
        "categoryId": rule.category_id,
        "ledgerId": rule.ledger_id,
    }


def budget_to_dto(budget: Budget, stamp: datetime) -> dict[str, Any]:
    return {
        "id": budget.id,
        "monthlyLimit": float(budget.monthly_limit),
        "year": budget.year,
        "month": budget.month,
        "createdAt": format_datetime(budget.created_at or stamp),
        "ledgerId": budget.ledger_id,
        "categoryId": budget.category_id,
    }


def account_to_dto(account: Account, stamp: datetime) -> dict[str, Any]:
    return {
        "id": account.id,
        "name": account.name,
        "type": ACCOUNT_TYPE_CODES[account.type],
        "balance": float(account.balance),
        "icon": account.icon,
        "colorHex": account.color_hex,
        "note": account.note,
        "isArchived": account.is_archived,
        "updatedAt": format_datetime(account.updated_at or stamp),
        "createdAt": format_datetime(account.created_at or stamp),
    }


def physical_asset_to_dto(asset: PhysicalAsset) -> dict[str, Any]:
    return {
        "id": asset.id,
        "name": asset.name,
        "category": ASSET_CATEGORY_CODES[asset.category],
        "purchasePrice": float(asset.purchase_price),
        "purchaseDate": format_datetime(asset.purchase_date),
        "salvageValue": float(asset.salvage_value),
        "targetDailyCost": float(asset.target_daily_cost),
        "soldPrice": None if asset.sold_price is None else float(asset.sold_price),
        "soldDate": format_datetime(asset.sold_date),
        "note": asset.note,
        "isArchived": asset.is_archived,
    }


def snapshot_to_payload(snapshot: Snapshot, created_at: datetime | None = None) -> dict[str, Any]:
    """Convert a Snapshot to a JSON-ready backup document.

    Entries without a creation time are stamped with the backup's own time,
    since the app requires one on ledgers, accounts, rules and budgets.
    """
    stamp = created_at or snapshot.created_at or datetime.now()
    return {
        "version": snapshot.version,
        "createdAt": format_datetime(stamp),
        "categories": [category_to_dto(c) for c in snapshot.categories],
        "ledgers": [ledger_to_dto(ledger, stamp) for ledger in snapshot.ledgers],
        "transactions": [transaction_to_dto(t) for t in snapshot.transactions],
        "assets": [account_to_dto(a, stamp) for a in snapshot.accounts],
        "physicalAssets": [physical_asset_to_dto(a) for a in snapshot.physical_assets],
        "recurringRules": [rule_to_dto(r, stamp) for r in snapshot.recurring_rules],
        "budgets": [budget_to_dto(b, stamp) for b in snapshot.budgets],
    }


def _read_payload(path: Path) -> Any:
    with open(path, encoding="utf-8") as f:
        try:
            return json.load(f)
        except json.JSONDecodeError as e:
            raise BackupFormatError(f"{path} is not valid JSON: {e}") from e


def load_backup(path: Path) -> Snapshot:
    """Read a backup file.

    Raises:
        FileNotFoundError: If the file does not exist.
        BackupFormatError: If the file is not valid JSON or not a backup.
    """
    snapshot = snapshot_from_payload(_read_payload(path))
    logger.debug(
        "Loaded %s: %d transactions, %d rules, %d budgets",
        path,
        len(snapshot.transactions),
        len(snapshot.recurring_rules),
        len(snapshot.budgets),
    )
    return snapshot


def dump_backup(snapshot: Snapshot, path: Path, created_at: datetime | None = None) -> None:
    """Write a backup file (pretty-printed, sorted keys).

    The document goes to a temporary file beside the target, which then
    replaces it, so a failed write leaves the previous backup intact.
    """
    payload = snapshot_to_payload(snapshot, created_at)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, sort_keys=True, ensure_ascii=False)
            f.write("\n")
            f.flush()
            os.fsync(f.fileno())
        if path.exists():
            os.chmod(tmp_path, stat.S_IMODE(path.stat().st_mode))
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
    logger.debug("Wrote %s", path)


def _new_entries(existing: Iterable[T], incoming: Iterable[T]) -> tuple[list[T], int]:
    seen = {item.id for item in existing}
    fresh: list[T] = []
    skipped = 0
    for item in incoming:
        if item.id in seen:
            skipped += 1
            continue
        seen.add(item.id)
        fresh.append(item)
    return fresh, skipped


def merge_snapshots(base: Snapshot, incoming: Snapshot) -> tuple[Snapshot, ImportResult]:
    """Add the entries of incoming that base does not have yet.

    Entries are matched by id; an id already present in base (or earlier in
    incoming) is skipped and counted. Imported transactions resolve their
    category against the merged category list. The merged snapshot keeps
    base's version and timestamp.

    Returns:
        The merged snapshot and per-kind import counts.
    """
    categories, skipped_categories = _new_entries(base.categories, incoming.categories)
    ledgers, skipped_ledgers = _new_entries(base.ledgers, incoming.ledgers)
    transactions, skipped_transactions = _new_entries(base.transactions, incoming.transactions)
    accounts, skipped_accounts = _new_entries(base.accounts, incoming.accounts)
    physical_assets, skipped_physical = _new_entries(base.physical_assets, incoming.physical_assets)
    rules, skipped_rules = _new_entries(base.recurring_rules, incoming.recurring_rules)
    budgets, skipped_budgets = _new_entries(base.budgets, incoming.budgets)

    merged_categories = [*base.categories, *categories]
    refs = {c.id: c.as_ref() for c in merged_categories}
    transactions = [
        replace(t, category=refs.get(t.category_id) if t.category_id is not None else None) for t in transactions
    ]

    merged = replace(
        base,
        categories=merged_categories,
        ledgers=[*base.ledgers, *ledgers],
        transactions=[*base.transactions, *transactions],
        accounts=[*base.accounts, *accounts],
        physical_assets=[*base.physical_assets, *physical_assets],
        recurring_rules=[*base.recurring_rules, *rules],
        budgets=[*base.budgets, *budgets],
    )
    result = ImportResult(
        categories=len(categories),
        ledgers=len(ledgers),
        transactions=len(transactions),
        accounts=len(accounts),
        physical_assets=len(physical_assets),
        recurring_rules=len(rules),
        budgets=len(budgets),
        skipped=(
            skipped_categories
            + skipped_ledgers
            + skipped_transactions
            + skipped_accounts
            + skipped_physical
            + skipped_rules
            + skipped_budgets
        ),
    )
    logger.info("Merged backup: %d imported, %d skipped", result.imported, result.skipped)
    return merged, result


def import_backup(base: Snapshot, path: Path) -> tuple[Snapshot, ImportResult]:
    """Merge a backup file into base.

    Entries of the file with an unknown frequency, account type or asset
    category are skipped and counted rather than failing the import.

    Raises:
        FileNotFoundError: If the file does not exist.
        BackupFormatError: If the file is not valid JSON or not a backup.
    """
    unsupported: list[str] = []
    incoming = snapshot_from_payload(_read_payload(path), unsupported)
    merged, result = merge_snapshots(base, incoming)
    return merged, replace(result, skipped=result.skipped + len(unsupported))


def apply_advance_results(
    snapshot: Snapshot,
    results: Iterable[AdvanceResult],
    now: datetime,
    new_id: Callable[[], str] = lambda: str(uuid.uuid4()).upper(),
) -> Snapshot:
    """Persist engine output into a new snapshot.

    Postings become transactions appended in order; advanced rules replace
    their previous versions. Rules without postings are left as they were.
    """
    results = list(results)
    refs = snapshot.category_refs()
    updated_rules = {r.rule.id: r.rule for r in results if r.changed}
    new_transactions = [
        posting_to_transaction(
            posting,
            EntityId(new_id()),
            created_at=now,
            category=refs.get(posting.category_id) if posting.category_id else None,
        )
        for result in results
        if result.changed
        for posting in result.postings
    ]
    if not new_transactions:
        return snapshot
    return replace(
        snapshot,
        transactions=[*snapshot.transactions, *new_transactions],
        recurring_rules=[updated_rules.get(rule.id, rule) for rule in snapshot.recurring_rules],
    )
