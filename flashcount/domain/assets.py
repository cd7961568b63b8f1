"""Physical-asset depreciation and account net worth.

All functions are pure; "now" is always passed in. Amounts are Decimals,
ratios and progress values are floats.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum

from flashcount.domain.errors import ConfigurationError
from flashcount.domain.models import EntityId, Money, to_money

DAYS_PER_YEAR = 365


class PhysicalAssetCategory(str, Enum):
    """Kind of physical asset, with its default depreciation constants."""

    PHONE = "phone"
    LAPTOP = "laptop"
    DESKTOP = "desktop"
    TABLET = "tablet"
    HEADPHONE = "headphone"
    SPEAKER = "speaker"
    WATCH = "watch"
    CAMERA = "camera"
    CONSOLE = "console"
    DRONE = "drone"
    CAR = "car"
    HOUSE = "house"
    OTHER = "other"

    @property
    def annual_depreciation_rate(self) -> float:
        """Typical first-year depreciation rate."""
        return _ANNUAL_RATES[self]

    @property
    def salvage_ratio(self) -> float:
        """Typical resale value as a fraction of purchase price."""
        return _SALVAGE_RATIOS[self]

    @property
    def icon(self) -> str:
        return _ICONS[self]


_ANNUAL_RATES = {
    PhysicalAssetCategory.PHONE: 0.25,
    PhysicalAssetCategory.LAPTOP: 0.25,
    PhysicalAssetCategory.DESKTOP: 0.20,
    PhysicalAssetCategory.TABLET: 0.20,
    PhysicalAssetCategory.HEADPHONE: 0.20,
    PhysicalAssetCategory.SPEAKER: 0.15,
    PhysicalAssetCategory.WATCH: 0.20,
    PhysicalAssetCategory.CAMERA: 0.15,
    PhysicalAssetCategory.CONSOLE: 0.20,
    PhysicalAssetCategory.DRONE: 0.25,
    PhysicalAssetCategory.CAR: 0.20,
    PhysicalAssetCategory.HOUSE: 0.02,
    PhysicalAssetCategory.OTHER: 0.20,
}

_SALVAGE_RATIOS = {
    PhysicalAssetCategory.PHONE: 0.15,
    PhysicalAssetCategory.LAPTOP: 0.10,
    PhysicalAssetCategory.DESKTOP: 0.10,
    PhysicalAssetCategory.TABLET: 0.15,
    PhysicalAssetCategory.HEADPHONE: 0.05,
    PhysicalAssetCategory.SPEAKER: 0.10,
    PhysicalAssetCategory.WATCH: 0.20,
    PhysicalAssetCategory.CAMERA: 0.20,
    PhysicalAssetCategory.CONSOLE: 0.10,
    PhysicalAssetCategory.DRONE: 0.10,
    PhysicalAssetCategory.CAR: 0.30,
    PhysicalAssetCategory.HOUSE: 0.80,
    PhysicalAssetCategory.OTHER: 0.10,
}

_ICONS = {
    PhysicalAssetCategory.PHONE: "iphone",
    PhysicalAssetCategory.LAPTOP: "laptopcomputer",
    PhysicalAssetCategory.DESKTOP: "desktopcomputer",
    PhysicalAssetCategory.TABLET: "ipad",
    PhysicalAssetCategory.HEADPHONE: "headphones",
    PhysicalAssetCategory.SPEAKER: "hifispeaker.fill",
    PhysicalAssetCategory.WATCH: "applewatch",
    PhysicalAssetCategory.CAMERA: "camera.fill",
    PhysicalAssetCategory.CONSOLE: "gamecontroller.fill",
    PhysicalAssetCategory.DRONE: "airplane",
    PhysicalAssetCategory.CAR: "car.fill",
    PhysicalAssetCategory.HOUSE: "house.fill",
    PhysicalAssetCategory.OTHER: "cube.fill",
}


@dataclass(frozen=True)
class PhysicalAsset:
    """Something bought to keep (a phone, a car) whose cost is spread over time."""

    id: EntityId
    name: str
    category: PhysicalAssetCategory
    purchase_price: Money
    purchase_date: datetime
    salvage_value: Money
    target_daily_cost: Money
    sold_price: Money | None = None
    sold_date: datetime | None = None
    note: str = ""
    is_archived: bool = False


def new_physical_asset(
    id: EntityId,
    name: str,
    category: PhysicalAssetCategory,
    purchase_price: Decimal,
    purchase_date: datetime,
    salvage_value: Decimal | None = None,
    target_daily_cost: Decimal | None = None,
    note: str = "",
) -> PhysicalAsset:
    """Create an asset, filling category defaults.

    Salvage defaults to purchase price times the category salvage ratio; the
    target daily cost defaults to the depreciable cost spread over a year.

    Raises:
        ConfigurationError: If the purchase price is not positive.
    """
    if purchase_price <= 0:
        raise ConfigurationError(f"Purchase price of {name!r} must be positive, got {purchase_price}")
    if salvage_value is None:
        salvage_value = purchase_price * to_money(category.salvage_ratio)
    if target_daily_cost is None:
        target_daily_cost = (purchase_price - salvage_value) / DAYS_PER_YEAR
    return PhysicalAsset(
        id=id,
        name=name,
        category=category,
        purchase_price=Money(purchase_price),
        purchase_date=purchase_date,
        salvage_value=Money(salvage_value),
        target_daily_cost=Money(target_daily_cost),
        note=note,
    )


def days_held(asset: PhysicalAsset, now: datetime) -> int:
    """Whole days between purchase and sale (or now), at least 1."""
    end = asset.sold_date or now
    return max(1, (end - asset.purchase_date).days)


def depreciable_cost(asset: PhysicalAsset) -> Money:
    """Purchase price minus estimated salvage value."""
    return Money(asset.purchase_price - asset.salvage_value)


def daily_cost(asset: PhysicalAsset, now: datetime) -> Money:
    """Depreciable cost spread over the days held so far."""
    return Money(depreciable_cost(asset) / days_held(asset, now))


def current_value(asset: PhysicalAsset, now: datetime) -> Money:
    """Straight-line estimate of today's value, never below salvage."""
    rate = to_money(asset.category.annual_depreciation_rate)
    daily_depreciation = depreciable_cost(asset) / (DAYS_PER_YEAR / rate)
    depreciated = asset.purchase_price - daily_depreciation * days_held(asset, now)
    return Money(max(asset.salvage_value, depreciated))


def _target_days(asset: PhysicalAsset) -> Decimal:
    return depreciable_cost(asset) / asset.target_daily_cost


def progress_to_target(asset: PhysicalAsset, now: datetime) -> float:
    """Fraction (0 to 1) of the way to reaching the target daily cost."""
    if asset.target_daily_cost <= 0:
        return 0.0
    target_days = float(_target_days(asset))
    if target_days <= 0:
        return 1.0
    return min(1.0, days_held(asset, now) / target_days)


def days_to_target(asset: PhysicalAsset, now: datetime) -> int | None:
    """Days still to hold before the daily cost reaches target, None without a target."""
    if asset.target_daily_cost <= 0:
        return None
    remaining = int(_target_days(asset)) - days_held(asset, now)
    return max(remaining, 0)


def actual_profit(asset: PhysicalAsset) -> Money | None:
    """Sale price minus purchase price, once sold."""
    if asset.sold_price is None:
        return None
    return Money(asset.sold_price - asset.purchase_price)


def actual_daily_cost(asset: PhysicalAsset, now: datetime) -> Money | None:
    """Realised cost per day held, once sold."""
    if asset.sold_price is None:
        return None
    return Money((asset.purchase_price - asset.sold_price) / days_held(asset, now))


class AccountType(str, Enum):
    """Kind of money account. Credit cards and loans are liabilities."""

    BANK_CARD = "bank_card"
    CASH = "cash"
    INVESTMENT = "investment"
    CREDIT_CARD = "credit_card"
    LOAN = "loan"
    ONLINE_PAY = "online_pay"
    OTHER = "other"

    @property
    def is_liability(self) -> bool:
        return self in (AccountType.CREDIT_CARD, AccountType.LOAN)


@dataclass(frozen=True)
class Account:
    """Asset or liability balance; balance is positive and the type gives the sign."""

    id: EntityId
    name: str
    type: AccountType
    balance: Money
    icon: str = ""
    color_hex: str = "#667EEA"
    note: str = ""
    is_archived: bool = False
    updated_at: datetime | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class NetWorth:
    """Totals over active accounts."""

    total_assets: Money
    total_liabilities: Money
    net_worth: Money


def signed_balance(account: Account) -> Money:
    """Balance negated for liabilities."""
    return Money(-account.balance if account.type.is_liability else account.balance)


def summarize_net_worth(accounts: Iterable[Account]) -> NetWorth:
    """Sum non-archived accounts into assets, liabilities and net worth."""
    assets = Decimal(0)
    liabilities = Decimal(0)
    for account in accounts:
        if account.is_archived:
            continue
        if account.type.is_liability:
            liabilities += account.balance
        else:
            assets += account.balance
    return NetWorth(
        total_assets=Money(assets),
        total_liabilities=Money(liabilities),
        net_worth=Money(assets - liabilities),
    )
