"""Tests for flashcount.domain.assets pure functions."""

from datetime import datetime
from decimal import Decimal

import pytest

from flashcount.domain.assets import (
    Account,
    AccountType,
    PhysicalAsset,
    PhysicalAssetCategory,
    actual_daily_cost,
    actual_profit,
    current_value,
    daily_cost,
    days_held,
    days_to_target,
    depreciable_cost,
    new_physical_asset,
    progress_to_target,
    signed_balance,
    summarize_net_worth,
)
from flashcount.domain.errors import ConfigurationError
from flashcount.domain.models import EntityId, Money

PURCHASED = datetime(2025, 1, 1, 10, 0)
NINETY_DAYS_LATER = datetime(2025, 4, 1, 10, 0)


def _phone(
    target: str = "5",
    sold_price: str | None = None,
    sold_date: datetime | None = None,
) -> PhysicalAsset:
    return PhysicalAsset(
        id=EntityId("asset-1"),
        name="Phone",
        category=PhysicalAssetCategory.PHONE,
        purchase_price=Money(Decimal(1000)),
        purchase_date=PURCHASED,
        salvage_value=Money(Decimal(100)),
        target_daily_cost=Money(Decimal(target)),
        sold_price=Money(Decimal(sold_price)) if sold_price else None,
        sold_date=sold_date,
    )


def _account(name: str, kind: AccountType, balance: str, archived: bool = False) -> Account:
    return Account(
        id=EntityId(name),
        name=name,
        type=kind,
        balance=Money(Decimal(balance)),
        is_archived=archived,
    )


class TestDepreciation:
    """Tests for days_held, depreciable_cost, daily_cost and current_value."""

    def test_daily_cost(self) -> None:
        """Should spread 900 of depreciable cost over 90 days as 10 per day."""
        asset = _phone()

        assert days_held(asset, NINETY_DAYS_LATER) == 90
        assert depreciable_cost(asset) == Decimal(900)
        assert daily_cost(asset, NINETY_DAYS_LATER) == Decimal(10)

    def test_days_held_at_least_one(self) -> None:
        """Should count the purchase day as one day held."""
        assert days_held(_phone(), PURCHASED) == 1

    def test_days_held_stops_at_sale(self) -> None:
        """Should measure to the sale date once sold."""
        asset = _phone(sold_price="600", sold_date=datetime(2025, 3, 2, 10, 0))

        assert days_held(asset, datetime(2026, 1, 1)) == 60

    def test_current_value_straight_line(self) -> None:
        """Should depreciate at the category's annual rate."""
        value = current_value(_phone(), NINETY_DAYS_LATER)

        assert float(value) == pytest.approx(1000 - 900 * 0.25 * 90 / 365)

    def test_current_value_floors_at_salvage(self) -> None:
        """Should never go below the salvage value."""
        assert current_value(_phone(), datetime(2040, 1, 1)) == Decimal(100)


class TestTarget:
    """Tests for progress_to_target and days_to_target."""

    def test_halfway(self) -> None:
        """Should be halfway after 90 of 180 target days."""
        asset = _phone(target="5")

        assert progress_to_target(asset, NINETY_DAYS_LATER) == pytest.approx(0.5)
        assert days_to_target(asset, NINETY_DAYS_LATER) == 90

    def test_reached(self) -> None:
        """Should cap progress at one and days remaining at zero."""
        asset = _phone(target="20")

        assert progress_to_target(asset, NINETY_DAYS_LATER) == 1.0
        assert days_to_target(asset, NINETY_DAYS_LATER) == 0

    def test_no_target(self) -> None:
        """Should report no progress without a target."""
        asset = _phone(target="0")

        assert progress_to_target(asset, NINETY_DAYS_LATER) == 0.0
        assert days_to_target(asset, NINETY_DAYS_LATER) is None


class TestSale:
    """Tests for actual_profit and actual_daily_cost."""

    def test_unsold(self) -> None:
        """Should have no realised figures before a sale."""
        asset = _phone()

        assert actual_profit(asset) is None
        assert actual_daily_cost(asset, NINETY_DAYS_LATER) is None

    def test_sold(self) -> None:
        """Should realise the loss over the days held."""
        asset = _phone(sold_price="600", sold_date=datetime(2025, 3, 2, 10, 0))

        assert actual_profit(asset) == Decimal(-400)
        assert float(actual_daily_cost(asset, NINETY_DAYS_LATER)) == pytest.approx(400 / 60)


class TestNewPhysicalAsset:
    """Tests for new_physical_asset."""

    def test_fills_category_defaults(self) -> None:
        """Should derive salvage and target daily cost from the category."""
        asset = new_physical_asset(
            EntityId("a"), "Laptop", PhysicalAssetCategory.LAPTOP, Decimal(7300), PURCHASED
        )

        assert asset.salvage_value == Decimal(730)
        assert asset.target_daily_cost == Decimal(18)
        assert asset.sold_price is None
        assert not asset.is_archived

    def test_keeps_explicit_values(self) -> None:
        """Should not override given salvage and target."""
        asset = new_physical_asset(
            EntityId("a"),
            "Car",
            PhysicalAssetCategory.CAR,
            Decimal(100000),
            PURCHASED,
            salvage_value=Decimal(40000),
            target_daily_cost=Decimal(50),
        )

        assert asset.salvage_value == Decimal(40000)
        assert asset.target_daily_cost == Decimal(50)

    def test_rejects_free_asset(self) -> None:
        """Should refuse a non-positive purchase price."""
        with pytest.raises(ConfigurationError):
            new_physical_asset(EntityId("a"), "Gift", PhysicalAssetCategory.OTHER, Decimal(0), PURCHASED)


class TestNetWorth:
    """Tests for signed_balance and summarize_net_worth."""

    def test_liabilities_are_negative(self) -> None:
        """Should negate credit card and loan balances."""
        assert signed_balance(_account("visa", AccountType.CREDIT_CARD, "1200")) == Decimal(-1200)
        assert signed_balance(_account("cash", AccountType.CASH, "300")) == Decimal(300)

    def test_summary_skips_archived(self) -> None:
        """Should total active accounts only."""
        accounts = [
            _account("bank", AccountType.BANK_CARD, "5000"),
            _account("cash", AccountType.CASH, "300"),
            _account("visa", AccountType.CREDIT_CARD, "1200"),
            _account("mortgage", AccountType.LOAN, "10000"),
            _account("old", AccountType.BANK_CARD, "999", archived=True),
        ]

        worth = summarize_net_worth(accounts)

        assert worth.total_assets == Decimal(5300)
        assert worth.total_liabilities == Decimal(11200)
        assert worth.net_worth == Decimal(-5900)

    def test_empty(self) -> None:
        """Should be zero without accounts."""
        assert summarize_net_worth([]).net_worth == 0
