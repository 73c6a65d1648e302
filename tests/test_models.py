"""Unit tests for budget_planner.models."""

from __future__ import annotations

import math

import pytest

from budget_planner.models import (
    AssetType,
    Frequency,
    InvalidLineItem,
    Section,
    clamp_discount,
    make_item,
    new_budget,
    normalize,
    round2,
)

AMOUNTS = [0, 1, 99.99, 100, 1000, 1234.56, 2500.5, -40, 1e6]


@pytest.mark.parametrize("amount", AMOUNTS)
def test_normalize_matches_frequency_rules(amount) -> None:
    assert normalize(amount, Frequency.MONTHLY) == (amount * 12, amount)
    assert normalize(amount, Frequency.YEARLY) == (amount, round2(amount / 12))
    assert normalize(amount, Frequency.ONE_TIME) == (amount, 0.0)


@pytest.mark.parametrize("frequency", list(Frequency))
def test_normalize_is_stable_across_calls(frequency) -> None:
    first = normalize(1000, frequency)
    assert normalize(1000, frequency) == first
    item = make_item("Rent", 1000, frequency)
    again = item.with_changes(name="Rent")
    assert (again.total_value, again.monthly_value) == (item.total_value, item.monthly_value)


def test_yearly_monthly_value_is_rounded_to_cents() -> None:
    assert normalize(1000, Frequency.YEARLY).monthly == 83.33
    assert normalize(100, "yearly").monthly == 8.33


def test_round2_rounds_half_away_from_zero_and_is_idempotent() -> None:
    assert round2(2.675) == 2.68
    assert round2(1.005) == 1.01
    assert round2(-1.005) == -1.01
    for value in (0.005, 83.333333, 12.345, -7.125):
        assert round2(round2(value)) == round2(value)


def test_non_finite_and_missing_amounts_become_zero() -> None:
    assert make_item("a", float("nan")).amount == 0.0
    assert make_item("b", float("inf")).amount == 0.0
    assert make_item("c", None).amount == 0.0
    assert make_item("d", "not a number").amount == 0.0


def test_frequency_parse_accepts_legacy_spellings() -> None:
    assert Frequency.parse("Monthly") is Frequency.MONTHLY
    assert Frequency.parse("Yearly") is Frequency.YEARLY
    assert Frequency.parse("OneTime") is Frequency.ONE_TIME
    assert Frequency.parse("one-time") is Frequency.ONE_TIME
    with pytest.raises(ValueError):
        Frequency.parse("weekly")


def test_make_item_derives_totals() -> None:
    item = make_item("Salary", 5000, Frequency.MONTHLY)
    assert item.total_value == 60000
    assert item.monthly_value == 5000
    assert item.id


def test_priced_item_amount_comes_from_quantity_and_price() -> None:
    item = make_item(
        "Bitcoin", 5, Frequency.ONE_TIME,
        asset_type=AssetType.CRYPTO, ticker="bitcoin", quantity=0.5, live_price=60000.123,
    )
    assert item.is_priced
    assert item.amount == 30000.06
    assert item.total_value == 30000.06
    assert item.monthly_value == 0.0


def test_price_fields_require_market_asset_type() -> None:
    with pytest.raises(InvalidLineItem):
        make_item("Shares", 100, quantity=3)
    with pytest.raises(InvalidLineItem):
        make_item("Shares", 100, asset_type=AssetType.MANUAL, ticker="AAPL")
    # ValueError subclass, so callers can catch either
    assert issubclass(InvalidLineItem, ValueError)


def test_with_changes_recomputes_and_keeps_id() -> None:
    item = make_item("Insurance", 1200, Frequency.MONTHLY)
    yearly = item.with_changes(frequency=Frequency.YEARLY)
    assert yearly.id == item.id
    assert yearly.total_value == 1200
    assert yearly.monthly_value == 100
    with pytest.raises(TypeError):
        item.with_changes(colour="red")


def test_section_defaults() -> None:
    assert Section.INCOME.default_frequency is Frequency.MONTHLY
    assert Section.EXPENSES.default_frequency is Frequency.MONTHLY
    for section in (Section.LIQUID_ASSETS, Section.NON_LIQUID_ASSETS, Section.RETIREMENT, Section.LIABILITIES):
        assert section.default_frequency is Frequency.ONE_TIME
    assert Section('liquidAssets').attr == 'liquid_assets'


def test_new_budget_is_empty_with_default_discount() -> None:
    budget = new_budget()
    assert budget.name == "My Budget"
    assert budget.is_empty
    assert budget.non_liquid_discount == 25.0
    assert budget.created_at == budget.updated_at


def test_clamp_discount() -> None:
    assert clamp_discount(90) == 75.0
    assert clamp_discount(-5) == 0.0
    assert clamp_discount(30) == 30.0
    assert not math.isnan(clamp_discount(float("nan")))


def test_normalize_never_reports_overflowed_totals() -> None:
    huge = normalize(1e308, Frequency.MONTHLY)
    assert huge.monthly == 1e308
    assert math.isfinite(huge.total)
