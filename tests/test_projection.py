"""Tests for runway and projection calculations."""

from __future__ import annotations

import math

from budget_planner.models import Frequency, make_item, new_budget
from budget_planner.projection import (
    depletion_year,
    growth_milestones,
    project_runway,
    projection_frame,
    runway_months,
    runway_years,
)
from budget_planner.summary import summarize


def _budget(**sections):
    budget = new_budget()
    return budget.touch(**{
        attr: tuple(make_item(name, amount, frequency) for name, amount, frequency in rows)
        for attr, rows in sections.items()
    })


def test_runway_twelve_months_and_depletion_at_year_one():
    budget = _budget(
        expenses=[("Rent", 500, Frequency.MONTHLY)],
        liquid_assets=[("Savings", 6000, Frequency.ONE_TIME)],
    )
    summary = summarize(budget)
    assert summary.monthly_burn == 500
    assert runway_months(summary) == 12.0
    assert runway_years(summary) == 1.0

    points = project_runway(budget, summary)
    assert points[0].liquid_balance == 6000
    assert points[1].liquid_balance == 0
    assert len(points) == 2
    assert points[0].extended_balance is None
    assert depletion_year(points) == math.ceil(runway_months(summary) / 12)


def test_no_runway_when_not_burning():
    surplus = _budget(
        income=[("Salary", 5000, Frequency.MONTHLY)],
        expenses=[("Rent", 2000, Frequency.MONTHLY)],
        liquid_assets=[("Savings", 1_000_000, Frequency.ONE_TIME)],
    )
    breakeven = _budget(
        income=[("Salary", 2000, Frequency.MONTHLY)],
        expenses=[("Rent", 2000, Frequency.MONTHLY)],
        liquid_assets=[("Savings", 5000, Frequency.ONE_TIME)],
    )
    assert runway_months(summarize(surplus)) is None
    assert runway_months(summarize(breakeven)) is None


def test_no_runway_without_liquid_funds():
    budget = _budget(expenses=[("Rent", 900, Frequency.MONTHLY)])
    assert runway_months(summarize(budget)) is None


def test_growth_projection_runs_to_horizon():
    budget = _budget(
        income=[("Salary", 5000, Frequency.MONTHLY)],
        expenses=[("Rent", 4000, Frequency.MONTHLY)],
        liquid_assets=[("Savings", 1000, Frequency.ONE_TIME)],
    )
    points = project_runway(budget, horizon_years=10)
    assert len(points) == 11
    assert points[10].liquid_balance == 1000 + 12000 * 10
    assert depletion_year(points) is None


def test_extended_track_outlasts_liquid_track():
    budget = _budget(
        expenses=[("Living", 1000, Frequency.MONTHLY)],
        liquid_assets=[("Savings", 12000, Frequency.ONE_TIME)],
        retirement=[("401(k)", 24000, Frequency.ONE_TIME)],
    )
    points = project_runway(budget)
    # liquid: 12000 -> 0 after one year; extended: 36000 -> 0 after three
    assert [p.liquid_balance for p in points] == [12000, 0, 0, 0]
    assert [p.extended_balance for p in points] == [36000, 24000, 12000, 0]
    assert depletion_year(points) == 1


def test_negative_liquid_available_starts_at_zero():
    budget = _budget(
        expenses=[("Living", 100, Frequency.MONTHLY)],
        liquid_assets=[("Cash", 1000, Frequency.ONE_TIME)],
        liabilities=[("Debt", 5000, Frequency.ONE_TIME)],
    )
    points = project_runway(budget)
    assert points[0].liquid_balance == 0
    assert len(points) == 1


def test_growth_milestones():
    budget = _budget(
        income=[("Salary", 3000, Frequency.MONTHLY)],
        expenses=[("Rent", 2500, Frequency.MONTHLY)],
    )
    summary = summarize(budget)
    assert growth_milestones(summary) == {1: 6000, 2: 12000, 5: 30000}
    losing = summarize(_budget(expenses=[("Rent", 100, Frequency.MONTHLY)]))
    assert growth_milestones(losing) == {}


def test_projection_frame_long_format():
    budget = _budget(
        income=[("Salary", 2000, Frequency.MONTHLY)],
        non_liquid_assets=[("Car", 10000, Frequency.ONE_TIME)],
    )
    frame = projection_frame(project_runway(budget, horizon_years=2))
    assert list(frame.columns) == ['Year', 'Track', 'Balance']
    assert len(frame) == 6
    assert set(frame['Track']) == {'Liquid', 'Extended'}
    assert projection_frame([]).empty


def test_projection_of_huge_budget_stays_finite():
    budget = _budget(
        income=[("Windfall", 1e307, Frequency.MONTHLY)],
        liquid_assets=[("Vault", 1e308, Frequency.ONE_TIME)],
    )
    points = project_runway(budget)
    assert all(math.isfinite(point.liquid_balance) for point in points)
