"""Tests for budget_planner.summary."""

from __future__ import annotations

import math

from budget_planner.models import Frequency, make_item, new_budget
from budget_planner.summary import section_totals_frame, summarize


def _budget(**sections):
    budget = new_budget()
    return budget.touch(**{
        attr: tuple(make_item(name, amount, frequency) for name, amount, frequency in rows)
        for attr, rows in sections.items()
    })


def test_income_and_expenses_give_net_and_savings_rate():
    budget = _budget(
        income=[("Salary", 5000, Frequency.MONTHLY)],
        expenses=[("Rent", 3000, Frequency.MONTHLY)],
    )
    summary = summarize(budget)
    assert summary.monthly_net == 2000
    assert summary.annual_net == 24000
    assert summary.savings_rate == 40.0


def test_net_worth_can_be_negative():
    budget = _budget(
        liquid_assets=[("Savings", 10000, Frequency.ONE_TIME)],
        liabilities=[("Credit Card", 12000, Frequency.ONE_TIME)],
    )
    summary = summarize(budget)
    assert summary.liquid_available == -2000
    assert summary.net_worth == -2000


def test_summary_additivity_holds_exactly():
    budget = _budget(
        income=[("Salary", 4321.17, Frequency.MONTHLY), ("Bonus", 5000, Frequency.YEARLY)],
        expenses=[("Rent", 1234.56, Frequency.MONTHLY), ("Insurance", 999, Frequency.YEARLY)],
        liabilities=[("Loan Payment", 321.09, Frequency.MONTHLY), ("Loan", 15000, Frequency.ONE_TIME)],
    )
    summary = summarize(budget)
    assert summary.monthly_income - summary.monthly_expenses - summary.monthly_liability_payments == summary.monthly_net
    assert summary.annual_net == summary.monthly_net * 12


def test_one_time_liabilities_ignore_payment_items():
    balances = [("Student Loans", 20000, Frequency.ONE_TIME), ("Car Loan", 8000, Frequency.ONE_TIME)]
    base = summarize(_budget(liabilities=balances))
    with_payments = summarize(_budget(liabilities=balances + [
        ("Student Loan Payment", 250, Frequency.MONTHLY),
        ("Car Registration", 600, Frequency.YEARLY),
    ]))

    assert base.one_time_liabilities == 28000
    assert with_payments.one_time_liabilities == 28000
    assert with_payments.monthly_liability_payments == 300
    assert with_payments.total_liabilities == 28000 + 3000 + 600


def test_non_liquid_discount_applies_to_net_worth():
    budget = _budget(
        non_liquid_assets=[("Home", 400000, Frequency.ONE_TIME)],
        retirement=[("401(k)", 50000, Frequency.ONE_TIME)],
    )
    summary = summarize(budget)
    assert summary.non_liquid_at_discount == 300000
    assert summary.net_worth == 350000
    assert summary.has_extended_assets


def test_zero_income_gives_zero_savings_rate():
    budget = _budget(expenses=[("Rent", 1200, Frequency.MONTHLY)])
    summary = summarize(budget)
    assert summary.savings_rate == 0.0
    assert summary.monthly_burn == 1200
    assert summary.is_depleting


def test_empty_budget_summary():
    summary = summarize(new_budget())
    assert summary.item_count == 0
    assert summary.net_worth == 0
    assert summary.to_dict()['monthly_net'] == 0


def test_section_totals_frame():
    budget = _budget(
        income=[("Salary", 5000, Frequency.MONTHLY)],
        liquid_assets=[("Checking", 2000, Frequency.ONE_TIME), ("Savings", 3000, Frequency.ONE_TIME)],
    )
    frame = section_totals_frame(budget)
    assert list(frame.columns) == ['Section', 'Items', 'Total', 'Monthly']
    assert len(frame) == 6
    liquid = frame[frame['Section'] == 'Liquid Assets'].iloc[0]
    assert liquid['Items'] == 2
    assert liquid['Total'] == 5000
    income = frame[frame['Section'] == 'Income'].iloc[0]
    assert income['Monthly'] == 5000


def test_huge_amounts_never_give_non_finite_figures():
    budget = _budget(
        income=[("Windfall", 1e308, Frequency.MONTHLY)],
        expenses=[("Yacht", 1e308, Frequency.MONTHLY), ("Island", 1e308, Frequency.MONTHLY)],
        liquid_assets=[("Vault", 1e308, Frequency.ONE_TIME), ("Vault 2", 1e308, Frequency.ONE_TIME)],
    )
    figures = summarize(budget).to_dict()
    assert all(math.isfinite(value) for value in figures.values())
