"""Tests for the budget tool payload."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from budget_planner.config import DEFAULT_BUDGET_NAME
from budget_planner.server import SUGGESTED_FOLLOWUPS, BudgetToolInput, build_tool_output

NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


def test_tool_output_from_explicit_fields():
    params = BudgetToolInput(monthly_income=6000, rent=1500, liquid_assets=12000)
    out = build_tool_output(params, now=NOW)

    assert out['ready'] is True
    assert out['timestamp'] == NOW.isoformat()
    assert out['input_source'] == 'user'
    assert out['fields'] == {'monthly_income': 6000.0, 'rent': 1500.0, 'liquid_assets': 12000.0}

    summary = out['summary']
    assert summary['budget_name'] is None
    assert summary['monthly_income'] == 6000
    assert summary['monthly_expenses'] == 1500
    assert summary['liquid_assets'] == 12000
    assert summary['runway_months'] is None
    assert summary['runway_years'] is None

    assert out['budget']['name'] == DEFAULT_BUDGET_NAME
    assert out['projection'][0] == {'year': 0, 'liquid_balance': 12000.0, 'extended_balance': None}
    assert out['suggested_followups'] == SUGGESTED_FOLLOWUPS


def test_tool_output_without_input_uses_defaults():
    out = build_tool_output(BudgetToolInput(), now=NOW)
    assert out['input_source'] == 'default'
    assert out['fields'] == {}
    assert out['summary']['net_worth'] == 0


def test_token_descriptions_are_dropped():
    params = BudgetToolInput(budget_description="v1/c29tZSBlbmNvZGVkIHBheWxvYWQ=")
    out = build_tool_output(params, now=NOW)
    assert out['input_source'] == 'default'
    assert 'budget_description' not in out['fields']


def test_description_fills_missing_fields():
    params = BudgetToolInput(budget_description="I make $5,000 a month and pay $1,500 in rent.")
    out = build_tool_output(params, now=NOW)
    assert out['fields']['monthly_income'] == 5000
    assert out['summary']['monthly_net'] == 3500


def test_preset_names_the_budget():
    out = build_tool_output(BudgetToolInput(preset='retiree'), now=NOW)
    assert out['summary']['budget_name'] == 'Retirement Budget'
    assert out['budget']['income']


def test_unknown_fields_are_ignored():
    params = BudgetToolInput(monthly_income=5000, notes='from a newer client')
    out = build_tool_output(params, now=NOW)
    assert out['fields'] == {'monthly_income': 5000.0}
    assert out['summary']['monthly_income'] == 5000


def test_unknown_preset_is_rejected():
    with pytest.raises(ValidationError):
        BudgetToolInput(preset='astronaut')
