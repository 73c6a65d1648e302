"""Starter budget templates by life stage.

Templates seed a new budget before any user-supplied figures are merged
into it by :func:`budget_planner.reconcile.reconcile`.  Each template item
is tagged with the canonical reconcile field it stands for, so later
patches update the template item instead of adding a duplicate.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional, Tuple

from .models import Budget, Frequency, LineItem, Section, make_item, new_budget

# (section, name, amount, frequency, origin)
PresetRow = Tuple[Section, str, float, Frequency, Optional[str]]

_M = Frequency.MONTHLY
_Y = Frequency.YEARLY
_O = Frequency.ONE_TIME

PRESETS: Dict[str, Dict[str, object]] = {
    'gen_z': {
        'name': 'Starter Budget',
        'rows': [
            (Section.INCOME, 'Salary', 3200, _M, 'salary'),
            (Section.INCOME, 'Side Income', 300, _M, 'side_income'),
            (Section.EXPENSES, 'Rent', 1200, _M, 'rent'),
            (Section.EXPENSES, 'Groceries', 350, _M, 'groceries'),
            (Section.EXPENSES, 'Phone', 60, _M, 'phone_bill'),
            (Section.EXPENSES, 'Subscriptions', 45, _M, 'subscriptions'),
            (Section.EXPENSES, 'Dining Out', 200, _M, 'dining_out'),
            (Section.EXPENSES, 'Transportation', 150, _M, 'transportation'),
            (Section.LIQUID_ASSETS, 'Checking Account', 1500, _O, 'checking_balance'),
            (Section.LIQUID_ASSETS, 'Savings Account', 2000, _O, 'savings_balance'),
            (Section.RETIREMENT, '401(k)', 3000, _O, 'balance_401k'),
            (Section.LIABILITIES, 'Student Loans', 25000, _O, 'student_loans'),
            (Section.LIABILITIES, 'Student Loan Payment', 280, _M, None),
        ],
    },
    'millennial': {
        'name': 'Monthly Budget',
        'rows': [
            (Section.INCOME, 'Salary', 5500, _M, 'salary'),
            (Section.EXPENSES, 'Rent', 1800, _M, 'rent'),
            (Section.EXPENSES, 'Utilities', 180, _M, 'utilities'),
            (Section.EXPENSES, 'Groceries', 450, _M, 'groceries'),
            (Section.EXPENSES, 'Car Insurance', 140, _M, 'car_insurance'),
            (Section.EXPENSES, 'Internet', 70, _M, 'internet'),
            (Section.EXPENSES, 'Dining Out', 300, _M, 'dining_out'),
            (Section.EXPENSES, 'Subscriptions', 60, _M, 'subscriptions'),
            (Section.LIQUID_ASSETS, 'Checking Account', 4000, _O, 'checking_balance'),
            (Section.LIQUID_ASSETS, 'Emergency Fund', 10000, _O, 'emergency_fund'),
            (Section.LIQUID_ASSETS, 'Brokerage Account', 8000, _O, 'investment_balance'),
            (Section.NON_LIQUID_ASSETS, 'Car', 15000, _O, 'car_value'),
            (Section.RETIREMENT, '401(k)', 35000, _O, 'balance_401k'),
            (Section.RETIREMENT, 'Roth IRA', 12000, _O, 'roth_ira'),
            (Section.LIABILITIES, 'Car Loan', 9000, _O, 'car_loan'),
            (Section.LIABILITIES, 'Car Loan Payment', 350, _M, None),
            (Section.LIABILITIES, 'Credit Card Debt', 2500, _O, 'credit_card_debt'),
        ],
    },
    'family': {
        'name': 'Household Budget',
        'rows': [
            (Section.INCOME, 'Salary', 6500, _M, 'salary'),
            (Section.INCOME, 'Partner Salary', 4500, _M, None),
            (Section.EXPENSES, 'Mortgage Payment', 2400, _M, 'mortgage_payment'),
            (Section.EXPENSES, 'Utilities', 300, _M, 'utilities'),
            (Section.EXPENSES, 'Groceries', 1100, _M, 'groceries'),
            (Section.EXPENSES, 'Childcare', 1200, _M, 'childcare'),
            (Section.EXPENSES, 'Health Insurance', 600, _M, 'health_insurance'),
            (Section.EXPENSES, 'Car Insurance', 220, _M, 'car_insurance'),
            (Section.EXPENSES, 'Transportation', 350, _M, 'transportation'),
            (Section.EXPENSES, 'Home Maintenance', 1800, _Y, None),
            (Section.LIQUID_ASSETS, 'Checking Account', 6000, _O, 'checking_balance'),
            (Section.LIQUID_ASSETS, 'Emergency Fund', 20000, _O, 'emergency_fund'),
            (Section.NON_LIQUID_ASSETS, 'Home', 450000, _O, 'home_value'),
            (Section.NON_LIQUID_ASSETS, 'Car', 22000, _O, 'car_value'),
            (Section.RETIREMENT, '401(k)', 120000, _O, 'balance_401k'),
            (Section.RETIREMENT, 'Traditional IRA', 30000, _O, 'traditional_ira'),
            (Section.LIABILITIES, 'Mortgage', 320000, _O, 'mortgage_balance'),
            (Section.LIABILITIES, 'Car Loan', 14000, _O, 'car_loan'),
        ],
    },
    'retiree': {
        'name': 'Retirement Budget',
        'rows': [
            (Section.INCOME, 'Social Security', 2200, _M, 'social_security'),
            (Section.INCOME, 'Pension', 1500, _M, 'pension_income'),
            (Section.INCOME, 'Investment Income', 600, _M, 'investment_income'),
            (Section.EXPENSES, 'Utilities', 250, _M, 'utilities'),
            (Section.EXPENSES, 'Groceries', 500, _M, 'groceries'),
            (Section.EXPENSES, 'Health Insurance', 450, _M, 'health_insurance'),
            (Section.EXPENSES, 'Property Tax', 4800, _Y, None),
            (Section.EXPENSES, 'Travel', 3000, _Y, None),
            (Section.LIQUID_ASSETS, 'Savings Account', 40000, _O, 'savings_balance'),
            (Section.LIQUID_ASSETS, 'Brokerage Account', 150000, _O, 'investment_balance'),
            (Section.NON_LIQUID_ASSETS, 'Home', 380000, _O, 'home_value'),
            (Section.RETIREMENT, 'Traditional IRA', 250000, _O, 'traditional_ira'),
        ],
    },
}


def preset_keys() -> List[str]:
    return list(PRESETS)


def budget_from_preset(key: Optional[str], *, now: Optional[datetime] = None) -> Budget:
    """Instantiate a fresh budget from the ``key`` template.

    Unknown or missing keys give an empty budget.  Every call produces new
    item ids.
    """
    preset = PRESETS.get((key or '').strip().lower())
    if preset is None:
        return new_budget(now=now)

    grouped: Dict[Section, List[LineItem]] = {section: [] for section in Section}
    for section, name, amount, frequency, origin in preset['rows']:
        grouped[section].append(make_item(name, amount, frequency, origin=origin))

    budget = new_budget(str(preset['name']), now=now)
    return budget.touch(
        budget.updated_at,
        **{section.attr: tuple(items) for section, items in grouped.items()},
    )
