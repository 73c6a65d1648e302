"""Cash-flow, net-worth and liquidity summary for a budget.

:func:`summarize` is a pure read-side view: it never mutates the budget
and always returns the same :class:`BudgetSummary` for the same input.
All ratios are guarded so that no ``NaN`` or division error can reach
the reported figures.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, Iterable

import pandas as pd

from .models import Budget, Frequency, LineItem, Section, coerce_amount


@dataclass(frozen=True)
class BudgetSummary:
    monthly_income: float
    monthly_expenses: float
    monthly_liability_payments: float
    monthly_net: float
    annual_net: float
    total_liquid: float
    total_non_liquid: float
    total_retirement: float
    non_liquid_discount: float
    non_liquid_at_discount: float
    one_time_liabilities: float
    total_liabilities: float
    liquid_available: float
    net_worth: float
    monthly_burn: float
    savings_rate: float
    item_count: int

    @property
    def is_depleting(self) -> bool:
        return self.monthly_burn > 0

    @property
    def has_extended_assets(self) -> bool:
        return self.non_liquid_at_discount > 0 or self.total_retirement > 0

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


def _monthly(items: Iterable[LineItem]) -> float:
    return coerce_amount(sum((item.monthly_value for item in items), 0.0))


def _total(items: Iterable[LineItem]) -> float:
    return coerce_amount(sum((item.total_value for item in items), 0.0))


def summarize(budget: Budget) -> BudgetSummary:
    """Compute the headline figures for ``budget``.

    Monthly and yearly liabilities are payment obligations and reduce cash
    flow; one-time liabilities are balances owed and reduce net worth.  Net
    worth and ``liquid_available`` are reported unclamped, so both can be
    negative.
    """
    monthly_income = _monthly(budget.income)
    monthly_expenses = _monthly(budget.expenses)
    # one-time items have a monthly value of 0, so only payments count here
    monthly_liability_payments = _monthly(budget.liabilities)
    # sums that overflow are reported as 0
    monthly_net = coerce_amount(monthly_income - monthly_expenses - monthly_liability_payments)
    annual_net = coerce_amount(monthly_net * 12)

    total_liquid = _total(budget.liquid_assets)
    total_non_liquid = _total(budget.non_liquid_assets)
    total_retirement = _total(budget.retirement)
    discount = budget.non_liquid_discount
    non_liquid_at_discount = total_non_liquid * (1 - discount / 100)

    one_time_liabilities = _total(
        item for item in budget.liabilities if item.frequency is Frequency.ONE_TIME
    )
    liquid_available = coerce_amount(total_liquid - one_time_liabilities)
    net_worth = coerce_amount(liquid_available + non_liquid_at_discount + total_retirement)

    monthly_burn = coerce_amount(monthly_expenses + monthly_liability_payments - monthly_income)
    savings_rate = coerce_amount(monthly_net / monthly_income * 100) if monthly_income > 0 else 0.0

    return BudgetSummary(
        monthly_income=monthly_income,
        monthly_expenses=monthly_expenses,
        monthly_liability_payments=monthly_liability_payments,
        monthly_net=monthly_net,
        annual_net=annual_net,
        total_liquid=total_liquid,
        total_non_liquid=total_non_liquid,
        total_retirement=total_retirement,
        non_liquid_discount=discount,
        non_liquid_at_discount=non_liquid_at_discount,
        one_time_liabilities=one_time_liabilities,
        total_liabilities=_total(budget.liabilities),
        liquid_available=liquid_available,
        net_worth=net_worth,
        monthly_burn=monthly_burn,
        savings_rate=savings_rate,
        item_count=budget.item_count,
    )


def section_totals_frame(budget: Budget) -> pd.DataFrame:
    """Create a DataFrame with one row per section.

    Columns: Section, Items, Total, Monthly.  Used by the dashboard for the
    section overview table and charts.
    """
    rows = []
    for section in Section:
        items = budget.items(section)
        rows.append({
            'Section': section.label,
            'Items': len(items),
            'Total': _total(items),
            'Monthly': _monthly(items),
        })
    return pd.DataFrame(rows, columns=['Section', 'Items', 'Total', 'Monthly'])
