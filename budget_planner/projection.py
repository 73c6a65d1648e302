"""Runway and multi-year projection of a budget's balances.

Two tracks are projected year by year from the present (year 0):

* the liquid track starts at ``max(0, liquid_available)``;
* the extended track starts at ``max(0, net_worth)`` and is only reported
  when the budget holds discounted non-liquid assets or retirement
  savings.

When the budget is burning cash every track loses ``monthly_burn * 12``
per year and is floored at zero; the series stops once every reported
track has hit zero.  Otherwise every track grows by ``annual_net`` per
year until the horizon.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from .config import DEFAULT_HORIZON_YEARS
from .models import Budget, coerce_amount
from .summary import BudgetSummary, summarize


@dataclass(frozen=True)
class ProjectionPoint:
    year: int
    liquid_balance: float
    extended_balance: Optional[float] = None


def runway_months(summary: BudgetSummary) -> Optional[float]:
    """Months of liquid runway, or ``None`` when not applicable.

    ``None`` means the budget is not burning cash or there is nothing
    liquid to burn; callers must branch on presence, not on the value.
    """
    if summary.liquid_available > 0 and summary.monthly_burn > 0:
        return coerce_amount(summary.liquid_available / summary.monthly_burn) or None
    return None


def _track(start: float, years: np.ndarray, summary: BudgetSummary) -> np.ndarray:
    with np.errstate(over="ignore", invalid="ignore"):
        if summary.is_depleting:
            track = np.maximum(start - summary.monthly_burn * 12 * years, 0.0)
        else:
            track = start + summary.annual_net * years
    # overflowed balances are reported as 0, like the summary figures
    return np.nan_to_num(track, nan=0.0, posinf=0.0, neginf=0.0)


def project_runway(
    budget: Budget,
    summary: Optional[BudgetSummary] = None,
    horizon_years: int = DEFAULT_HORIZON_YEARS,
) -> List[ProjectionPoint]:
    """Project liquid (and extended) balances for ``horizon_years`` years.

    The result is recomputed from its inputs on every call.
    """
    summary = summary or summarize(budget)
    horizon = max(0, int(horizon_years))
    years = np.arange(horizon + 1)

    liquid = _track(max(0.0, summary.liquid_available), years, summary)
    extended = None
    if summary.has_extended_assets:
        extended = _track(max(0.0, summary.net_worth), years, summary)

    length = len(years)
    if summary.is_depleting:
        exhausted = liquid <= 0
        if extended is not None:
            exhausted &= extended <= 0
        hits = np.flatnonzero(exhausted)
        if hits.size:
            length = int(hits[0]) + 1

    points = []
    for index in range(length):
        points.append(ProjectionPoint(
            year=int(years[index]),
            liquid_balance=float(liquid[index]),
            extended_balance=float(extended[index]) if extended is not None else None,
        ))
    return points


def depletion_year(points: Sequence[ProjectionPoint]) -> Optional[int]:
    """First projected year at which the liquid track is exhausted.

    Agrees with ``math.ceil(runway_months / 12)`` for depleting budgets
    that start with liquid funds.
    """
    for point in points:
        if point.year > 0 and point.liquid_balance <= 0:
            return point.year
    return None


def runway_years(summary: BudgetSummary) -> Optional[float]:
    months = runway_months(summary)
    return months / 12 if months is not None else None


def growth_milestones(summary: BudgetSummary, years: Sequence[int] = (1, 2, 5)) -> Dict[int, float]:
    """Cumulative savings after each of ``years`` when the budget runs a surplus."""
    if summary.monthly_net <= 0:
        return {}
    return {year: summary.annual_net * year for year in years}


def projection_frame(points: Sequence[ProjectionPoint]) -> pd.DataFrame:
    """Convert projection points into a long-format DataFrame.

    Columns: Year, Track, Balance.  The extended track is omitted when it
    was not reported.
    """
    rows = []
    for point in points:
        rows.append({'Year': point.year, 'Track': 'Liquid', 'Balance': point.liquid_balance})
        if point.extended_balance is not None:
            rows.append({'Year': point.year, 'Track': 'Extended', 'Balance': point.extended_balance})
    return pd.DataFrame(rows, columns=['Year', 'Track', 'Balance'])

