"""Plotly visualisation helpers for the budget planner.

Each function takes one of the read-side views (a projection frame, a
:class:`~budget_planner.summary.BudgetSummary` or a budget section) and
returns a ``plotly.graph_objects.Figure`` that Streamlit renders with
``st.plotly_chart``.  Empty inputs give a blank figure titled "No data to
display" rather than an error.
"""

from __future__ import annotations

from typing import Optional

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from .common.formatting import format_compact
from .models import Budget, Section
from .summary import BudgetSummary


def _empty_figure() -> go.Figure:
    fig = go.Figure()
    fig.update_layout(title="No data to display")
    return fig


def create_projection_chart(
    frame: pd.DataFrame,
    title: Optional[str] = None,
    depletion_year: Optional[int] = None,
) -> go.Figure:
    """Line chart of projected balances per track.

    Parameters
    ----------
    frame : pandas.DataFrame
        Long-format projection with ``Year``, ``Track`` and ``Balance``
        columns, as returned by :func:`budget_planner.projection.projection_frame`.
    title : str, optional
        Chart title.
    depletion_year : int, optional
        When given, a dashed marker is drawn at the year liquid funds run out.

    Returns
    -------
    plotly.graph_objects.Figure
        Interactive line chart.
    """
    if frame.empty:
        return _empty_figure()
    fig = px.line(frame, x="Year", y="Balance", color="Track", markers=True)
    fig.add_hline(y=0, line_color="grey", line_width=1)
    if depletion_year is not None:
        fig.add_vline(
            x=depletion_year,
            line_dash="dash",
            line_color="crimson",
            annotation_text="Liquid funds run out",
        )
    fig.update_layout(
        title=title or "Projected balances",
        xaxis_title="Years from now",
        yaxis_title="Balance ($)",
        yaxis_tickprefix="$",
    )
    return fig


def create_cash_flow_chart(summary: BudgetSummary, title: Optional[str] = None) -> go.Figure:
    """Bar chart comparing monthly inflows, outflows and the net result."""
    if summary.item_count == 0:
        return _empty_figure()
    labels = ["Income", "Expenses", "Debt payments", "Net"]
    values = [
        summary.monthly_income,
        -summary.monthly_expenses,
        -summary.monthly_liability_payments,
        summary.monthly_net,
    ]
    colors = ["seagreen" if value >= 0 else "indianred" for value in values]
    fig = go.Figure(go.Bar(
        x=labels,
        y=values,
        marker_color=colors,
        text=[format_compact(value) for value in values],
        textposition="outside",
    ))
    fig.update_layout(
        title=title or "Monthly cash flow",
        yaxis_title="Per month ($)",
        yaxis_tickprefix="$",
    )
    return fig


def create_net_worth_pie_chart(summary: BudgetSummary, title: Optional[str] = None) -> go.Figure:
    """Pie chart of the asset mix counted towards net worth.

    Non-liquid assets are shown at their discounted value.
    """
    parts = {
        "Liquid": summary.total_liquid,
        "Non-liquid (discounted)": summary.non_liquid_at_discount,
        "Retirement": summary.total_retirement,
    }
    df = pd.DataFrame(
        [(name, value) for name, value in parts.items() if value > 0],
        columns=["Category", "Value"],
    )
    if df.empty:
        return _empty_figure()
    fig = px.pie(df, names="Category", values="Value")
    fig.update_layout(title=title or "Asset mix")
    return fig


def create_section_bar_chart(budget: Budget, section: Section, title: Optional[str] = None) -> go.Figure:
    """Horizontal bar chart of the items in one section.

    Income and expense items are compared by monthly value, everything else
    by total value.
    """
    section = Section(section)
    items = budget.items(section)
    if not items:
        return _empty_figure()
    monthly = section in (Section.INCOME, Section.EXPENSES)
    df = pd.DataFrame({
        "Item": [item.name or "(unnamed)" for item in items],
        "Value": [item.monthly_value if monthly else item.total_value for item in items],
    })
    fig = px.bar(df, x="Value", y="Item", orientation="h")
    fig.update_layout(
        title=title or section.label,
        xaxis_title="Per month ($)" if monthly else "Value ($)",
        yaxis_title="",
    )
    return fig
