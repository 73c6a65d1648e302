"""Streamlit front end for the budget planner.

Run with::

    streamlit run budget_planner/dashboard.py

The page keeps the budget being edited in ``st.session_state`` and writes
it back to the JSON store after every change, so a reload picks up where
the user left off.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import streamlit as st

from budget_planner import budget_ops
from budget_planner.common.formatting import escape_dollar_for_markdown, format_currency, format_runway
from budget_planner.config import MAX_NONLIQUID_DISCOUNT
from budget_planner.models import PRICED_SECTIONS, AssetType, Budget, Frequency, LineItem, Section, new_budget
from budget_planner.prices import has_priced_items, refresh_budget_prices
from budget_planner.presets import PRESETS, budget_from_preset, preset_keys
from budget_planner.projection import depletion_year, growth_milestones, project_runway, projection_frame, runway_months
from budget_planner.reconcile import merge_parsed_items, reconcile
from budget_planner.storage import BudgetRepository
from budget_planner.summary import section_totals_frame, summarize
from budget_planner.text_inference import fallback_parse_budget_text, infer_fields
from budget_planner.visualization import (
    create_cash_flow_chart,
    create_net_worth_pie_chart,
    create_projection_chart,
    create_section_bar_chart,
)

FREQUENCY_LABELS = {
    Frequency.MONTHLY: "Monthly",
    Frequency.YEARLY: "Yearly",
    Frequency.ONE_TIME: "One-time",
}


@st.cache_resource
def get_repository() -> BudgetRepository:
    return BudgetRepository()


def get_budget() -> Budget:
    """Return the budget being edited, loading it on first use."""
    if 'budget' not in st.session_state:
        st.session_state.budget = get_repository().load_current() or new_budget()
    return st.session_state.budget


def commit(budget: Budget) -> None:
    st.session_state.budget = budget
    get_repository().save_current(budget)


# ---------------------------------------------------------------------------
# Sidebar
# ---------------------------------------------------------------------------


def render_sidebar(budget: Budget) -> None:
    repo = get_repository()
    st.sidebar.header("Budget")

    name = st.sidebar.text_input("Name", value=budget.name, key=f"name_{budget.id}")
    if name != budget.name:
        budget = budget_ops.rename_budget(budget, name)
        commit(budget)

    discount = st.sidebar.slider(
        "Non-liquid discount (%)",
        min_value=0.0,
        max_value=MAX_NONLIQUID_DISCOUNT,
        value=float(budget.non_liquid_discount),
        step=5.0,
        help="Haircut applied to homes, cars and other hard-to-sell assets when computing net worth",
    )
    if discount != budget.non_liquid_discount:
        budget = budget_ops.set_discount(budget, discount)
        commit(budget)

    col_save, col_new = st.sidebar.columns(2)
    if col_save.button("💾 Save", use_container_width=True):
        try:
            repo.save_budget(budget)
            st.sidebar.success(f"Saved '{budget.name}'")
        except (ValueError, OSError) as e:
            st.sidebar.error(f"Could not save budget: {e}")
    if col_new.button("➕ New", use_container_width=True):
        commit(new_budget())
        st.rerun()

    saved = repo.list_budgets()
    if saved:
        labels = {b.id: f"{b.name} ({b.updated_at:%Y-%m-%d})" for b in saved}
        chosen = st.sidebar.selectbox("Saved budgets", list(labels), format_func=labels.get)
        col_load, col_delete = st.sidebar.columns(2)
        if col_load.button("Open", use_container_width=True):
            selected = repo.get_budget(chosen)
            if selected is not None:
                commit(selected)
                st.rerun()
        if col_delete.button("🗑️ Delete", use_container_width=True):
            repo.delete_budget(chosen)
            st.rerun()

    st.sidebar.subheader("Start from a template")
    preset = st.sidebar.selectbox("Template", preset_keys(), format_func=lambda key: PRESETS[key]['name'])
    if st.sidebar.button("Use template", use_container_width=True):
        commit(budget_from_preset(preset))
        st.rerun()

    st.sidebar.subheader("Describe your situation")
    text = st.sidebar.text_area(
        "Description",
        placeholder="I make $5,000 a month, pay $1,500 rent and have $8k in savings",
        label_visibility="collapsed",
    )
    if st.sidebar.button("Apply", use_container_width=True, disabled=not text.strip()):
        fields = infer_fields(text)
        fields.pop('budget_description', None)
        if fields:
            updated = reconcile(budget, fields)
        else:
            # nothing recognised as a field: fall back to plain line items
            updated = merge_parsed_items(budget, fallback_parse_budget_text(text))
        if updated is budget:
            st.sidebar.warning("Could not find any figures in that description")
        else:
            commit(updated)
            st.rerun()

    if has_priced_items(budget):
        if st.sidebar.button("🔄 Refresh prices", use_container_width=True):
            with st.spinner("Fetching quotes..."):
                refreshed = asyncio.run(refresh_budget_prices(budget))
            if refreshed is budget:
                st.sidebar.warning("No quotes were available")
            else:
                commit(refreshed)
                st.rerun()
        if budget.last_price_refresh is not None:
            st.sidebar.caption(f"Prices updated {budget.last_price_refresh:%Y-%m-%d %H:%M} UTC")


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------


def render_summary(budget: Budget) -> None:
    summary = summarize(budget)
    months = runway_months(summary)

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Monthly Income", format_currency(summary.monthly_income))
    col2.metric(
        "Monthly Outflow",
        format_currency(summary.monthly_expenses + summary.monthly_liability_payments),
        help="Expenses plus recurring debt payments",
    )
    col3.metric("Monthly Net", format_currency(summary.monthly_net))
    col4.metric("Savings Rate", f"{summary.savings_rate:.1f}%")

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Liquid Available", format_currency(summary.liquid_available), help="Liquid assets minus debt balances")
    col2.metric("Net Worth", format_currency(summary.net_worth))
    col3.metric("Runway", format_runway(months))
    col4.metric("Debt Balances", format_currency(summary.one_time_liabilities))

    milestones = growth_milestones(summary, years=(2, 5))
    if milestones:
        st.caption(" · ".join(
            f"In {years} years: +{escape_dollar_for_markdown(amount)}" for years, amount in milestones.items()
        ))

    points = project_runway(budget, summary)
    tab_projection, tab_cash, tab_assets = st.tabs(["Projection", "Cash flow", "Assets"])
    with tab_projection:
        st.plotly_chart(
            create_projection_chart(projection_frame(points), depletion_year=depletion_year(points)),
            use_container_width=True,
        )
    with tab_cash:
        st.plotly_chart(create_cash_flow_chart(summary), use_container_width=True)
    with tab_assets:
        st.plotly_chart(create_net_worth_pie_chart(summary), use_container_width=True)


# ---------------------------------------------------------------------------
# Section editors
# ---------------------------------------------------------------------------


def _asset_type_index(item: LineItem) -> int:
    kinds = list(AssetType)
    return kinds.index(item.asset_type) if item.asset_type is not None else 0


def render_item(budget: Budget, section: Section, index: int, item: LineItem) -> Optional[Budget]:
    """Render one editable row; return the updated budget when something changed."""
    key = f"{section.value}_{item.id}"
    cols = st.columns([3, 2, 2, 1, 1, 1])
    name = cols[0].text_input("Name", value=item.name, key=f"{key}_name", label_visibility="collapsed")
    amount = cols[1].number_input(
        "Amount", value=float(item.amount), step=50.0, key=f"{key}_amount",
        label_visibility="collapsed", disabled=item.is_priced,
    )
    frequencies = list(Frequency)
    frequency = cols[2].selectbox(
        "Frequency", frequencies, index=frequencies.index(item.frequency),
        format_func=FREQUENCY_LABELS.get, key=f"{key}_freq", label_visibility="collapsed",
    )
    if cols[3].button("↑", key=f"{key}_up", disabled=index == 0):
        return budget_ops.reorder_items(budget, section, index, index - 1)
    if cols[4].button("↓", key=f"{key}_down", disabled=index == len(budget.items(section)) - 1):
        return budget_ops.reorder_items(budget, section, index, index + 1)
    if cols[5].button("✕", key=f"{key}_delete"):
        return budget_ops.delete_item(budget, section, item.id)

    changes = {}
    if name != item.name:
        changes['name'] = name
    if not item.is_priced and amount != item.amount:
        changes['amount'] = amount
    if frequency is not item.frequency:
        changes['frequency'] = frequency

    if section in PRICED_SECTIONS:
        with st.expander("Market pricing", expanded=item.tracks_price):
            pcols = st.columns(3)
            kind = pcols[0].selectbox(
                "Type", list(AssetType), index=_asset_type_index(item),
                format_func=lambda kind: kind.value.title(), key=f"{key}_kind",
            )
            if kind is AssetType.MANUAL:
                if item.asset_type not in (None, AssetType.MANUAL):
                    changes['asset_type'] = AssetType.MANUAL
            else:
                ticker = pcols[1].text_input(
                    "Coin id" if kind is AssetType.CRYPTO else "Symbol",
                    value=item.ticker or '', key=f"{key}_ticker",
                )
                quantity = pcols[2].number_input(
                    "Quantity", value=float(item.quantity or 0), min_value=0.0, key=f"{key}_qty",
                )
                if kind is not item.asset_type:
                    changes['asset_type'] = kind
                if (ticker or None) != item.ticker:
                    changes['ticker'] = ticker
                if quantity != (item.quantity or 0) or item.quantity is None:
                    changes['quantity'] = quantity
                if item.live_price is not None:
                    st.caption(f"Last price {format_currency(item.live_price)}")

    if changes:
        return budget_ops.update_item(budget, section, item.id, **changes)
    return None


def render_section(budget: Budget, section: Section) -> None:
    items = budget.items(section)
    total = sum(item.monthly_value if section.default_frequency is Frequency.MONTHLY else item.total_value
                for item in items)
    with st.expander(f"{section.label} · {format_currency(total)}", expanded=bool(items)):
        for index, item in enumerate(items):
            updated = render_item(budget, section, index, item)
            if updated is not None:
                commit(updated)
                st.rerun()
        if st.button(f"Add {section.label.lower()} item", key=f"add_{section.value}"):
            commit(budget_ops.add_item(budget, section, "New item"))
            st.rerun()
        if items:
            st.plotly_chart(create_section_bar_chart(budget, section), use_container_width=True)


def main() -> None:
    """Main entry point for the budget page."""
    st.set_page_config(page_title="My Budget", page_icon="💰", layout="wide")
    budget = get_budget()
    render_sidebar(budget)
    budget = get_budget()

    st.title(budget.name)
    if budget.is_empty:
        st.info("Add items below, pick a template or describe your situation in the sidebar.")
    render_summary(budget)

    st.header("Line items")
    st.dataframe(
        section_totals_frame(budget),
        hide_index=True,
        use_container_width=True,
        column_config={
            "Total": st.column_config.NumberColumn(format="$%.2f"),
            "Monthly": st.column_config.NumberColumn(format="$%.2f"),
        },
    )
    for section in Section:
        render_section(budget, section)


if __name__ == "__main__":
    main()
