import plotly.graph_objects as go

from budget_planner.models import Frequency, Section, make_item, new_budget
from budget_planner.projection import project_runway, projection_frame
from budget_planner.summary import summarize
from budget_planner.visualization import (
    create_cash_flow_chart,
    create_net_worth_pie_chart,
    create_projection_chart,
    create_section_bar_chart,
)


def _budget():
    return new_budget().touch(
        income=(make_item("Salary", 3000, Frequency.MONTHLY),),
        expenses=(make_item("Rent", 3500, Frequency.MONTHLY),),
        liquid_assets=(make_item("Savings", 12000, Frequency.ONE_TIME),),
        non_liquid_assets=(make_item("Car", 8000, Frequency.ONE_TIME),),
    )


def test_empty_inputs_give_placeholder_figures():
    empty = new_budget()
    summary = summarize(empty)
    assert create_cash_flow_chart(summary).layout.title.text == "No data to display"
    assert create_net_worth_pie_chart(summary).layout.title.text == "No data to display"
    assert create_section_bar_chart(empty, Section.INCOME).layout.title.text == "No data to display"
    assert create_projection_chart(projection_frame([])).layout.title.text == "No data to display"


def test_charts_for_a_populated_budget():
    budget = _budget()
    summary = summarize(budget)

    fig = create_projection_chart(projection_frame(project_runway(budget, summary)), depletion_year=2)
    assert isinstance(fig, go.Figure)
    assert {trace.name for trace in fig.data} == {"Liquid", "Extended"}

    cash = create_cash_flow_chart(summary)
    assert list(cash.data[0].y) == [3000, -3500, 0, -500]
    assert list(cash.data[0].text) == ["$3.0k", "-$3.5k", "$0", "-$500"]

    pie = create_net_worth_pie_chart(summary)
    assert set(pie.data[0].labels) == {"Liquid", "Non-liquid (discounted)"}

    bars = create_section_bar_chart(budget, Section.EXPENSES)
    assert list(bars.data[0].y) == ["Rent"]
    assert bars.layout.title.text == "Expenses"
