"""MCP tool server exposing the budget planner to chat clients.

Run with ``budget-planner-mcp`` (or ``python -m budget_planner.server``).
The ``my_budget`` tool takes whatever budget figures the client could
extract from the conversation, fills gaps from the free-text description,
reconciles everything into a fresh budget and returns the summary,
projection and full budget snapshot as structured content.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import datetime
from typing import Any, Dict, Literal, Optional

from mcp.server.fastmcp import FastMCP
from pydantic import BaseModel, ConfigDict, Field

from .models import utcnow
from .prices import fetch_stock_prices
from .projection import project_runway
from .reconcile import build_budget, compute_summary_from_fields
from .storage import budget_to_dict
from .text_inference import infer_fields, looks_like_token

logger = logging.getLogger(__name__)

mcp = FastMCP("my-budget")

SUGGESTED_FOLLOWUPS = [
    "Add your income sources",
    "Track your monthly expenses",
    "Add your assets and savings",
    "See your net worth and runway",
]


class BudgetToolInput(BaseModel):
    """Every field is optional; monthly figures unless noted."""

    model_config = ConfigDict(str_strip_whitespace=True, extra='ignore')

    preset: Optional[Literal['gen_z', 'millennial', 'family', 'retiree']] = Field(
        default=None, description="Starter template to build on.")
    budget_name: Optional[str] = Field(default=None, description="Name for the budget.")
    budget_description: Optional[str] = Field(
        default=None, description="The user's full original message for context parsing.")

    # Context flags
    is_homeowner: Optional[bool] = Field(default=None, description="True if the user owns a home.")
    is_unemployed: Optional[bool] = Field(default=None, description="True if the user has no job or income.")
    num_children: Optional[int] = Field(default=None, ge=0, description="Number of children.")

    # Income
    annual_income: Optional[float] = Field(
        default=None, description="Annual income; divided by 12 when monthly_income is not given.")
    monthly_income: Optional[float] = Field(default=None, description="Total monthly take-home income.")
    salary: Optional[float] = None
    side_income: Optional[float] = None
    rental_income: Optional[float] = None
    social_security: Optional[float] = None
    pension_income: Optional[float] = None
    investment_income: Optional[float] = None

    # Expenses
    monthly_expenses: Optional[float] = Field(default=None, description="Total monthly expenses as a lump sum.")
    rent: Optional[float] = None
    mortgage_payment: Optional[float] = None
    utilities: Optional[float] = None
    groceries: Optional[float] = None
    car_payment: Optional[float] = None
    car_insurance: Optional[float] = None
    health_insurance: Optional[float] = None
    phone_bill: Optional[float] = None
    internet: Optional[float] = None
    childcare: Optional[float] = None
    subscriptions: Optional[float] = None
    dining_out: Optional[float] = None
    transportation: Optional[float] = None

    # Liquid assets
    liquid_assets: Optional[float] = Field(default=None, description="Total liquid assets as a lump sum.")
    checking_balance: Optional[float] = None
    savings_balance: Optional[float] = None
    emergency_fund: Optional[float] = None
    investment_balance: Optional[float] = None
    crypto_balance: Optional[float] = None
    crypto_tickers: Optional[str] = Field(
        default=None, description="Comma-separated CoinGecko ids, e.g. 'bitcoin,ethereum'.")
    stock_tickers: Optional[str] = Field(
        default=None, description="Comma-separated stock symbols, e.g. 'AAPL,VOO'.")
    has_crypto: Optional[bool] = None
    has_stocks: Optional[bool] = None

    # Non-liquid assets
    nonliquid_assets: Optional[float] = Field(default=None, description="Total non-liquid assets as a lump sum.")
    home_value: Optional[float] = None
    car_value: Optional[float] = None
    jewelry_collectibles: Optional[float] = None
    business_equity: Optional[float] = None
    nonliquid_discount: Optional[float] = Field(
        default=None, description="Discount percentage for non-liquid assets (0-75, default 25).")

    # Retirement
    retirement_savings: Optional[float] = Field(default=None, description="Total retirement savings as a lump sum.")
    balance_401k: Optional[float] = None
    roth_ira: Optional[float] = None
    traditional_ira: Optional[float] = None
    pension_fund: Optional[float] = None
    balance_403b: Optional[float] = None
    sep_ira: Optional[float] = None

    # Liabilities
    liabilities: Optional[float] = Field(default=None, description="Total debt balances as a lump sum.")
    mortgage_balance: Optional[float] = None
    student_loans: Optional[float] = None
    car_loan: Optional[float] = None
    credit_card_debt: Optional[float] = None
    personal_loan: Optional[float] = None
    medical_debt: Optional[float] = None


class StockPriceInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)
    symbols: str = Field(..., min_length=1, description="Comma-separated stock symbols, e.g. 'AAPL,TSLA'.")


def build_tool_output(params: BudgetToolInput, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Assemble the structured result of the ``my_budget`` tool."""
    now = now or utcnow()
    fields = params.model_dump(exclude_none=True)

    description = fields.get('budget_description')
    if description and looks_like_token(description):
        fields.pop('budget_description')
        description = None
    input_source = 'user' if fields else 'default'

    fields = infer_fields(description, fields)
    budget = build_budget(fields, now=now)
    logger.info("my_budget: %d items, input_source=%s", budget.item_count, input_source)

    return {
        'ready': True,
        'timestamp': now.isoformat(),
        'fields': fields,
        'input_source': input_source,
        'summary': compute_summary_from_fields(fields, budget),
        'budget': budget_to_dict(budget),
        'projection': [asdict(point) for point in project_runway(budget)],
        'suggested_followups': list(SUGGESTED_FOLLOWUPS),
    }


@mcp.tool(
    name="my_budget",
    annotations={
        "title": "My Budget",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": False,
        "openWorldHint": False,
    },
)
def my_budget(params: BudgetToolInput) -> Dict[str, Any]:
    """Build a personal budget and report cash flow, net worth and runway.

    Pass whatever figures the user mentioned; lump sums (monthly_income,
    liquid_assets, ...) and itemised fields (rent, salary, ...) can be mixed.
    """
    return build_tool_output(params)


@mcp.tool(
    name="stock_prices",
    annotations={
        "title": "Stock Prices",
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": True,
    },
)
async def stock_prices(params: StockPriceInput) -> Dict[str, float]:
    """Current prices for up to 20 stock symbols; unknown symbols are omitted."""
    return await fetch_stock_prices(params.symbols.split(','))


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    mcp.run()


if __name__ == "__main__":
    main()
