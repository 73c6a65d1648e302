"""Configuration management for the budget planner.

This module centralizes all configuration values including paths,
calculation defaults, price-feed endpoints and environment variable
overrides.
"""

from __future__ import annotations

import os
from pathlib import Path

# Base project root - assumes this file is in budget_planner/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directories
DATA_DIR = Path(os.getenv("BUDGET_PLANNER_DATA_DIR", _PROJECT_ROOT / "data"))
BUDGETS_DIR = DATA_DIR / "budgets"

# Storage keys for the budget collection and the budget being edited
BUDGETS_LIST_KEY = "MY_BUDGET_LIST"
CURRENT_BUDGET_KEY = "MY_BUDGET_DATA"

# Budget defaults
DEFAULT_BUDGET_NAME = "My Budget"
DEFAULT_NONLIQUID_DISCOUNT = 25.0
MAX_NONLIQUID_DISCOUNT = 75.0
DEFAULT_HORIZON_YEARS = int(os.getenv("BUDGET_PLANNER_HORIZON_YEARS", "20"))

# Monthly childcare estimate added per child when reconciling a family budget
CHILDCARE_PER_CHILD_MONTHLY = float(os.getenv("CHILDCARE_PER_CHILD_MONTHLY", "800"))

# Price feeds
COINGECKO_API_URL = os.getenv("COINGECKO_API_URL", "https://api.coingecko.com/api/v3")
FINNHUB_API_URL = os.getenv("FINNHUB_API_URL", "https://finnhub.io/api/v1")
FINNHUB_API_KEY = os.getenv("FINNHUB_API_KEY", "")
QUOTE_TIMEOUT_SECONDS = float(os.getenv("QUOTE_TIMEOUT_SECONDS", "10"))
MAX_STOCK_SYMBOLS = 20


def ensure_data_directories() -> None:
    """Create all required data directories if they don't exist."""
    for directory in [DATA_DIR, BUDGETS_DIR]:
        directory.mkdir(parents=True, exist_ok=True)
