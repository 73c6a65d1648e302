"""Formatting utilities for currency, compact amounts and runway text."""

from __future__ import annotations

from typing import Optional, Union

Number = Union[float, int]


def escape_dollar_for_markdown(amount: Number) -> str:
    """Format a dollar amount and escape the dollar sign for markdown rendering.

    Streamlit markdown treats ``$`` as a LaTeX delimiter, so the sign is
    escaped.

    Example:
        >>> escape_dollar_for_markdown(1234.56)
        '\\$1,234.56'
    """
    return format_currency(amount).replace("$", "\\$")


def format_currency(amount: Number, include_sign: bool = True) -> str:
    """Format a currency amount, putting the minus sign before the dollar sign.

    Args:
        amount: The amount to format
        include_sign: Whether to include the dollar sign

    Returns:
        Formatted currency string (e.g., "$1,234.56", "-$80.00" or "1,234.56")

    Example:
        >>> format_currency(1234.56)
        '$1,234.56'
        >>> format_currency(-80)
        '-$80.00'
        >>> format_currency(1234.56, include_sign=False)
        '1,234.56'
    """
    formatted = f"{abs(amount):,.2f}"
    if include_sign:
        formatted = f"${formatted}"
    return f"-{formatted}" if amount < 0 else formatted


def format_compact(amount: Number) -> str:
    """Short form used on chart axes and summary cards ("$12.5k", "$1.2M")."""
    sign = '-' if amount < 0 else ''
    value = abs(amount)
    if value >= 1_000_000:
        return f"{sign}${value / 1_000_000:.1f}M"
    if value >= 1_000:
        return f"{sign}${value / 1_000:.1f}k"
    return f"{sign}${value:,.0f}"


def format_runway(months: Optional[float]) -> str:
    """Describe a runway in months; ``None`` means the budget is not burning cash."""
    if months is None:
        return "Not depleting"
    if months >= 24:
        return f"{months / 12:.1f} years"
    return f"{months:.1f} months"
