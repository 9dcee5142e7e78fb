"""Utility functions for handling ticker symbols."""

CASH_SYMBOL = "CASH"


def normalize_symbol(symbol: str | None) -> str:
    """Trim and upper-case a symbol for comparisons. None becomes ""."""
    return (symbol or "").strip().upper()


def is_cash_symbol(symbol: str | None) -> bool:
    """Check if symbol is the synthetic cash holding.

    Statement imports store the account's cash balance as a holding with
    symbol ``CASH``; it is excluded from rebalancing.
    """
    return normalize_symbol(symbol) == CASH_SYMBOL
