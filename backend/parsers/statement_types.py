"""Normalized data shapes produced by the statement parsers.

Every statement format (IB CSV, IB PDF text) maps its rows to these
dataclasses so the import pipeline downstream never sees format details.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

DEFAULT_ACCOUNT_ID = "UNKNOWN"
DEFAULT_BASE_CURRENCY = "USD"


@dataclass
class ParsedHolding:
    """A single position recovered from a statement."""

    symbol: str
    quantity: Decimal
    price: Decimal  # Close price in the trading currency
    value: Decimal  # Market value in the trading currency
    currency: str | None = None  # None when the statement carries no currency
    asset_category: str | None = None  # Broker's category label (CSV only)
    asset_type: str | None = None  # Never set by parsers; assigned by matching
    isin: str | None = None
    instrument_name: str | None = None


@dataclass
class ParsedStatement:
    """Holdings plus statement-level metadata."""

    account_id: str = DEFAULT_ACCOUNT_ID
    statement_date: date = field(default_factory=date.today)
    base_currency: str = DEFAULT_BASE_CURRENCY
    holdings: list[ParsedHolding] = field(default_factory=list)
    cash: Decimal = Decimal("0")
    total_value: Decimal = Decimal("0")
