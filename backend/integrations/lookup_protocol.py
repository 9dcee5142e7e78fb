"""Lookup service protocol definitions.

Defines the interfaces the import pipeline consumes for PDF text
extraction, exchange rates, symbol currencies and ticker/ISIN names.
Implementations raise the exceptions in ``integrations.exceptions``;
the calling services decide how to degrade.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Protocol

CONFIDENCE_HIGH = "high"
CONFIDENCE_MEDIUM = "medium"
CONFIDENCE_LOW = "low"

US_EXCHANGES = ("NYQ", "NMS", "NAS")


@dataclass
class TickerCandidate:
    """A ticker proposed by a lookup service."""

    ticker: str
    exchange: str | None = None
    name: str | None = None
    confidence: str = CONFIDENCE_LOW


@dataclass
class IsinLookupResult:
    """Tickers listed for one ISIN, with the preferred one if known."""

    isin: str
    tickers: list[TickerCandidate] = field(default_factory=list)
    name: str | None = None
    primary_ticker: str | None = None


class PdfTextExtractor(Protocol):
    def extract_text(self, pdf_bytes: bytes) -> str:
        """Return the plain text of every page, pages joined by newlines."""
        ...


class ExchangeRateProvider(Protocol):
    def get_exchange_rate(self, from_currency: str, to_currency: str) -> Decimal:
        """Units of ``to_currency`` per unit of ``from_currency``.

        Returns Decimal("1") when the currencies match.
        """
        ...


class SymbolCurrencyProvider(Protocol):
    def get_currency(self, symbol: str) -> str | None:
        """Trading currency of a symbol, or None if the service doesn't know it."""
        ...


class TickerSearchProvider(Protocol):
    """Free-text security search (ticker, ISIN or instrument name)."""

    def search(self, query: str, limit: int = 10) -> list[TickerCandidate]:
        ...


class IsinMappingProvider(Protocol):
    def map_isin(self, isin: str) -> IsinLookupResult | None:
        """Tickers listed for an ISIN, or None when the ISIN is unknown."""
        ...
