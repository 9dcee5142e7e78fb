"""Yahoo Finance lookups: symbol currency and security search."""

import logging

import yfinance as yf

from integrations.exceptions import ServiceConnectionError
from integrations.lookup_protocol import CONFIDENCE_MEDIUM, TickerCandidate

logger = logging.getLogger(__name__)

SERVICE_NAME = "yahoo"

# Quote types that represent a holdable security
SECURITY_QUOTE_TYPES = ("EQUITY", "ETF", "MUTUALFUND")


class YahooFinanceClient:
    """Symbol metadata via the yfinance library.

    Implements both ``SymbolCurrencyProvider`` and ``TickerSearchProvider``.
    """

    @property
    def service_name(self) -> str:
        return SERVICE_NAME

    def get_currency(self, symbol: str) -> str | None:
        """Trading currency reported by Yahoo for ``symbol``.

        Raises:
            ServiceConnectionError: If yfinance fails to fetch the quote.
        """
        try:
            currency = yf.Ticker(symbol).fast_info.currency
        except Exception as exc:
            raise ServiceConnectionError(
                f"Yahoo currency lookup failed for {symbol}: {exc}",
                service_name=SERVICE_NAME,
            ) from exc
        return currency.upper() if currency else None

    def search(self, query: str, limit: int = 10) -> list[TickerCandidate]:
        """Search Yahoo for securities matching a ticker, ISIN or name.

        Only equities, ETFs and mutual funds are returned, in Yahoo's order.

        Raises:
            ServiceConnectionError: If the search request fails.
        """
        try:
            quotes = yf.Search(query, max_results=limit, news_count=0).quotes
        except Exception as exc:
            raise ServiceConnectionError(
                f"Yahoo search failed for {query!r}: {exc}",
                service_name=SERVICE_NAME,
            ) from exc

        candidates = []
        for quote in quotes or []:
            symbol = quote.get("symbol")
            if not symbol or quote.get("quoteType") not in SECURITY_QUOTE_TYPES:
                continue
            candidates.append(
                TickerCandidate(
                    ticker=symbol,
                    exchange=quote.get("exchange"),
                    name=quote.get("longname") or quote.get("shortname"),
                    confidence=CONFIDENCE_MEDIUM,
                )
            )
        logger.debug("Yahoo search %r: %d candidates", query, len(candidates))
        return candidates
