"""Ticker/ISIN name lookups and ticker discovery for target imports.

Every lookup is best-effort: provider failures are logged and turn into
``None`` (or an empty list) so one bad symbol never aborts a batch.
"""

import asyncio
import logging
from dataclasses import dataclass
from functools import partial
from typing import Callable, TypeVar

from integrations.exceptions import ExternalServiceError
from integrations.lookup_protocol import (
    CONFIDENCE_HIGH,
    CONFIDENCE_LOW,
    CONFIDENCE_MEDIUM,
    US_EXCHANGES,
    IsinLookupResult,
    IsinMappingProvider,
    TickerCandidate,
    TickerSearchProvider,
)
from services.lookup_cache import LookupCache

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_CONCURRENCY = 5
DEFAULT_TIMEOUT_SECONDS = 3.0


@dataclass
class NameRequest:
    """One item of a batch name lookup. ISIN is tried before the ticker."""

    key: str
    symbol: str | None = None
    isin: str | None = None


def best_ticker(result: IsinLookupResult) -> str | None:
    """Primary ticker if known, else high confidence (US listings first), then medium, then any."""
    if not result.tickers:
        return None
    if result.primary_ticker:
        return result.primary_ticker

    high = [t for t in result.tickers if t.confidence == CONFIDENCE_HIGH]
    if high:
        us = next((t for t in high if t.exchange in US_EXCHANGES), None)
        return (us or high[0]).ticker

    medium = [t for t in result.tickers if t.confidence == CONFIDENCE_MEDIUM]
    if medium:
        return medium[0].ticker
    return result.tickers[0].ticker


def all_tickers(result: IsinLookupResult) -> list[str]:
    """Distinct tickers in lookup order."""
    return list(dict.fromkeys(t.ticker for t in result.tickers))


class NameLookupService:
    """Resolves instrument names and ticker candidates.

    Args:
        search_provider: Free-text security search (Yahoo).
        isin_provider: ISIN -> ticker mapping (OpenFIGI).
        cache: Results cache; defaults to a fresh, non-expiring one.
        concurrency: Max in-flight lookups in ``run_batch``.
        timeout: Per-lookup timeout in seconds for ``run_batch``.
    """

    def __init__(
        self,
        search_provider: TickerSearchProvider | None = None,
        isin_provider: IsinMappingProvider | None = None,
        cache: LookupCache | None = None,
        concurrency: int = DEFAULT_CONCURRENCY,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self._search_provider = search_provider
        self._isin_provider = isin_provider
        self._cache = cache if cache is not None else LookupCache()
        self._concurrency = concurrency
        self._timeout = timeout

    def _search(self, query: str, limit: int) -> list[TickerCandidate]:
        if self._search_provider is None:
            return []
        try:
            return self._search_provider.search(query, limit=limit)
        except ExternalServiceError:
            logger.warning("Security search failed for %r", query, exc_info=True)
            return []

    def _isin_from_search(self, isin: str) -> IsinLookupResult | None:
        candidates = self._search(isin, limit=5)
        if not candidates:
            return None
        primary = next((c for c in candidates if c.exchange in US_EXCHANGES), candidates[0])
        return IsinLookupResult(
            isin=isin,
            tickers=candidates,
            name=candidates[0].name,
            primary_ticker=primary.ticker,
        )

    def _isin_from_mapping(self, isin: str) -> IsinLookupResult | None:
        if self._isin_provider is None:
            return None
        try:
            return self._isin_provider.map_isin(isin)
        except ExternalServiceError:
            logger.warning("ISIN mapping failed for %s", isin, exc_info=True)
            return None

    def lookup_tickers_from_isin(self, isin: str) -> IsinLookupResult | None:
        """Tickers for an ISIN: search first, then the mapping service."""
        key = f"ISIN_TICKERS:{isin.upper()}"
        if self._cache.contains(key):
            return self._cache.get(key)

        result = self._isin_from_search(isin) or self._isin_from_mapping(isin)
        self._cache.set(key, result)
        return result

    def lookup_tickers_from_name(self, instrument_name: str) -> list[TickerCandidate]:
        """Low-confidence ticker candidates from an instrument name."""
        candidates = self._search(instrument_name, limit=10)
        return [
            TickerCandidate(c.ticker, c.exchange, c.name, CONFIDENCE_LOW) for c in candidates
        ]

    def lookup_name_from_ticker(self, ticker: str) -> str | None:
        """Instrument name for a ticker, preferring an exact symbol hit."""
        key = f"TICKER:{ticker.upper()}"
        if self._cache.contains(key):
            return self._cache.get(key)

        candidates = self._search(ticker, limit=5)
        exact = next(
            (c for c in candidates if c.ticker.upper() == ticker.upper() and c.name), None
        )
        match = exact or next((c for c in candidates if c.name), None)
        name = match.name if match else None
        self._cache.set(key, name)
        return name

    def lookup_name_from_isin(self, isin: str) -> str | None:
        key = f"ISIN:{isin.upper()}"
        if self._cache.contains(key):
            return self._cache.get(key)

        name = None
        result = self.lookup_tickers_from_isin(isin)
        if result is not None:
            name = result.name or next((t.name for t in result.tickers if t.name), None)
        self._cache.set(key, name)
        return name

    def lookup_name(self, symbol: str | None = None, isin: str | None = None) -> str | None:
        """ISIN first (more reliable), then the ticker."""
        name = self.lookup_name_from_isin(isin) if isin else None
        if not name and symbol:
            name = self.lookup_name_from_ticker(symbol)
        return name

    async def run_batch(self, jobs: list[tuple[str, Callable[[], T]]]) -> list[T | None]:
        """Run blocking lookups concurrently, best-effort.

        At most ``concurrency`` jobs run at once, each in a worker thread,
        and each is abandoned after ``timeout`` seconds. A job that fails
        or times out yields None; results keep the order of ``jobs``.
        """
        semaphore = asyncio.Semaphore(self._concurrency)

        async def run_one(label: str, call: Callable[[], T]) -> T | None:
            async with semaphore:
                try:
                    return await asyncio.wait_for(asyncio.to_thread(call), timeout=self._timeout)
                except asyncio.TimeoutError:
                    logger.warning("Lookup timed out for %s", label)
                except Exception:
                    logger.warning("Lookup failed for %s", label, exc_info=True)
                return None

        return await asyncio.gather(*[run_one(label, call) for label, call in jobs])

    async def lookup_names(self, requests: list[NameRequest]) -> dict[str, str | None]:
        """Resolve many names concurrently; failures map to None."""
        jobs = [
            (request.key, partial(self.lookup_name, request.symbol, request.isin))
            for request in requests
        ]
        names = await self.run_batch(jobs)
        return {request.key: name for request, name in zip(requests, names)}
