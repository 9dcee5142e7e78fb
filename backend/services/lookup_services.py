"""Process-wide lookup services built from settings.

All services share one TTL-bounded ``LookupCache``. API routers reach them
through their own dependency getters, which tests override.
"""

import logging
from functools import lru_cache

from config import settings
from integrations.exchange_rate_client import ExchangeRateClient
from integrations.openfigi_client import OpenFigiClient
from integrations.yahoo_finance_client import YahooFinanceClient
from services.currency_service import CurrencyService
from services.lookup_cache import LookupCache
from services.name_lookup_service import NameLookupService

logger = logging.getLogger(__name__)


@lru_cache
def get_lookup_cache() -> LookupCache:
    return LookupCache(ttl_seconds=settings.LOOKUP_CACHE_TTL_SECONDS)


@lru_cache
def get_yahoo_client() -> YahooFinanceClient:
    return YahooFinanceClient()


@lru_cache
def get_currency_service() -> CurrencyService:
    """Currency service backed by exchangerate-api and Yahoo."""
    logger.debug("Creating currency service (%s)", settings.EXCHANGE_RATE_API_URL)
    return CurrencyService(
        rate_provider=ExchangeRateClient(
            settings.EXCHANGE_RATE_API_URL, timeout=settings.HTTP_TIMEOUT_SECONDS
        ),
        currency_provider=get_yahoo_client(),
        cache=get_lookup_cache(),
    )


@lru_cache
def get_name_lookup_service() -> NameLookupService:
    """Name lookups backed by Yahoo search and OpenFIGI."""
    return NameLookupService(
        search_provider=get_yahoo_client(),
        isin_provider=OpenFigiClient(
            settings.OPENFIGI_API_URL,
            api_key=settings.OPENFIGI_API_KEY,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        ),
        cache=get_lookup_cache(),
        concurrency=settings.LOOKUP_CONCURRENCY,
        timeout=settings.LOOKUP_TIMEOUT_SECONDS,
    )
