"""Trading-currency detection and exchange-rate conversion for imports."""

import logging
import re
from decimal import Decimal

from integrations.exceptions import ExternalServiceError
from integrations.lookup_protocol import ExchangeRateProvider, SymbolCurrencyProvider
from services.lookup_cache import LookupCache

logger = logging.getLogger(__name__)

DEFAULT_CURRENCY = "USD"
FALLBACK_RATE = Decimal("1")

# Exchange-suffix and well-known-listing patterns, checked in order
CURRENCY_PATTERNS: list[tuple[re.Pattern, str]] = [
    (re.compile(r"^[A-Z]{2,4}\.PA$"), "EUR"),  # Paris
    (re.compile(r"^[A-Z]{2,4}\.DE$"), "EUR"),  # Frankfurt
    (re.compile(r"^[A-Z]{2,4}\.AS$"), "EUR"),  # Amsterdam
    (re.compile(r"^[A-Z]{2,4}\.BR$"), "EUR"),  # Brussels
    (re.compile(r"^[A-Z]{2,4}\.MI$"), "EUR"),  # Milan
    (re.compile(r"^[A-Z]{2,4}\.VI$"), "EUR"),  # Vienna
    (re.compile(r"^[A-Z]{2,4}\.L$"), "GBP"),  # London
    (re.compile(r"^[A-Z]{2,4}\.SW$"), "CHF"),  # Swiss
    # European ETFs held without an exchange suffix
    (re.compile(r"^(B26A|B28A|CSH2|EGLN|ERNX|EUHD|IB27|IEGY|WBTC|XEON|YCSH)$"), "EUR"),
    (re.compile(r"^[A-Z]{1,5}$"), "USD"),
]


def currency_from_pattern(symbol: str) -> str | None:
    """Currency implied by the symbol's shape, or None."""
    for pattern, currency in CURRENCY_PATTERNS:
        if pattern.match(symbol):
            return currency
    return None


class CurrencyService:
    """Resolves holding currencies and converts values between currencies.

    Currency priority: the statement's own currency, the cache, symbol
    patterns, the online provider, then USD. Any provider failure degrades
    (unknown currency -> USD, unknown rate -> 1) and is logged.
    """

    def __init__(
        self,
        rate_provider: ExchangeRateProvider | None = None,
        currency_provider: SymbolCurrencyProvider | None = None,
        cache: LookupCache | None = None,
    ):
        self._rate_provider = rate_provider
        self._currency_provider = currency_provider
        self._cache = cache if cache is not None else LookupCache()

    def get_currency_for_symbol(self, symbol: str, from_statement: str | None = None) -> str:
        key = f"CURRENCY:{symbol.upper()}"
        if from_statement:
            currency = from_statement.upper()
            self._cache.set(key, currency)
            return currency

        cached = self._cache.get(key)
        if cached:
            return cached

        currency = currency_from_pattern(symbol.upper())
        if currency is None and self._currency_provider is not None:
            try:
                currency = self._currency_provider.get_currency(symbol)
            except ExternalServiceError:
                logger.warning("Currency lookup failed for %s, using %s", symbol, DEFAULT_CURRENCY, exc_info=True)
        currency = currency or DEFAULT_CURRENCY
        self._cache.set(key, currency)
        return currency

    def get_currencies(self, symbols: list[tuple[str, str | None]]) -> dict[str, str]:
        """Resolve (symbol, statement currency) pairs to a symbol -> currency map."""
        return {
            symbol: self.get_currency_for_symbol(symbol, from_statement)
            for symbol, from_statement in symbols
        }

    def get_exchange_rate(self, from_currency: str, to_currency: str) -> Decimal:
        """Rate from one currency to another; 1 on a match or any failure."""
        if from_currency.upper() == to_currency.upper():
            return Decimal("1")

        key = f"RATE:{from_currency.upper()}:{to_currency.upper()}"
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        if self._rate_provider is None:
            logger.warning(
                "No exchange rate provider; using %s for %s -> %s",
                FALLBACK_RATE, from_currency, to_currency,
            )
            return FALLBACK_RATE

        try:
            rate = self._rate_provider.get_exchange_rate(from_currency, to_currency)
        except ExternalServiceError:
            logger.warning(
                "Exchange rate lookup failed for %s -> %s, using %s",
                from_currency, to_currency, FALLBACK_RATE,
                exc_info=True,
            )
            return FALLBACK_RATE

        self._cache.set(key, rate)
        logger.info("Exchange rate %s -> %s: %s", from_currency, to_currency, rate)
        return rate

    def get_rates(self, currencies: set[str], to_currency: str) -> dict[str, Decimal]:
        """One rate per distinct currency."""
        return {currency: self.get_exchange_rate(currency, to_currency) for currency in sorted(currencies)}
