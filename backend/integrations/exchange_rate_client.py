"""Exchange rate provider backed by the exchangerate-api.com v4 endpoint."""

import logging
from decimal import Decimal, InvalidOperation

import httpx

from integrations.exceptions import ServiceAPIError, ServiceConnectionError, ServiceDataError

logger = logging.getLogger(__name__)

SERVICE_NAME = "exchangerate-api"


class ExchangeRateClient:
    """Fetches the latest rates for a base currency.

    ``GET {base_url}/{FROM}`` returns ``{"rates": {"USD": 1.08, ...}}``.
    """

    def __init__(self, base_url: str, timeout: float = 5.0):
        self._client = httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout)

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    @property
    def service_name(self) -> str:
        return SERVICE_NAME

    def get_exchange_rate(self, from_currency: str, to_currency: str) -> Decimal:
        """Return the ``from_currency`` -> ``to_currency`` rate.

        Raises:
            ServiceConnectionError: Network failure or timeout.
            ServiceAPIError: Non-2xx response.
            ServiceDataError: Response has no usable rate for ``to_currency``.
        """
        source = from_currency.upper()
        target = to_currency.upper()
        if source == target:
            return Decimal("1")

        try:
            response = self._client.get(f"/{source}")
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ServiceAPIError(
                f"Exchange rate request for {source} failed: {exc.response.status_code}",
                service_name=SERVICE_NAME,
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise ServiceConnectionError(
                f"Exchange rate request for {source} failed: {exc}",
                service_name=SERVICE_NAME,
            ) from exc

        try:
            raw_rate = response.json().get("rates", {}).get(target)
        except ValueError as exc:
            raise ServiceDataError(
                f"Exchange rate response for {source} is not JSON", service_name=SERVICE_NAME
            ) from exc

        if raw_rate is None:
            raise ServiceDataError(
                f"No {target} rate in response for {source}", service_name=SERVICE_NAME
            )
        try:
            rate = Decimal(str(raw_rate))
        except InvalidOperation as exc:
            raise ServiceDataError(
                f"Invalid {target} rate for {source}: {raw_rate!r}", service_name=SERVICE_NAME
            ) from exc

        logger.debug("Exchange rate %s -> %s: %s", source, target, rate)
        return rate
