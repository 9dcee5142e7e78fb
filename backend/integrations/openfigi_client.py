"""OpenFIGI ISIN-to-ticker mapping client."""

import logging

import httpx

from integrations.exceptions import ServiceAPIError, ServiceConnectionError, ServiceDataError
from integrations.lookup_protocol import CONFIDENCE_HIGH, IsinLookupResult, TickerCandidate

logger = logging.getLogger(__name__)

SERVICE_NAME = "openfigi"


class OpenFigiClient:
    """Maps ISINs to exchange tickers with the OpenFIGI v3 mapping API."""

    def __init__(self, api_url: str, api_key: str = "", timeout: float = 5.0):
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["X-OPENFIGI-APIKEY"] = api_key
        self._api_url = api_url
        self._client = httpx.Client(headers=headers, timeout=timeout)

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    @property
    def service_name(self) -> str:
        return SERVICE_NAME

    def map_isin(self, isin: str) -> IsinLookupResult | None:
        """Return every ticker OpenFIGI lists for ``isin``.

        OpenFIGI returns its main listing first, so that ticker becomes
        the primary one.

        Raises:
            ServiceConnectionError: Network failure or timeout.
            ServiceAPIError: Non-2xx response (429 when rate limited).
            ServiceDataError: Response body is not the expected JSON list.
        """
        try:
            response = self._client.post(
                self._api_url, json=[{"idType": "ID_ISIN", "idValue": isin}]
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ServiceAPIError(
                f"OpenFIGI mapping for {isin} failed: {exc.response.status_code}",
                service_name=SERVICE_NAME,
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise ServiceConnectionError(
                f"OpenFIGI mapping for {isin} failed: {exc}", service_name=SERVICE_NAME
            ) from exc

        try:
            jobs = response.json()
            data = jobs[0].get("data") or []
        except (ValueError, IndexError, AttributeError, TypeError) as exc:
            raise ServiceDataError(
                f"Unexpected OpenFIGI response for {isin}", service_name=SERVICE_NAME
            ) from exc

        tickers = [
            TickerCandidate(
                ticker=item["ticker"],
                exchange=item.get("exchCode"),
                name=item.get("name"),
                confidence=CONFIDENCE_HIGH,
            )
            for item in data
            if item.get("ticker")
        ]
        if not tickers:
            logger.debug("OpenFIGI: no tickers for %s", isin)
            return None

        return IsinLookupResult(
            isin=isin,
            tickers=tickers,
            name=data[0].get("name"),
            primary_ticker=tickers[0].ticker,
        )
