"""External service integrations.

This package contains:
- Lookup protocols: interfaces for text extraction, rates, currencies and names
- pdfplumber text extractor
- exchangerate-api, Yahoo Finance and OpenFIGI clients
- Typed exception hierarchy shared by all clients
"""

from integrations.exceptions import (
    ExternalServiceError,
    PdfExtractionError,
    ServiceAPIError,
    ServiceConnectionError,
    ServiceDataError,
)
from integrations.lookup_protocol import IsinLookupResult, TickerCandidate

__all__ = [
    "ExternalServiceError",
    "IsinLookupResult",
    "PdfExtractionError",
    "ServiceAPIError",
    "ServiceConnectionError",
    "ServiceDataError",
    "TickerCandidate",
]
