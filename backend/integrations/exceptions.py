"""Typed exception hierarchy for external lookup services.

Provides structured exceptions for differentiated error handling
(transient network errors vs API errors vs unusable data).
"""


class ExternalServiceError(Exception):
    """Base exception for all external-service errors.

    Carries the service name so callers can identify which lookup failed.
    """

    def __init__(self, message: str, service_name: str = ""):
        self.service_name = service_name
        super().__init__(message)


class ServiceConnectionError(ExternalServiceError):
    """Network failures: timeouts, DNS resolution, connection refused.

    Retriable by default.
    """

    def __init__(self, message: str, service_name: str = "", retriable: bool = True):
        self.retriable = retriable
        super().__init__(message, service_name)


class ServiceAPIError(ExternalServiceError):
    """HTTP 4xx/5xx responses from the service API."""

    def __init__(
        self,
        message: str,
        service_name: str = "",
        status_code: int | None = None,
    ):
        self.status_code = status_code
        super().__init__(message, service_name)

    @property
    def retriable(self) -> bool:
        """429 (rate limit) and 5xx errors are generally retriable."""
        if self.status_code is None:
            return False
        return self.status_code == 429 or self.status_code >= 500


class ServiceDataError(ExternalServiceError):
    """Malformed or unusable response from the service."""

    pass


class PdfExtractionError(ServiceDataError):
    """The uploaded bytes could not be read as a PDF document."""

    pass
