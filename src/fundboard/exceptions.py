"""Custom exceptions for the fund dashboard.

All exceptions live here to avoid circular imports between the upstream
client, the route handlers and the client session layer.
"""

from typing import Any


class FundboardError(Exception):
    """Base exception for all fundboard errors."""


class ConfigurationError(FundboardError):
    """Raised when required configuration (e.g. BREEZE_API_KEY) is missing or invalid."""


class InvalidRequestError(FundboardError):
    """Raised when an incoming BFF request is rejected before any upstream call."""

    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class AmountValidationError(FundboardError):
    """Raised when a user-entered amount fails validation on the client side."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UpstreamApiError(FundboardError):
    """Raised when the upstream fund API returns a structured failure.

    Carries the upstream HTTP status (None when the upstream did not give
    one) and the upstream error payload for diagnostics.
    """

    def __init__(
        self, message: str, status: int | None = None, details: Any = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.details = details

    @property
    def http_status(self) -> int:
        """Status to surface to callers; 502 when the upstream gave none."""
        return self.status or 502


class UpstreamTransportError(FundboardError):
    """Raised on network failure or a malformed (non-JSON) upstream response."""


class DashboardRequestError(FundboardError):
    """Raised by the client session layer when a BFF call fails."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
