"""Lazily constructed, explicitly owned upstream client.

The provider is created once at application start and stored on
app.state. The client itself is built on first use so the BFF can boot
(and serve /health) without credentials; a request that needs upstream
fails fast with a descriptive ConfigurationError instead.
"""

from collections.abc import Callable

from fundboard.config import UpstreamSettings
from fundboard.exceptions import ConfigurationError
from fundboard.logging import get_logger
from fundboard.upstream.breeze_client import BreezeClient
from fundboard.upstream.client import FundApiClient

logger = get_logger(__name__)


class FundClientProvider:
    """Owns the single configured FundApiClient for the process."""

    def __init__(
        self,
        settings: UpstreamSettings,
        factory: Callable[[UpstreamSettings], FundApiClient] = BreezeClient,
    ) -> None:
        self._settings = settings
        self._factory = factory
        self._client: FundApiClient | None = None

    def get(self) -> FundApiClient:
        """Return the client, constructing it on first call.

        Raises:
            ConfigurationError: BREEZE_API_KEY is empty or the timeout is not positive.
        """
        if self._client is not None:
            return self._client

        if not self._settings.api_key.get_secret_value():
            raise ConfigurationError("BREEZE_API_KEY is not configured")

        timeout_ms = self._settings.api_timeout_ms
        if timeout_ms is not None and timeout_ms <= 0:
            raise ConfigurationError(
                "BREEZE_API_TIMEOUT_MS must be a positive number if provided"
            )

        self._client = self._factory(self._settings)
        logger.info("upstream_client_created", base_url=self._settings.base_url)
        return self._client

    async def close(self) -> None:
        """Close the client if it was ever built."""
        if self._client is not None:
            await self._client.close()
            self._client = None
