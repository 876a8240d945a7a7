"""Upstream fund API layer -- Breeze REST integration via aiohttp."""

from fundboard.upstream.breeze_client import BreezeClient
from fundboard.upstream.client import FundApiClient
from fundboard.upstream.provider import FundClientProvider

__all__ = ["BreezeClient", "FundApiClient", "FundClientProvider"]
