"""Tests for MetricsService with a mocked upstream client."""

from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from fundboard.config import (
    SOLANA_MINT_ADDRESS,
    USDC_MINT_ADDRESS,
    AssetSettings,
    UpstreamSettings,
)
from fundboard.exceptions import UpstreamApiError
from fundboard.metrics.service import MetricsService
from fundboard.upstream.client import FundApiClient

NOW = datetime(2024, 1, 10, tzinfo=timezone.utc)

USER_YIELD = {
    "success": True,
    "data": [
        {
            "fund_id": "default-fund",
            "fund_name": "USDC Vault",
            "apy": 8.1,
            "position_value": 50_000_000,
            "yield_earned": "1200000",
            "last_updated": "2024-01-09T00:00:00Z",
            "entry_date": "2024-01-01T00:00:00Z",
            "base_asset": "USDC",
        },
        {
            "fund_id": "default-fund",
            "apy": 7.9,
            "position_value": 49_000_000,
            "yield_earned": "900000",
            "last_updated": "2024-01-05T00:00:00Z",
        },
    ],
}

USDC_BALANCES = {
    "data": [
        {
            "token_address": USDC_MINT_ADDRESS,
            "token_symbol": "USDC",
            "token_name": "USD Coin",
            "decimals": 6,
            "total_balance": 75_000_000,
        }
    ]
}

SOL_BALANCES = {
    "data": [
        {
            "token_address": SOLANA_MINT_ADDRESS,
            "token_symbol": "SOL",
            "token_name": "Solana",
            "decimals": 9,
            "total_balance": 2_000_000_000,
        }
    ]
}


@pytest.fixture
def client() -> AsyncMock:
    mock = AsyncMock(spec=FundApiClient)
    mock.get_user_yield.return_value = USER_YIELD

    async def balances(user_id: str, asset: str) -> dict:
        return USDC_BALANCES if asset == USDC_MINT_ADDRESS else SOL_BALANCES

    mock.get_user_balances.side_effect = balances
    return mock


@pytest.fixture
def service(
    client: AsyncMock,
    upstream_settings: UpstreamSettings,
    asset_settings: AssetSettings,
) -> MetricsService:
    provider = MagicMock()
    provider.get.return_value = client
    return MetricsService(provider, upstream_settings, asset_settings)


class TestGetMetrics:
    @pytest.mark.asyncio
    async def test_builds_full_report(self, service: MetricsService, client: AsyncMock) -> None:
        report = await service.get_metrics("wallet-1", now=NOW)

        assert report.user_id == "wallet-1"
        assert report.fund_id == "default-fund"
        assert report.summary.fund_name == "USDC Vault"
        assert report.summary.current_apy == Decimal("8.1")
        assert report.summary.total_yield_earned == Decimal("1.2")
        assert report.summary.total_portfolio_value == Decimal("77")
        assert report.summary.days_in_fund == 9
        assert [p.timestamp for p in report.history] == [
            "2024-01-05T00:00:00Z",
            "2024-01-09T00:00:00Z",
        ]
        assert report.balances is not None
        assert {b.token_symbol for b in report.balances} == {"USDC", "SOL"}

        client.get_user_yield.assert_awaited_once_with(
            user_id="wallet-1", fund_id="default-fund", limit=None
        )
        assert client.get_user_balances.await_count == 2

    @pytest.mark.asyncio
    async def test_raw_payloads_are_kept(self, service: MetricsService) -> None:
        report = await service.get_metrics("wallet-1", now=NOW)
        assert report.raw["user_yield"] == USER_YIELD
        assert report.raw["user_balances"][USDC_MINT_ADDRESS] == USDC_BALANCES
        assert report.raw["user_balances"][SOLANA_MINT_ADDRESS] == SOL_BALANCES

    @pytest.mark.asyncio
    async def test_empty_balances(self, service: MetricsService, client: AsyncMock) -> None:
        client.get_user_balances.side_effect = None
        client.get_user_balances.return_value = {"data": []}

        report = await service.get_metrics("wallet-1", now=NOW)

        assert report.balances == []
        assert report.summary.total_portfolio_value == 0

    @pytest.mark.asyncio
    async def test_upstream_error_propagates(
        self, service: MetricsService, client: AsyncMock
    ) -> None:
        client.get_user_yield.side_effect = UpstreamApiError("busy", status=503)

        with pytest.raises(UpstreamApiError) as exc_info:
            await service.get_metrics("wallet-1")

        assert exc_info.value.status == 503


class TestOtherReports:
    @pytest.mark.asyncio
    async def test_yield_metrics_skip_balances(
        self, service: MetricsService, client: AsyncMock
    ) -> None:
        report = await service.get_yield_metrics("wallet-1", now=NOW)

        assert report.balances is None
        assert len(report.history) == 2
        client.get_user_balances.assert_not_called()

    @pytest.mark.asyncio
    async def test_token_balances_for_base_asset(
        self, service: MetricsService, client: AsyncMock
    ) -> None:
        report = await service.get_token_balances("wallet-1")

        assert len(report.balances) == 1
        assert report.balances[0].normalized_balance == Decimal("75")
        assert report.raw == {"usdc": USDC_BALANCES}
        client.get_user_balances.assert_awaited_once_with(
            user_id="wallet-1", asset=USDC_MINT_ADDRESS
        )

    def test_default_user_id(self, service: MetricsService) -> None:
        assert service.default_user_id == "default-user"
