"""Tests for BreezeClient.

All tests use a mocked aiohttp session to avoid real API calls.
"""

import json
from decimal import Decimal
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from fundboard.config import UpstreamSettings
from fundboard.exceptions import UpstreamApiError, UpstreamTransportError
from fundboard.upstream.breeze_client import BreezeClient


def _mock_session(status: int = 200, payload: Any = None, text: str | None = None):
    """Create a mock aiohttp session whose request() yields one response."""
    mock_response = AsyncMock()
    mock_response.status = status
    body = text if text is not None else json.dumps(payload)
    mock_response.text = AsyncMock(return_value=body)
    mock_response.__aenter__ = AsyncMock(return_value=mock_response)
    mock_response.__aexit__ = AsyncMock(return_value=None)

    mock_session = MagicMock()
    mock_session.closed = False
    mock_session.request = MagicMock(return_value=mock_response)
    mock_session.close = AsyncMock()
    return mock_session


@pytest.fixture
def client(upstream_settings: UpstreamSettings) -> BreezeClient:
    return BreezeClient(upstream_settings)


class TestReads:
    @pytest.mark.asyncio
    async def test_get_user_yield(self, client: BreezeClient) -> None:
        session = _mock_session(payload={"success": True, "data": [{"apy": 5}]})
        client._session = session

        result = await client.get_user_yield("wallet-1", fund_id="fund-1", limit=10)

        assert result == {"success": True, "data": [{"apy": 5}]}
        session.request.assert_called_once_with(
            "GET",
            "https://breeze.test/user-yield/wallet-1",
            params={"fund_id": "fund-1", "limit": "10"},
            json=None,
        )

    @pytest.mark.asyncio
    async def test_none_params_are_dropped(self, client: BreezeClient) -> None:
        session = _mock_session(payload={"data": []})
        client._session = session

        await client.get_user_yield("wallet-1")

        assert session.request.call_args.kwargs["params"] == {}

    @pytest.mark.asyncio
    async def test_bare_list_is_wrapped(self, client: BreezeClient) -> None:
        client._session = _mock_session(payload=[{"token_symbol": "USDC"}])

        result = await client.get_user_balances("wallet-1", asset="mint")

        assert result == {"data": [{"token_symbol": "USDC"}]}


class TestErrors:
    @pytest.mark.asyncio
    async def test_http_error_carries_status_and_details(self, client: BreezeClient) -> None:
        client._session = _mock_session(status=503, payload={"message": "maintenance"})

        with pytest.raises(UpstreamApiError) as exc_info:
            await client.get_user_yield("wallet-1")

        assert exc_info.value.status == 503
        assert exc_info.value.message == "maintenance"
        assert exc_info.value.details == {"message": "maintenance"}

    @pytest.mark.asyncio
    async def test_unsuccessful_envelope(self, client: BreezeClient) -> None:
        client._session = _mock_session(payload={"success": False, "error": "unknown user"})

        with pytest.raises(UpstreamApiError) as exc_info:
            await client.get_user_yield("wallet-1")

        assert exc_info.value.status is None
        assert exc_info.value.http_status == 502
        assert exc_info.value.message == "unknown user"

    @pytest.mark.asyncio
    async def test_non_json_success_is_transport_error(self, client: BreezeClient) -> None:
        client._session = _mock_session(text="<html>oops</html>")

        with pytest.raises(UpstreamTransportError):
            await client.get_user_yield("wallet-1")

    @pytest.mark.asyncio
    async def test_non_json_error_keeps_status(self, client: BreezeClient) -> None:
        client._session = _mock_session(status=504, text="Gateway Timeout")

        with pytest.raises(UpstreamApiError) as exc_info:
            await client.get_user_yield("wallet-1")

        assert exc_info.value.status == 504

    @pytest.mark.asyncio
    async def test_network_failure(self, client: BreezeClient) -> None:
        session = _mock_session()
        session.request = MagicMock(side_effect=aiohttp.ClientConnectionError("refused"))
        client._session = session

        with pytest.raises(UpstreamTransportError, match="refused"):
            await client.get_user_yield("wallet-1")


class TestTransactions:
    @pytest.mark.asyncio
    async def test_deposit_body(self, client: BreezeClient) -> None:
        session = _mock_session(payload={"success": True, "result": "AQID"})
        client._session = session

        tx = await client.create_deposit_transaction(
            fund_id="fund-1",
            user_key="wallet-1",
            amount=Decimal("5000000"),
            payer_key="payer-1",
        )

        assert tx == "AQID"
        assert session.request.call_args.kwargs["json"] == {
            "fund_id": "fund-1",
            "user_key": "wallet-1",
            "amount": 5000000,
            "all": False,
            "payer_key": "payer-1",
        }

    @pytest.mark.asyncio
    async def test_fractional_amount_is_string(self, client: BreezeClient) -> None:
        session = _mock_session(payload="BAUG")
        client._session = session

        tx = await client.create_withdraw_transaction(
            fund_id="fund-1", user_key="wallet-1", amount=Decimal("1.5"), all=True
        )

        assert tx == "BAUG"
        body = session.request.call_args.kwargs["json"]
        assert body["amount"] == "1.5"
        assert body["all"] is True
        assert "payer_key" not in body

    @pytest.mark.asyncio
    async def test_unexpected_payload_is_returned_as_object(self, client: BreezeClient) -> None:
        client._session = _mock_session(payload={"success": True, "message": "queued"})

        tx = await client.create_deposit_transaction(
            fund_id="fund-1", user_key="wallet-1", amount=Decimal("1")
        )

        assert tx == {"success": True, "message": "queued"}


class TestSession:
    def test_timeout_from_settings(self, upstream_settings: UpstreamSettings) -> None:
        settings = upstream_settings.model_copy(update={"api_timeout_ms": 2500})
        client = BreezeClient(settings)
        assert client._timeout.total == 2.5

    @pytest.mark.asyncio
    async def test_close(self, client: BreezeClient) -> None:
        session = _mock_session()
        client._session = session

        await client.close()

        session.close.assert_awaited_once()
        assert client._session is None
