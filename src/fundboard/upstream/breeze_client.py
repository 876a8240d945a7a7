"""Breeze fund API client implementation via aiohttp.

One aiohttp session is opened lazily and reused for every call until
close(). No retries here: a failed call surfaces to the caller, which
decides whether to try again.
"""

import asyncio
import json
import ssl
from decimal import Decimal
from typing import Any

import aiohttp
import certifi

from fundboard.config import UpstreamSettings
from fundboard.exceptions import UpstreamApiError, UpstreamTransportError
from fundboard.logging import get_logger
from fundboard.upstream.client import FundApiClient
from fundboard.upstream.types import RawUserBalances, RawUserYield

logger = get_logger(__name__)

USER_YIELD_PATH = "/user-yield/{user_id}"
USER_BALANCES_PATH = "/user-balances/{user_id}"
DEPOSIT_TX_PATH = "/deposit/tx"
WITHDRAW_TX_PATH = "/withdraw/tx"


class BreezeClient(FundApiClient):
    """Concrete Breeze API client using an aiohttp session."""

    def __init__(self, settings: UpstreamSettings) -> None:
        self._settings = settings
        self._base_url = settings.base_url.rstrip("/")
        total = settings.api_timeout_ms / 1000 if settings.api_timeout_ms else None
        self._timeout = aiohttp.ClientTimeout(total=total)
        self._session: aiohttp.ClientSession | None = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            ssl_context = ssl.create_default_context(cafile=certifi.where())
            connector = aiohttp.TCPConnector(ssl=ssl_context)
            self._session = aiohttp.ClientSession(
                connector=connector,
                timeout=self._timeout,
                headers={
                    "x-api-key": self._settings.api_key.get_secret_value(),
                    "Accept": "application/json",
                },
            )
        return self._session

    async def close(self) -> None:
        """Close the aiohttp session. Must be called on shutdown to avoid leaks."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
            logger.info("breeze_session_closed")
        self._session = None

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
    ) -> Any:
        """Perform one HTTP call and return the decoded JSON payload.

        Raises:
            UpstreamApiError: HTTP status >= 400 or an envelope with success=false.
            UpstreamTransportError: network failure, timeout or non-JSON body.
        """
        url = f"{self._base_url}{path}"
        query = {k: str(v) for k, v in (params or {}).items() if v is not None}
        session = self._get_session()

        try:
            async with session.request(method, url, params=query, json=body) as response:
                status = response.status
                text = await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning("upstream_request_failed", method=method, path=path, error=str(e))
            raise UpstreamTransportError(f"Upstream request failed: {e}") from e

        try:
            payload = json.loads(text) if text else None
        except ValueError:
            if status >= 400:
                raise UpstreamApiError(
                    f"Upstream API returned HTTP {status}", status=status, details=text
                )
            logger.warning("upstream_non_json_response", method=method, path=path, status=status)
            raise UpstreamTransportError("Upstream API returned a non-JSON response")

        if status >= 400:
            logger.warning("upstream_error_status", method=method, path=path, status=status)
            raise UpstreamApiError(
                _error_message(payload, f"Upstream API returned HTTP {status}"),
                status=status,
                details=payload,
            )

        if isinstance(payload, dict) and payload.get("success") is False:
            embedded = payload.get("status")
            logger.warning("upstream_unsuccessful_envelope", method=method, path=path)
            raise UpstreamApiError(
                _error_message(payload, "Upstream API reported failure"),
                status=embedded if isinstance(embedded, int) else None,
                details=payload,
            )

        return payload

    async def get_user_yield(
        self,
        user_id: str,
        fund_id: str | None = None,
        limit: int | None = None,
    ) -> RawUserYield:
        """Fetch yield records for a user."""
        payload = await self._request(
            "GET",
            USER_YIELD_PATH.format(user_id=user_id),
            params={"fund_id": fund_id, "limit": limit},
        )
        logger.debug("fetched_user_yield", user_id=user_id, fund_id=fund_id)
        return _as_envelope(payload)  # type: ignore[return-value]

    async def get_user_balances(self, user_id: str, asset: str) -> RawUserBalances:
        """Fetch balances for a user and one asset mint."""
        payload = await self._request(
            "GET",
            USER_BALANCES_PATH.format(user_id=user_id),
            params={"asset": asset},
        )
        logger.debug("fetched_user_balances", user_id=user_id, asset=asset)
        return _as_envelope(payload)  # type: ignore[return-value]

    async def create_deposit_transaction(
        self,
        fund_id: str,
        user_key: str,
        amount: Decimal,
        all: bool = False,
        payer_key: str | None = None,
    ) -> str | dict[str, Any]:
        """Create an unsigned deposit transaction."""
        logger.info("creating_deposit_transaction", fund_id=fund_id, amount=str(amount), all=all)
        payload = await self._request(
            "POST",
            DEPOSIT_TX_PATH,
            body=_transaction_body(fund_id, user_key, amount, all, payer_key),
        )
        return _extract_transaction(payload)

    async def create_withdraw_transaction(
        self,
        fund_id: str,
        user_key: str,
        amount: Decimal,
        all: bool = False,
        payer_key: str | None = None,
    ) -> str | dict[str, Any]:
        """Create an unsigned withdraw transaction."""
        logger.info("creating_withdraw_transaction", fund_id=fund_id, amount=str(amount), all=all)
        payload = await self._request(
            "POST",
            WITHDRAW_TX_PATH,
            body=_transaction_body(fund_id, user_key, amount, all, payer_key),
        )
        return _extract_transaction(payload)


def _error_message(payload: Any, fallback: str) -> str:
    if isinstance(payload, dict):
        for key in ("message", "error"):
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                return value
    return fallback


def _as_envelope(payload: Any) -> dict[str, Any]:
    """Wrap a bare list as {"data": [...]}; anything else non-dict becomes empty."""
    if isinstance(payload, dict):
        return payload
    if isinstance(payload, list):
        return {"data": payload}
    return {"data": []}


def _amount_to_json(amount: Decimal) -> int | str:
    """Integral amounts go out as JSON integers, fractional ones as exact strings."""
    if amount == amount.to_integral_value():
        return int(amount)
    return str(amount)


def _transaction_body(
    fund_id: str,
    user_key: str,
    amount: Decimal,
    all: bool,
    payer_key: str | None,
) -> dict[str, Any]:
    body: dict[str, Any] = {
        "fund_id": fund_id,
        "user_key": user_key,
        "amount": _amount_to_json(amount),
        "all": all,
    }
    if payer_key:
        body["payer_key"] = payer_key
    return body


def _extract_transaction(payload: Any) -> str | dict[str, Any]:
    """Return the base64 transaction string, or the payload as the error object."""
    if isinstance(payload, str):
        return payload
    if isinstance(payload, dict):
        for key in ("result", "transaction", "data"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value
        return payload
    return {"message": None, "payload": payload}
