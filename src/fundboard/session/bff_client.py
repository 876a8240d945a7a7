"""aiohttp client for the dashboard BFF routes.

Used by the session layer the way the browser uses fetch(): every call
returns parsed models or raises DashboardRequestError carrying the BFF's
error message and HTTP status.
"""

import ssl
from typing import Any
from urllib.parse import quote

import aiohttp
import certifi

from fundboard.amounts import ZERO, to_decimal, to_int
from fundboard.config import SessionSettings
from fundboard.exceptions import DashboardRequestError
from fundboard.logging import get_logger
from fundboard.models import (
    MetricsHistoryPoint,
    MetricsReport,
    MetricsSummary,
    TokenBalanceEntry,
    TokenBalancesReport,
    TransactionKind,
    TransactionMetadata,
    TransactionResult,
    YieldBalance,
)

logger = get_logger(__name__)


def _str_or_none(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _quote(value: str) -> str:
    return quote(value, safe="")


def summary_from_json(data: Any) -> MetricsSummary:
    data = data if isinstance(data, dict) else {}
    days = data.get("daysInFund")
    return MetricsSummary(
        total_yield_earned=to_decimal(data.get("totalYieldEarned")),
        total_position_value=to_decimal(data.get("totalPositionValue")),
        total_portfolio_value=to_decimal(data.get("totalPortfolioValue")),
        current_apy=to_decimal(data.get("currentApy"), default=None),
        last_updated=_str_or_none(data.get("lastUpdated")),
        base_asset=_str_or_none(data.get("baseAsset")),
        fund_name=_str_or_none(data.get("fundName")),
        entry_date=_str_or_none(data.get("entryDate")),
        days_in_fund=days if isinstance(days, int) and not isinstance(days, bool) else None,
    )


def balance_from_json(data: dict[str, Any]) -> TokenBalanceEntry:
    raw_yield = data.get("yieldBalance")
    yield_balance = None
    if isinstance(raw_yield, dict):
        yield_balance = YieldBalance(
            fund_id=_str_or_none(raw_yield.get("fundId")) or "",
            funds=to_int(raw_yield.get("funds")),
            amount_of_yield=to_int(raw_yield.get("amountOfYield")),
            fund_apy=to_decimal(raw_yield.get("fundApy")),
        )
    return TokenBalanceEntry(
        token_address=_str_or_none(data.get("tokenAddress")) or "",
        token_symbol=_str_or_none(data.get("tokenSymbol")) or "",
        token_name=_str_or_none(data.get("tokenName")) or "",
        decimals=to_int(data.get("decimals")),
        total_balance=to_int(data.get("totalBalance")),
        normalized_balance=to_decimal(data.get("normalizedBalance")),
        yield_balance=yield_balance,
    )


def history_point_from_json(data: dict[str, Any]) -> MetricsHistoryPoint:
    return MetricsHistoryPoint(
        timestamp=_str_or_none(data.get("timestamp")) or "",
        apy=to_decimal(data.get("apy")),
        position_value=to_decimal(data.get("positionValue")),
        yield_earned=to_decimal(data.get("yieldEarned")),
    )


def _balances_from_json(data: Any) -> list[TokenBalanceEntry]:
    if not isinstance(data, list):
        return []
    return [balance_from_json(item) for item in data if isinstance(item, dict)]


def metrics_report_from_json(payload: dict[str, Any]) -> MetricsReport:
    history = payload.get("history")
    return MetricsReport(
        user_id=_str_or_none(payload.get("userId")) or "",
        fund_id=_str_or_none(payload.get("fundId")),
        summary=summary_from_json(payload.get("summary")),
        history=[
            history_point_from_json(item)
            for item in (history if isinstance(history, list) else [])
            if isinstance(item, dict)
        ],
        balances=(
            _balances_from_json(payload["balances"]) if "balances" in payload else None
        ),
        raw=payload.get("raw") if isinstance(payload.get("raw"), dict) else {},
    )


def token_balances_report_from_json(payload: dict[str, Any]) -> TokenBalancesReport:
    return TokenBalancesReport(
        user_id=_str_or_none(payload.get("userId")) or "",
        balances=_balances_from_json(payload.get("balances")),
        raw=payload.get("raw") if isinstance(payload.get("raw"), dict) else {},
    )


def transaction_result_from_json(payload: dict[str, Any]) -> TransactionResult:
    metadata = payload.get("metadata") if isinstance(payload.get("metadata"), dict) else {}
    return TransactionResult(
        transaction=_str_or_none(payload.get("transaction")) or "",
        metadata=TransactionMetadata(
            fund_id=_str_or_none(metadata.get("fundId")) or "",
            user_key=_str_or_none(metadata.get("userKey")) or "",
            payer_key=_str_or_none(metadata.get("payerKey")),
            amount=to_decimal(metadata.get("amount"), default=ZERO),
            all=bool(metadata.get("all")),
        ),
    )


class DashboardApiClient:
    """Typed client for the BFF HTTP surface.

    Args:
        settings: BFF base URL and request timeout.
    """

    def __init__(self, settings: SessionSettings) -> None:
        self._base_url = settings.bff_base_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=settings.request_timeout_seconds)
        self._session: aiohttp.ClientSession | None = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            ssl_context = ssl.create_default_context(cafile=certifi.where())
            connector = aiohttp.TCPConnector(ssl=ssl_context)
            self._session = aiohttp.ClientSession(connector=connector, timeout=self._timeout)
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def _call(
        self,
        method: str,
        path: str,
        failure_message: str,
        body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        session = self._get_session()
        url = f"{self._base_url}{path}"
        try:
            async with session.request(method, url, json=body) as response:
                status = response.status
                try:
                    payload = await response.json(content_type=None)
                except ValueError:
                    payload = None
        except aiohttp.ClientError as e:
            logger.warning("bff_request_failed", method=method, path=path, error=str(e))
            raise DashboardRequestError(failure_message) from e

        if not isinstance(payload, dict):
            raise DashboardRequestError(failure_message, status=status)

        if status >= 400 or payload.get("success") is not True:
            message = _str_or_none(payload.get("error")) or failure_message
            raise DashboardRequestError(message, status=status)

        return payload

    async def get_metrics(self, user_id: str) -> MetricsReport:
        """GET /metrics/{user_id}."""
        if not user_id:
            raise DashboardRequestError("Unable to load metrics: userId is required")
        payload = await self._call(
            "GET", f"/metrics/{_quote(user_id)}", "Unable to load metrics"
        )
        return metrics_report_from_json(payload)

    async def get_token_balances(self, user_id: str) -> TokenBalancesReport:
        """GET /token-balances/{user_id}."""
        if not user_id:
            raise DashboardRequestError("Unable to load token balances: userId is required")
        payload = await self._call(
            "GET", f"/token-balances/{_quote(user_id)}", "Unable to load token balances"
        )
        return token_balances_report_from_json(payload)

    async def create_transaction(
        self,
        kind: TransactionKind,
        amount: int,
        user_id: str,
        fund_id: str | None = None,
        all: bool = False,
    ) -> TransactionResult:
        """POST /deposit/txn or /withdraw/txn with an amount in atomic units."""
        failure = "Deposit failed" if kind is TransactionKind.DEPOSIT else "Withdrawal failed"
        body: dict[str, Any] = {"amount": amount, "userId": user_id, "all": all}
        if fund_id:
            body["fundId"] = fund_id
        payload = await self._call("POST", f"/{kind.value}/txn", failure, body=body)
        return transaction_result_from_json(payload)

