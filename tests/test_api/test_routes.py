"""Tests for the BFF HTTP routes.

Services on app.state are replaced with mocks; the FastAPI TestClient
drives the real routers, serialization and error mapping.
"""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from fundboard.api.app import create_app
from fundboard.exceptions import (
    ConfigurationError,
    InvalidRequestError,
    UpstreamApiError,
)
from fundboard.models import (
    MetricsHistoryPoint,
    MetricsReport,
    MetricsSummary,
    TokenBalanceEntry,
    TokenBalancesReport,
    TransactionKind,
    TransactionMetadata,
    TransactionRequest,
    TransactionResult,
)

USDC_ENTRY = TokenBalanceEntry(
    token_address="EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v",
    token_symbol="USDC",
    token_name="USD Coin",
    decimals=6,
    total_balance=1_500_000,
    normalized_balance=Decimal("1.5"),
)


def _report(user_id: str) -> MetricsReport:
    return MetricsReport(
        user_id=user_id,
        fund_id="fund-1",
        summary=MetricsSummary(
            total_yield_earned=Decimal("0.000003"),
            total_position_value=Decimal("1000000"),
            current_apy=Decimal("7.25"),
        ),
        history=[
            MetricsHistoryPoint(
                timestamp="2024-01-01",
                apy=Decimal("7"),
                position_value=Decimal("1000000"),
                yield_earned=Decimal("0"),
            )
        ],
        balances=[USDC_ENTRY],
        raw={"user_yield": {"data": []}},
    )


@pytest.fixture
def metrics_service() -> MagicMock:
    service = MagicMock()
    service.default_user_id = "default-user"
    service.get_metrics = AsyncMock(side_effect=lambda user_id, limit=None: _report(user_id))
    service.get_yield_metrics = AsyncMock(
        side_effect=lambda user_id, limit=None: _report(user_id)
    )
    service.get_token_balances = AsyncMock(
        return_value=TokenBalancesReport(user_id="wallet-1", balances=[USDC_ENTRY])
    )
    return service


@pytest.fixture
def transaction_builder() -> MagicMock:
    builder = MagicMock()
    builder.parse_payload = MagicMock(
        return_value=TransactionRequest(
            kind=TransactionKind.DEPOSIT,
            fund_id="fund-1",
            user_key="wallet-1",
            amount=Decimal("2.5"),
        )
    )
    builder.submit = AsyncMock(
        return_value=TransactionResult(
            transaction="AQID",
            metadata=TransactionMetadata(
                fund_id="fund-1",
                user_key="wallet-1",
                amount=Decimal("2.5"),
                all=False,
            ),
        )
    )
    return builder


@pytest.fixture
def api(metrics_service: MagicMock, transaction_builder: MagicMock) -> TestClient:
    app = create_app()
    app.state.metrics_service = metrics_service
    app.state.transaction_builder = transaction_builder
    return TestClient(app)


def test_health(api: TestClient) -> None:
    response = api.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


class TestMetricsRoutes:
    def test_metrics_for_user(self, api: TestClient, metrics_service: MagicMock) -> None:
        response = api.get("/api/metrics/wallet-1")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["userId"] == "wallet-1"
        assert body["fundId"] == "fund-1"
        assert body["summary"]["currentApy"] == "7.25"
        assert body["summary"]["totalYieldEarned"] == "0.000003"
        assert body["history"][0]["timestamp"] == "2024-01-01"
        assert body["balances"][0]["normalizedBalance"] == "1.5"
        assert body["raw"] == {"user_yield": {"data": []}}
        metrics_service.get_metrics.assert_awaited_once_with("wallet-1", limit=None)

    def test_default_user(self, api: TestClient, metrics_service: MagicMock) -> None:
        response = api.get("/api/metrics")

        assert response.status_code == 200
        assert response.json()["userId"] == "default-user"

    def test_missing_user_is_400(self, api: TestClient, metrics_service: MagicMock) -> None:
        metrics_service.default_user_id = None

        response = api.get("/api/metrics")

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "error": "userId is required. Provide it in the route path "
            "or configure BREEZE_USER_ID.",
        }
        metrics_service.get_metrics.assert_not_called()

    def test_upstream_status_is_propagated(
        self, api: TestClient, metrics_service: MagicMock
    ) -> None:
        metrics_service.get_metrics.side_effect = UpstreamApiError(
            "Service unavailable", status=503, details={"code": "MAINT"}
        )

        response = api.get("/api/metrics/wallet-1")

        assert response.status_code == 503
        assert response.json() == {
            "success": False,
            "error": "Service unavailable",
            "details": {"code": "MAINT"},
        }

    def test_upstream_without_status_is_502(
        self, api: TestClient, metrics_service: MagicMock
    ) -> None:
        metrics_service.get_metrics.side_effect = UpstreamApiError("bad gateway")

        response = api.get("/api/metrics/wallet-1")

        assert response.status_code == 502

    def test_unexpected_error_is_500(
        self, api: TestClient, metrics_service: MagicMock
    ) -> None:
        metrics_service.get_metrics.side_effect = ConfigurationError(
            "BREEZE_API_KEY is not configured"
        )

        response = api.get("/api/metrics/wallet-1")

        assert response.status_code == 500
        assert response.json()["error"] == "BREEZE_API_KEY is not configured"

    def test_yield_metrics_have_no_balances(self, api: TestClient) -> None:
        response = api.get("/api/yield-metrics/wallet-1")

        assert response.status_code == 200
        assert "balances" not in response.json()

    def test_token_balances(self, api: TestClient, metrics_service: MagicMock) -> None:
        response = api.get("/api/token-balances/wallet-1")

        assert response.status_code == 200
        assert response.json()["balances"][0]["tokenSymbol"] == "USDC"
        metrics_service.get_token_balances.assert_awaited_once_with("wallet-1")


class TestTransactionRoutes:
    def test_deposit(self, api: TestClient, transaction_builder: MagicMock) -> None:
        response = api.post("/api/deposit", json={"amount": "2.5"})

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "transaction": "AQID",
            "metadata": {
                "fundId": "fund-1",
                "userKey": "wallet-1",
                "amount": "2.5",
                "all": False,
                "payerKey": None,
            },
        }
        transaction_builder.parse_payload.assert_called_once_with(
            {"amount": "2.5"}, TransactionKind.DEPOSIT, payer_defaults_to_user=False
        )

    def test_txn_variant_defaults_payer_to_user(
        self, api: TestClient, transaction_builder: MagicMock
    ) -> None:
        api.post("/api/withdraw/txn", json={"amount": 1})

        transaction_builder.parse_payload.assert_called_once_with(
            {"amount": 1}, TransactionKind.WITHDRAW, payer_defaults_to_user=True
        )

    def test_invalid_json(self, api: TestClient, transaction_builder: MagicMock) -> None:
        response = api.post(
            "/api/deposit",
            content=b"{not json",
            headers={"content-type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid JSON payload"
        transaction_builder.submit.assert_not_called()

    def test_validation_error_is_400(
        self, api: TestClient, transaction_builder: MagicMock
    ) -> None:
        transaction_builder.parse_payload.side_effect = InvalidRequestError(
            "Deposit amount must be a positive number"
        )

        response = api.post("/api/deposit", json={"amount": "-5"})

        assert response.status_code == 400
        assert response.json()["error"] == "Deposit amount must be a positive number"
        transaction_builder.submit.assert_not_called()

    def test_withdraw_upstream_503(
        self, api: TestClient, transaction_builder: MagicMock
    ) -> None:
        transaction_builder.submit.side_effect = UpstreamApiError(
            "Upstream busy", status=503, details={"retryAfter": 5}
        )

        response = api.post("/api/withdraw", json={"amount": 1})

        assert response.status_code == 503
        assert response.json()["error"] == "Upstream busy"
        assert response.json()["details"] == {"retryAfter": 5}

    def test_unexpected_error_is_500(
        self, api: TestClient, transaction_builder: MagicMock
    ) -> None:
        transaction_builder.submit.side_effect = RuntimeError()

        response = api.post("/api/deposit", json={"amount": 1})

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Unknown error"}
