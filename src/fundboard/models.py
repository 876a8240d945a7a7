"""Shared data models for the fund dashboard.

CRITICAL: All monetary values use Decimal. Never use float for balances,
yields, APYs or percentages. Every model is an immutable snapshot: a
refetch replaces it, nothing mutates it in place.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any


class TransactionKind(str, Enum):
    """Direction of a fund transaction."""

    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"


@dataclass(frozen=True)
class YieldBalance:
    """A wallet's position in one fund, in atomic units of the base asset."""

    fund_id: str
    funds: int  # atomic principal
    amount_of_yield: int  # atomic accrued yield
    fund_apy: Decimal  # percent


@dataclass(frozen=True)
class TokenBalanceEntry:
    """Normalized wallet balance for a single token."""

    token_address: str
    token_symbol: str
    token_name: str
    decimals: int
    total_balance: int  # atomic units
    normalized_balance: Decimal  # total_balance / 10**decimals, exact
    yield_balance: YieldBalance | None = None


@dataclass(frozen=True)
class MetricsSummary:
    """Headline metrics for the selected fund position.

    total_position_value is in upstream atomic units; callers normalise it
    with the base asset decimals. days_in_fund is derived from entry_date.
    """

    total_yield_earned: Decimal = Decimal("0")
    total_position_value: Decimal = Decimal("0")
    total_portfolio_value: Decimal = Decimal("0")
    current_apy: Decimal | None = None
    last_updated: str | None = None
    base_asset: str | None = None
    fund_name: str | None = None
    entry_date: str | None = None
    days_in_fund: int | None = None


@dataclass(frozen=True)
class MetricsHistoryPoint:
    """One point of the yield history chart."""

    timestamp: str
    apy: Decimal
    position_value: Decimal
    yield_earned: Decimal


@dataclass(frozen=True)
class CapitalBreakdown:
    """How the base asset is split between earning and idle capital."""

    base_asset: str
    principal: Decimal
    earned: Decimal
    earning_total: Decimal
    idle: Decimal
    earning_percent: Decimal
    idle_percent: Decimal


@dataclass(frozen=True)
class MetricsReport:
    """Payload of the /metrics and /yield-metrics routes."""

    user_id: str
    summary: MetricsSummary
    fund_id: str | None = None
    history: list[MetricsHistoryPoint] = field(default_factory=list)
    balances: list[TokenBalanceEntry] | None = None
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TokenBalancesReport:
    """Payload of the /token-balances route."""

    user_id: str
    balances: list[TokenBalanceEntry]
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TransactionRequest:
    """Validated deposit/withdraw request ready for the upstream API.

    amount is finite and strictly positive. all=True asks the upstream to
    redeem the full position.
    """

    kind: TransactionKind
    fund_id: str
    user_key: str
    amount: Decimal
    all: bool = False
    payer_key: str | None = None


@dataclass(frozen=True)
class TransactionMetadata:
    """Echo of the request parameters returned with an unsigned transaction."""

    fund_id: str
    user_key: str
    amount: Decimal
    all: bool
    payer_key: str | None = None


@dataclass(frozen=True)
class TransactionResult:
    """Unsigned transaction (opaque base64 string) and its metadata."""

    transaction: str
    metadata: TransactionMetadata
