"""Abstract fund API client interface.

Defines the contract for the upstream fund-management API. Route handlers
and services depend only on this interface, keeping Breeze-specific HTTP
details isolated in the concrete implementation.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any

from fundboard.upstream.types import RawUserBalances, RawUserYield


class FundApiClient(ABC):
    """Abstract base class for upstream fund API clients."""

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying HTTP session."""
        ...

    @abstractmethod
    async def get_user_yield(
        self,
        user_id: str,
        fund_id: str | None = None,
        limit: int | None = None,
    ) -> RawUserYield:
        """Fetch yield records for a user, optionally filtered to one fund."""
        ...

    @abstractmethod
    async def get_user_balances(self, user_id: str, asset: str) -> RawUserBalances:
        """Fetch wallet and fund balances for a user and one asset mint."""
        ...

    @abstractmethod
    async def create_deposit_transaction(
        self,
        fund_id: str,
        user_key: str,
        amount: Decimal,
        all: bool = False,
        payer_key: str | None = None,
    ) -> str | dict[str, Any]:
        """Create an unsigned deposit transaction.

        Returns the base64 transaction string, or the upstream error object
        when the upstream answered without one.
        """
        ...

    @abstractmethod
    async def create_withdraw_transaction(
        self,
        fund_id: str,
        user_key: str,
        amount: Decimal,
        all: bool = False,
        payer_key: str | None = None,
    ) -> str | dict[str, Any]:
        """Create an unsigned withdraw transaction.

        Returns the base64 transaction string, or the upstream error object
        when the upstream answered without one.
        """
        ...
