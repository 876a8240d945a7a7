"""Raw upstream record types.

These describe what the Breeze API may send, not what it promises: every
field is optional and may carry the wrong JSON type. Only
fundboard.metrics.mapper reads them; everything downstream works with the
normalized dataclasses in fundboard.models.
"""

from typing import Any, TypedDict


class RawYieldEntry(TypedDict, total=False):
    """One element of the user-yield ``data`` array."""

    fund_id: Any
    fund_name: Any
    apy: Any
    position_value: Any
    yield_earned: Any
    last_updated: Any
    entry_date: Any
    base_asset: Any


class RawYieldBalance(TypedDict, total=False):
    """The ``yield_balance`` sub-object of a balance entry."""

    fund_id: Any
    funds: Any
    amount_of_yield: Any
    fund_apy: Any


class RawBalanceEntry(TypedDict, total=False):
    """One element of the user-balances ``data`` array."""

    token_address: Any
    token_symbol: Any
    token_name: Any
    decimals: Any
    total_balance: Any
    yield_balance: RawYieldBalance | None


class RawUserYield(TypedDict, total=False):
    """Envelope returned by the user-yield endpoint."""

    success: Any
    data: list[RawYieldEntry]


class RawUserBalances(TypedDict, total=False):
    """Envelope returned by the user-balances endpoint."""

    success: Any
    data: list[RawBalanceEntry]
