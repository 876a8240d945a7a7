"""Capital breakdown: how much of the base asset is earning versus idle.

All arithmetic is Decimal, quantized to the base asset's native precision
before any subtraction, so a wallet balance equal to the deployed position
yields exactly zero idle capital instead of a float residue like -1e-17.

The wallet's held balance already includes funds deployed to the
position (Breeze reports it that way), hence idle = held - earning.
"""

from decimal import Decimal

from fundboard.amounts import ZERO, normalise_with_decimals, quantize_to_decimals
from fundboard.config import USDC_DECIMALS, USDC_MINT_ADDRESS
from fundboard.models import CapitalBreakdown, MetricsSummary, TokenBalanceEntry

DEFAULT_BASE_ASSET = "USDC"
HUNDRED = Decimal("100")


def resolve_base_asset_code(summary: MetricsSummary | None) -> str:
    """Upper-cased base asset code from the summary, defaulting to USDC."""
    asset = summary.base_asset if summary is not None else None
    if isinstance(asset, str) and asset.strip():
        return asset.strip().upper()
    return DEFAULT_BASE_ASSET


def find_base_asset_balance(
    balances: list[TokenBalanceEntry] | None,
    base_asset_code: str,
    base_mint: str = USDC_MINT_ADDRESS,
) -> TokenBalanceEntry | None:
    """Find the balance entry for the base asset by mint, symbol or name."""
    if not balances:
        return None

    target = base_asset_code.upper()
    for entry in balances:
        if (
            entry.token_address == base_mint
            or entry.token_symbol.upper() == target
            or entry.token_name.upper() == target
        ):
            return entry
    return None


def build_capital_breakdown(
    summary: MetricsSummary | None,
    base_asset_balance: TokenBalanceEntry | None,
    portfolio_value: Decimal,
    held_balance_override: Decimal | None = None,
    default_decimals: int = USDC_DECIMALS,
) -> CapitalBreakdown:
    """Compute the principal/earned/idle split for the base asset.

    Args:
        summary: Metrics summary; supplies the base asset code and the
            fallback yield earned when there is no yield balance.
        base_asset_balance: Wallet balance entry for the base asset.
        portfolio_value: Normalized position value, the fallback principal.
        held_balance_override: Wallet balance to use instead of the entry's
            normalized balance.
        default_decimals: Precision when no balance entry is available.

    Returns:
        CapitalBreakdown with non-negative amounts and percentages that sum
        to exactly 100 when anything is held, both 0 otherwise.
    """
    base_asset = resolve_base_asset_code(summary)
    decimals = (
        base_asset_balance.decimals if base_asset_balance is not None else default_decimals
    )
    yield_balance = base_asset_balance.yield_balance if base_asset_balance else None

    if yield_balance is not None:
        principal = normalise_with_decimals(yield_balance.funds, decimals)
        earned = normalise_with_decimals(yield_balance.amount_of_yield, decimals)
    else:
        principal = portfolio_value
        earned = summary.total_yield_earned if summary is not None else ZERO

    principal = quantize_to_decimals(principal, decimals)
    earned = quantize_to_decimals(earned, decimals)

    if held_balance_override is not None:
        held_balance = held_balance_override
    elif base_asset_balance is not None:
        held_balance = base_asset_balance.normalized_balance
    else:
        held_balance = ZERO
    held_balance = quantize_to_decimals(held_balance, decimals)

    earning_total = max(principal + earned, ZERO)
    idle = max(held_balance - earning_total, ZERO)
    combined = max(earning_total + idle, ZERO)

    if combined > 0:
        earning_percent = earning_total / combined * HUNDRED
        idle_percent = HUNDRED - earning_percent
    else:
        earning_percent = ZERO
        idle_percent = ZERO

    return CapitalBreakdown(
        base_asset=base_asset,
        principal=principal,
        earned=earned,
        earning_total=earning_total,
        idle=idle,
        earning_percent=earning_percent,
        idle_percent=idle_percent,
    )
