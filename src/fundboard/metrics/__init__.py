"""Metrics layer -- upstream response mapping, capital breakdown and report building."""

from fundboard.metrics.breakdown import (
    build_capital_breakdown,
    find_base_asset_balance,
    resolve_base_asset_code,
)
from fundboard.metrics.service import MetricsService

__all__ = [
    "MetricsService",
    "build_capital_breakdown",
    "find_base_asset_balance",
    "resolve_base_asset_code",
]
