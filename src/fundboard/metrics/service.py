"""Metrics service: fetches upstream yield and balances and normalizes them.

Upstream calls for one report run concurrently. If any of them fails the
report fails with that error; there is no partial report and no retry.
"""

import asyncio
from datetime import datetime

from fundboard.config import AssetSettings, UpstreamSettings
from fundboard.logging import get_logger
from fundboard.metrics.mapper import (
    build_history,
    build_summary,
    entries_of,
    map_balances,
    resolve_fund_id,
    select_yield_entry,
)
from fundboard.models import MetricsReport, TokenBalancesReport
from fundboard.upstream.provider import FundClientProvider

logger = get_logger(__name__)


class MetricsService:
    """Builds MetricsReport and TokenBalancesReport payloads for a user.

    Args:
        provider: Owner of the upstream client.
        upstream_settings: Supplies the default fund id.
        asset_settings: Base asset mint/decimals and extra balance mints.
    """

    def __init__(
        self,
        provider: FundClientProvider,
        upstream_settings: UpstreamSettings,
        asset_settings: AssetSettings,
    ) -> None:
        self._provider = provider
        self._defaults = upstream_settings.default_context()
        self._asset = asset_settings

    @property
    def default_user_id(self) -> str | None:
        """User id to fall back on when a route is called without one."""
        return self._defaults.user_id

    async def get_metrics(
        self,
        user_id: str,
        limit: int | None = None,
        now: datetime | None = None,
    ) -> MetricsReport:
        """Full metrics: summary, history and balances for every tracked mint."""
        client = self._provider.get()
        fund_id = self._defaults.fund_id
        mints = [self._asset.base_mint, *self._asset.extra_balance_mints]

        user_yield, *balance_envelopes = await asyncio.gather(
            client.get_user_yield(user_id=user_id, fund_id=fund_id, limit=limit),
            *(client.get_user_balances(user_id=user_id, asset=mint) for mint in mints),
        )

        yield_entries = entries_of(user_yield)
        balances = map_balances(
            [entry for envelope in balance_envelopes for entry in entries_of(envelope)]
        )
        decimals = self._asset.base_decimals
        entry = select_yield_entry(yield_entries, fund_id)

        logger.info(
            "metrics_built",
            user_id=user_id,
            yield_entries=len(yield_entries),
            balances=len(balances),
            entry_found=entry is not None,
        )

        return MetricsReport(
            user_id=user_id,
            fund_id=resolve_fund_id(fund_id, yield_entries),
            summary=build_summary(entry, balances, decimals, now=now),
            history=build_history(yield_entries, decimals),
            balances=balances,
            raw={
                "user_yield": user_yield,
                "user_balances": dict(zip(mints, balance_envelopes)),
            },
        )

    async def get_yield_metrics(
        self,
        user_id: str,
        limit: int | None = None,
        now: datetime | None = None,
    ) -> MetricsReport:
        """Yield-only metrics: summary and history without wallet balances."""
        client = self._provider.get()
        fund_id = self._defaults.fund_id

        user_yield = await client.get_user_yield(user_id=user_id, fund_id=fund_id, limit=limit)
        yield_entries = entries_of(user_yield)
        decimals = self._asset.base_decimals
        entry = select_yield_entry(yield_entries, fund_id)

        logger.info(
            "yield_metrics_built",
            user_id=user_id,
            yield_entries=len(yield_entries),
            entry_found=entry is not None,
        )

        return MetricsReport(
            user_id=user_id,
            fund_id=resolve_fund_id(fund_id, yield_entries),
            summary=build_summary(entry, None, decimals, now=now),
            history=build_history(yield_entries, decimals),
            raw={"user_yield": user_yield},
        )

    async def get_token_balances(self, user_id: str) -> TokenBalancesReport:
        """Wallet balances for the base asset."""
        client = self._provider.get()
        envelope = await client.get_user_balances(user_id=user_id, asset=self._asset.base_mint)
        balances = map_balances(entries_of(envelope))

        logger.info("token_balances_built", user_id=user_id, balances=len(balances))

        return TokenBalancesReport(
            user_id=user_id,
            balances=balances,
            raw={self._asset.base_symbol.lower(): envelope},
        )
