"""Dashboard data orchestration for one connected wallet account.

Keeps the metrics and token-balances queries of the current account in a
QueryCache, reacts to wallet account changes and exposes a snapshot with
the capital breakdown for rendering.
"""

import asyncio
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from functools import partial
from typing import Any

from fundboard.amounts import ZERO, normalise_with_decimals
from fundboard.config import AssetSettings
from fundboard.formatting import format_last_updated_label
from fundboard.logging import get_logger
from fundboard.metrics.breakdown import (
    build_capital_breakdown,
    find_base_asset_balance,
    resolve_base_asset_code,
)
from fundboard.models import CapitalBreakdown, MetricsReport, TokenBalancesReport
from fundboard.session.bff_client import DashboardApiClient
from fundboard.session.cache import QueryCache, QueryEntry, QueryKey, QueryStatus
from fundboard.session.wallet import WalletAdapter

logger = get_logger(__name__)

METRICS = "metrics"
TOKEN_BALANCES = "token-balances"
DASHBOARD_RESOURCES = (METRICS, TOKEN_BALANCES)


class AccountChange(str, Enum):
    """Cache action required when the connected account changes."""

    REMOVE = "remove"
    INVALIDATE = "invalidate"
    NOOP = "noop"


def on_account_changed(previous: str | None, next_account: str | None) -> AccountChange:
    """Decide what to do with cached data when the wallet account changes.

    Disconnecting drops everything. Switching between two accounts
    invalidates. Connecting for the first time or no change is a no-op.
    """
    if next_account is None and previous is not None:
        return AccountChange.REMOVE
    if next_account is not None and previous is not None and next_account != previous:
        return AccountChange.INVALIDATE
    return AccountChange.NOOP


@dataclass(frozen=True)
class DashboardSnapshot:
    """Everything the dashboard renders for the current account."""

    user_id: str | None
    metrics: MetricsReport | None
    balances: TokenBalancesReport | None
    metrics_status: QueryStatus
    balances_status: QueryStatus
    error: Exception | None
    base_asset: str
    breakdown: CapitalBreakdown
    available_balance: Decimal | None
    last_updated_label: str | None
    is_refreshing: bool

    @property
    def is_loading(self) -> bool:
        return (self.metrics is None and self.metrics_status is QueryStatus.LOADING) or (
            self.balances is None and self.balances_status is QueryStatus.LOADING
        )

    @property
    def show_skeleton(self) -> bool:
        # An error banner takes priority over the loading state
        return self.error is None and self.is_loading


class DashboardDataOrchestrator:
    """Fetches, caches and invalidates dashboard data for the connected account.

    Args:
        api: BFF client used as the fetcher for both resources.
        asset_settings: Base asset mint, symbol and decimals.
        cache: Shared query cache. A private one is created when omitted.
    """

    def __init__(
        self,
        api: DashboardApiClient,
        asset_settings: AssetSettings,
        cache: QueryCache | None = None,
    ) -> None:
        self._api = api
        self._asset = asset_settings
        self._cache = cache if cache is not None else QueryCache()
        self._user_id: str | None = None
        self._refreshing = False
        self._tasks: set[asyncio.Task] = set()  # type: ignore[type-arg]
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def user_id(self) -> str | None:
        return self._user_id

    @property
    def cache(self) -> QueryCache:
        return self._cache

    @property
    def is_refreshing(self) -> bool:
        return self._refreshing

    @property
    def pending_tasks(self) -> frozenset[asyncio.Task]:  # type: ignore[type-arg]
        """Background loads and delayed invalidations still running."""
        return frozenset(self._tasks)

    def _key(self, resource: str, user_id: str | None = None) -> QueryKey:
        return (resource, user_id or self._user_id or "")

    def _entry(self, resource: str) -> QueryEntry | None:
        if self._user_id is None:
            return None
        return self._cache.get(self._key(resource))

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:  # type: ignore[type-arg]
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _switch_account(self, user_id: str | None) -> tuple[AccountChange, bool]:
        user_id = user_id or None
        previous = self._user_id
        change = on_account_changed(previous, user_id)
        if previous == user_id:
            return change, False

        if previous is not None:
            for resource in DASHBOARD_RESOURCES:
                self._cache.unobserve(self._key(resource, previous))
        self._user_id = user_id

        if change is AccountChange.REMOVE:
            self.remove_dashboard_data()
        elif change is AccountChange.INVALIDATE:
            # previous account has no observers any more, so this only marks it stale
            self._cache.invalidate(DASHBOARD_RESOURCES, user_id=previous)

        if user_id is not None:
            for resource in DASHBOARD_RESOURCES:
                self._cache.observe(self._key(resource, user_id))

        logger.info(
            "dashboard_account_changed",
            previous=previous,
            user_id=user_id,
            change=change.value,
        )
        return change, True

    def handle_account_change(self, user_id: str | None) -> AccountChange:
        """Wallet listener: apply the cache transition and load the new account.

        Must be called from within the running event loop; the load runs
        as a background task.
        """
        change, changed = self._switch_account(user_id)
        if changed and self._user_id is not None:
            self._spawn(self.load())
        return change

    async def set_user(self, user_id: str | None) -> AccountChange:
        """Apply an account change and wait for the new account's data."""
        change, changed = self._switch_account(user_id)
        if changed and self._user_id is not None:
            await self.load()
        return change

    async def load(self) -> None:
        """Fetch metrics and balances of the current account concurrently.

        Does nothing without a connected account. Each resource records its
        own failure; one failing does not cancel the other.
        """
        user_id = self._user_id
        if user_id is None:
            logger.debug("dashboard_fetch_disabled")
            return

        await asyncio.gather(
            self._cache.fetch(
                self._key(METRICS, user_id), partial(self._api.get_metrics, user_id)
            ),
            self._cache.fetch(
                self._key(TOKEN_BALANCES, user_id),
                partial(self._api.get_token_balances, user_id),
            ),
            return_exceptions=True,
        )

    def invalidate_dashboard_data(
        self, delay: float | None = None
    ) -> list[asyncio.Task]:  # type: ignore[type-arg]
        """Invalidate the current account's data now and, with a delay, once more later.

        The delayed pass targets whoever is connected when it fires.

        Returns:
            The refetch tasks started by the immediate pass.
        """
        if self._user_id is None:
            return []

        tasks = self._cache.invalidate(DASHBOARD_RESOURCES, user_id=self._user_id)
        if delay is not None and delay > 0:
            self._spawn(self._invalidate_later(delay))
        return tasks

    async def _invalidate_later(self, delay: float) -> None:
        await asyncio.sleep(delay)
        tasks = self.invalidate_dashboard_data()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def remove_dashboard_data(self) -> int:
        """Drop cached dashboard data of every account."""
        removed = self._cache.remove(DASHBOARD_RESOURCES)
        logger.info("dashboard_data_removed", count=removed)
        return removed

    async def refresh(self) -> bool:
        """Manually refetch both resources.

        Returns:
            False when no account is connected or a refresh is already in
            flight (the call is dropped), True once the refresh completed.
        """
        if self._user_id is None:
            return False
        if self._refreshing:
            logger.info("dashboard_refresh_skipped", user_id=self._user_id)
            return False

        self._refreshing = True
        try:
            await self.load()
        finally:
            self._refreshing = False
        return True

    @property
    def combined_error(self) -> Exception | None:
        """Metrics error if any, else the balances error."""
        metrics = self._entry(METRICS)
        if metrics is not None and metrics.error is not None:
            return metrics.error
        balances = self._entry(TOKEN_BALANCES)
        if balances is not None:
            return balances.error
        return None

    def snapshot(self, now: datetime | None = None) -> DashboardSnapshot:
        """Current data of the connected account with its capital breakdown."""
        metrics_entry = self._entry(METRICS)
        balances_entry = self._entry(TOKEN_BALANCES)
        metrics: MetricsReport | None = metrics_entry.data if metrics_entry else None
        balances: TokenBalancesReport | None = (
            balances_entry.data if balances_entry else None
        )

        summary = metrics.summary if metrics is not None else None
        decimals = self._asset.base_decimals
        if summary is not None:
            base_asset = resolve_base_asset_code(summary)
        else:
            base_asset = self._asset.base_symbol.upper()

        position_balance = find_base_asset_balance(
            metrics.balances if metrics is not None else None,
            base_asset,
            self._asset.base_mint,
        )
        wallet_balance = find_base_asset_balance(
            balances.balances if balances is not None else None,
            base_asset,
            self._asset.base_mint,
        )
        available_balance = (
            wallet_balance.normalized_balance if wallet_balance is not None else None
        )

        portfolio_value = (
            normalise_with_decimals(summary.total_position_value, decimals)
            if summary is not None
            else ZERO
        )
        breakdown = build_capital_breakdown(
            summary,
            position_balance or wallet_balance,
            portfolio_value,
            held_balance_override=available_balance,
            default_decimals=decimals,
        )

        background_fetch = any(
            entry is not None and entry.is_fetching
            for entry in (metrics_entry, balances_entry)
        )
        return DashboardSnapshot(
            user_id=self._user_id,
            metrics=metrics,
            balances=balances,
            metrics_status=metrics_entry.status if metrics_entry else QueryStatus.IDLE,
            balances_status=balances_entry.status if balances_entry else QueryStatus.IDLE,
            error=self.combined_error,
            base_asset=base_asset,
            breakdown=breakdown,
            available_balance=available_balance,
            last_updated_label=(
                format_last_updated_label(summary.last_updated, now)
                if summary is not None
                else None
            ),
            is_refreshing=self._refreshing or background_fetch,
        )

    def attach(self, wallet: WalletAdapter) -> None:
        """Follow a wallet's account changes, starting from its current account."""
        self.detach()
        self._unsubscribe = wallet.subscribe(self.handle_account_change)
        self.handle_account_change(wallet.account_id)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def close(self) -> None:
        """Stop following the wallet and cancel background work."""
        self.detach()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.debug("dashboard_orchestrator_closed", cancelled=len(tasks))
