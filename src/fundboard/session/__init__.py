"""Client session layer -- BFF client, query cache, dashboard orchestration and flows."""

from fundboard.session.bff_client import DashboardApiClient
from fundboard.session.cache import QueryCache, QueryEntry, QueryStatus
from fundboard.session.flows import TransactionFlow
from fundboard.session.orchestrator import (
    AccountChange,
    DashboardDataOrchestrator,
    DashboardSnapshot,
    on_account_changed,
)
from fundboard.session.wallet import WalletAdapter, prepare_transaction

__all__ = [
    "AccountChange",
    "DashboardApiClient",
    "DashboardDataOrchestrator",
    "DashboardSnapshot",
    "QueryCache",
    "QueryEntry",
    "QueryStatus",
    "TransactionFlow",
    "WalletAdapter",
    "on_account_changed",
    "prepare_transaction",
]
