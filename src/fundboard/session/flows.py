"""Deposit and withdraw flows driven from the dashboard.

validate -> atomic units -> BFF unsigned transaction -> wallet signs and
submits -> dashboard data invalidated after a settle delay.
"""

from decimal import Decimal

from fundboard.amounts import to_atomic_units
from fundboard.config import AssetSettings
from fundboard.exceptions import AmountValidationError, DashboardRequestError
from fundboard.logging import get_logger
from fundboard.models import TransactionKind
from fundboard.session.bff_client import DashboardApiClient
from fundboard.session.orchestrator import DashboardDataOrchestrator
from fundboard.session.wallet import WalletAdapter, prepare_transaction
from fundboard.transactions.validation import require_valid_amount

logger = get_logger(__name__)


class TransactionFlow:
    """Runs deposit/withdraw transactions for the connected wallet.

    Args:
        api: BFF client building the unsigned transactions.
        wallet: Connected wallet that signs and submits.
        orchestrator: Dashboard data to invalidate once a transaction lands.
        asset_settings: Base asset symbol and decimals.
        settle_delay: Seconds to wait before the second invalidation.
    """

    def __init__(
        self,
        api: DashboardApiClient,
        wallet: WalletAdapter,
        orchestrator: DashboardDataOrchestrator,
        asset_settings: AssetSettings,
        settle_delay: float = 0.5,
    ) -> None:
        self._api = api
        self._wallet = wallet
        self._orchestrator = orchestrator
        self._asset = asset_settings
        self._settle_delay = settle_delay

    def _require_account(self) -> str:
        account = self._wallet.account_id
        if not account:
            raise DashboardRequestError("Connect a wallet to continue")
        return account

    async def deposit(
        self,
        amount_text: str,
        fund_id: str | None = None,
        available_balance: Decimal | None = None,
    ) -> str:
        """Deposit a user-entered amount of the base asset.

        The ceiling defaults to the wallet's available base asset balance
        when it is known.

        Returns:
            The submitted transaction signature.

        Raises:
            AmountValidationError: invalid amount; nothing was sent.
            DashboardRequestError: no wallet or the BFF rejected the request.
        """
        snapshot = self._orchestrator.snapshot()
        ceiling = available_balance if available_balance is not None else snapshot.available_balance
        amount = require_valid_amount(
            amount_text, TransactionKind.DEPOSIT, snapshot.base_asset, ceiling
        )
        return await self._submit(TransactionKind.DEPOSIT, amount, fund_id)

    async def withdraw(
        self,
        amount_text: str,
        fund_id: str | None = None,
        available_balance: Decimal | None = None,
    ) -> str:
        """Withdraw a user-entered amount. The ceiling defaults to the earning total."""
        snapshot = self._orchestrator.snapshot()
        ceiling = (
            available_balance
            if available_balance is not None
            else snapshot.breakdown.earning_total
        )
        amount = require_valid_amount(
            amount_text, TransactionKind.WITHDRAW, snapshot.base_asset, ceiling
        )
        return await self._submit(TransactionKind.WITHDRAW, amount, fund_id)

    async def withdraw_all(self, fund_id: str | None = None) -> str:
        """Redeem the whole position regardless of any entered amount."""
        snapshot = self._orchestrator.snapshot()
        earning_total = snapshot.breakdown.earning_total
        if earning_total <= 0:
            raise AmountValidationError("Nothing available to withdraw")
        return await self._submit(
            TransactionKind.WITHDRAW, earning_total, fund_id, withdraw_all=True
        )

    async def _submit(
        self,
        kind: TransactionKind,
        amount: Decimal,
        fund_id: str | None,
        withdraw_all: bool = False,
    ) -> str:
        account = self._require_account()
        atomic_amount = to_atomic_units(amount, self._asset.base_decimals)

        result = await self._api.create_transaction(
            kind, atomic_amount, account, fund_id=fund_id, all=withdraw_all
        )

        try:
            prepared = prepare_transaction(result.transaction)
        except ValueError as e:
            raise DashboardRequestError(str(e)) from e

        signature = await self._wallet.sign_and_submit(prepared)
        logger.info(
            "transaction_submitted",
            kind=kind.value,
            user_id=account,
            amount=atomic_amount,
            all=withdraw_all,
            signature=signature,
        )

        self._orchestrator.invalidate_dashboard_data(delay=self._settle_delay)
        return signature
