"""Deposit/withdraw request building for the BFF routes.

Parses the loosely typed JSON body (amount as string or number, "all" as
string or boolean, userKey or userId), fills missing identifiers from the
configured defaults and asks the upstream API for an unsigned transaction.
"""

from decimal import Decimal
from typing import Any

from fundboard.amounts import to_decimal
from fundboard.config import UpstreamSettings
from fundboard.exceptions import InvalidRequestError, UpstreamApiError
from fundboard.logging import get_logger
from fundboard.models import (
    TransactionKind,
    TransactionMetadata,
    TransactionRequest,
    TransactionResult,
)
from fundboard.upstream.provider import FundClientProvider

logger = get_logger(__name__)

_AMOUNT_LABELS = {
    TransactionKind.DEPOSIT: "Deposit",
    TransactionKind.WITHDRAW: "Withdrawal",
}


def _clean(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def parse_request_amount(value: Any) -> Decimal | None:
    """Amount from a JSON body: numbers as-is, strings parsed; None if not finite."""
    if isinstance(value, str):
        value = value.replace(",", "")
    return to_decimal(value, default=None)


def parse_all_flag(value: Any) -> bool:
    """The "all" flag: the string "true" or any truthy non-string value."""
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


class TransactionRequestBuilder:
    """Validates transaction payloads and submits them upstream.

    Args:
        provider: Owner of the upstream client.
        upstream_settings: Supplies default fund id, user key and payer key.
    """

    def __init__(
        self, provider: FundClientProvider, upstream_settings: UpstreamSettings
    ) -> None:
        self._provider = provider
        self._defaults = upstream_settings.default_context()

    def parse_payload(
        self,
        body: Any,
        kind: TransactionKind,
        payer_defaults_to_user: bool = False,
    ) -> TransactionRequest:
        """Build a TransactionRequest from a JSON body.

        Args:
            body: Decoded JSON body.
            kind: Deposit or withdraw.
            payer_defaults_to_user: When True the payer is the user unless the
                body names one (wallet-signed flows); otherwise the configured
                payer key is the fallback.

        Raises:
            InvalidRequestError: body is not an object, amount is not a
                positive number, or no fund id / user key can be resolved.
        """
        if not isinstance(body, dict):
            raise InvalidRequestError("Invalid JSON payload")

        amount = parse_request_amount(body.get("amount"))
        if amount is None or amount <= 0:
            raise InvalidRequestError(
                f"{_AMOUNT_LABELS[kind]} amount must be a positive number"
            )

        fund_id = _clean(body.get("fundId")) or self._defaults.fund_id
        user_key = (
            _clean(body.get("userKey"))
            or _clean(body.get("userId"))
            or self._defaults.user_key
        )
        payer_fallback = user_key if payer_defaults_to_user else self._defaults.payer_key
        payer_key = _clean(body.get("payerKey")) or payer_fallback

        if not fund_id:
            raise InvalidRequestError(
                "fundId is required. Provide it in the request body or configure BREEZE_FUND_ID."
            )
        if not user_key:
            raise InvalidRequestError(
                "userKey is required. Provide it in the request body "
                "or configure BREEZE_USER_KEY/BREEZE_USER_ID."
            )

        return TransactionRequest(
            kind=kind,
            fund_id=fund_id,
            user_key=user_key,
            amount=amount,
            all=parse_all_flag(body.get("all")),
            payer_key=payer_key,
        )

    async def submit(self, request: TransactionRequest) -> TransactionResult:
        """Ask the upstream API for an unsigned transaction.

        Raises:
            UpstreamApiError: the upstream failed, or answered with something
                other than a transaction string (status 502).
        """
        client = self._provider.get()
        if request.kind is TransactionKind.DEPOSIT:
            create = client.create_deposit_transaction
        else:
            create = client.create_withdraw_transaction

        transaction = await create(
            fund_id=request.fund_id,
            user_key=request.user_key,
            amount=request.amount,
            all=request.all,
            payer_key=request.payer_key,
        )

        if not isinstance(transaction, str) or not transaction:
            message = None
            if isinstance(transaction, dict):
                message = _clean(transaction.get("message"))
            logger.warning(
                "unexpected_transaction_response",
                kind=request.kind.value,
                fund_id=request.fund_id,
            )
            raise UpstreamApiError(
                message or "Unexpected response from upstream API",
                status=502,
                details=transaction,
            )

        logger.info(
            "transaction_prepared",
            kind=request.kind.value,
            fund_id=request.fund_id,
            amount=str(request.amount),
            all=request.all,
        )
        return TransactionResult(
            transaction=transaction,
            metadata=TransactionMetadata(
                fund_id=request.fund_id,
                user_key=request.user_key,
                payer_key=request.payer_key,
                amount=request.amount,
                all=request.all,
            ),
        )
