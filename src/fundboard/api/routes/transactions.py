"""POST endpoints that prepare unsigned deposit and withdraw transactions.

/deposit and /withdraw fall back to the configured payer key.
/deposit/txn and /withdraw/txn are the wallet-signed variants: the payer
defaults to the user that will sign.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from fundboard.api.errors import error_response
from fundboard.api.serialization import to_jsonable
from fundboard.exceptions import InvalidRequestError
from fundboard.models import TransactionKind
from fundboard.transactions.builder import TransactionRequestBuilder

router = APIRouter()


async def _prepare(
    request: Request, kind: TransactionKind, payer_defaults_to_user: bool
) -> JSONResponse:
    builder: TransactionRequestBuilder = request.app.state.transaction_builder
    event = f"{kind.value}_request_failed"

    try:
        body = await request.json()
    except ValueError as e:
        return error_response(InvalidRequestError("Invalid JSON payload", str(e)), event)

    try:
        tx_request = builder.parse_payload(
            body, kind, payer_defaults_to_user=payer_defaults_to_user
        )
    except InvalidRequestError as e:
        return error_response(e, event)

    with structlog.contextvars.bound_contextvars(
        user_key=tx_request.user_key, fund_id=tx_request.fund_id, route=kind.value
    ):
        try:
            result = await builder.submit(tx_request)
        except Exception as e:
            return error_response(e, event)

    return JSONResponse(content={"success": True, **to_jsonable(result)})


@router.post("/deposit")
async def create_deposit(request: Request) -> JSONResponse:
    """Prepare an unsigned deposit transaction."""
    return await _prepare(request, TransactionKind.DEPOSIT, payer_defaults_to_user=False)


@router.post("/deposit/txn")
async def create_deposit_txn(request: Request) -> JSONResponse:
    """Prepare an unsigned deposit transaction paid by the signing user."""
    return await _prepare(request, TransactionKind.DEPOSIT, payer_defaults_to_user=True)


@router.post("/withdraw")
async def create_withdraw(request: Request) -> JSONResponse:
    """Prepare an unsigned withdraw transaction."""
    return await _prepare(request, TransactionKind.WITHDRAW, payer_defaults_to_user=False)


@router.post("/withdraw/txn")
async def create_withdraw_txn(request: Request) -> JSONResponse:
    """Prepare an unsigned withdraw transaction paid by the signing user."""
    return await _prepare(request, TransactionKind.WITHDRAW, payer_defaults_to_user=True)
