"""GET endpoints for fund metrics and token balances."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from fundboard.api.errors import error_body, error_response
from fundboard.api.serialization import to_jsonable
from fundboard.metrics.service import MetricsService

router = APIRouter()

_MISSING_USER = (
    "userId is required. Provide it in the route path or configure BREEZE_USER_ID."
)


def _resolve_user_id(service: MetricsService, user_id: str | None) -> str | None:
    cleaned = user_id.strip() if user_id else ""
    return cleaned or service.default_user_id


@router.get("/metrics")
@router.get("/metrics/{user_id}")
async def get_metrics(
    request: Request, user_id: str | None = None, limit: int | None = None
) -> JSONResponse:
    """Summary, history and balances for a user's fund position."""
    service: MetricsService = request.app.state.metrics_service
    resolved = _resolve_user_id(service, user_id)
    if not resolved:
        return JSONResponse(error_body(_MISSING_USER), status_code=400)

    with structlog.contextvars.bound_contextvars(user_id=resolved, route="metrics"):
        try:
            report = await service.get_metrics(resolved, limit=limit)
        except Exception as e:
            return error_response(e, "metrics_request_failed")

    return JSONResponse(content={"success": True, **to_jsonable(report)})


@router.get("/yield-metrics")
@router.get("/yield-metrics/{user_id}")
async def get_yield_metrics(
    request: Request, user_id: str | None = None, limit: int | None = None
) -> JSONResponse:
    """Yield-only summary and history, without wallet balances."""
    service: MetricsService = request.app.state.metrics_service
    resolved = _resolve_user_id(service, user_id)
    if not resolved:
        return JSONResponse(error_body(_MISSING_USER), status_code=400)

    with structlog.contextvars.bound_contextvars(user_id=resolved, route="yield-metrics"):
        try:
            report = await service.get_yield_metrics(resolved, limit=limit)
        except Exception as e:
            return error_response(e, "yield_metrics_request_failed")

    payload = to_jsonable(report)
    payload.pop("balances", None)
    return JSONResponse(content={"success": True, **payload})


@router.get("/token-balances")
@router.get("/token-balances/{user_id}")
async def get_token_balances(
    request: Request, user_id: str | None = None
) -> JSONResponse:
    """Base asset wallet balances for a user."""
    service: MetricsService = request.app.state.metrics_service
    resolved = _resolve_user_id(service, user_id)
    if not resolved:
        return JSONResponse(error_body(_MISSING_USER), status_code=400)

    with structlog.contextvars.bound_contextvars(user_id=resolved, route="token-balances"):
        try:
            report = await service.get_token_balances(resolved)
        except Exception as e:
            return error_response(e, "token_balances_request_failed")

    return JSONResponse(content={"success": True, **to_jsonable(report)})
