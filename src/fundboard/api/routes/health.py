"""Liveness endpoint."""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from fundboard import __version__

router = APIRouter()


@router.get("/health")
async def health() -> JSONResponse:
    """Report that the process is up. Does not touch the upstream API."""
    return JSONResponse(content={"status": "ok", "version": __version__})
