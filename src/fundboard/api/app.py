"""FastAPI application factory for the dashboard backend-for-frontend."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI

from fundboard.api.routes import health, metrics, transactions


def create_app(lifespan: Any = None) -> FastAPI:
    """Create and configure the FastAPI BFF application.

    Args:
        lifespan: Optional async context manager for application lifespan events.
                  Used by main.py to inject startup/shutdown logic.

    Returns:
        Configured FastAPI application. Route handlers read
        ``metrics_service`` and ``transaction_builder`` from app.state;
        the caller is responsible for setting them.
    """
    app = FastAPI(
        title="Fund Dashboard BFF",
        lifespan=lifespan,
    )

    app.state.metrics_service = None
    app.state.transaction_builder = None

    app.include_router(health.router, prefix="/api")
    app.include_router(metrics.router, prefix="/api")
    app.include_router(transactions.router, prefix="/api")

    return app
