"""Entry point for the fund dashboard BFF.

Wires the components together and serves the FastAPI app with uvicorn's
programmatic API. Components are stored on app.state by the lifespan so
route handlers can reach them; the upstream client is closed at shutdown.

Component wiring order (in _build_components):
1. FundClientProvider (lazy upstream client)
2. MetricsService (metrics and token balances reports)
3. TransactionRequestBuilder (deposit/withdraw requests)
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI

from fundboard.api.app import create_app
from fundboard.config import AppSettings
from fundboard.logging import get_logger, setup_logging
from fundboard.metrics.service import MetricsService
from fundboard.transactions.builder import TransactionRequestBuilder
from fundboard.upstream.provider import FundClientProvider


def _build_components(settings: AppSettings) -> dict[str, Any]:
    """Build the BFF components from settings.

    Does not touch the network: the upstream client is only constructed
    on the first request that needs it.
    """
    provider = FundClientProvider(settings.upstream)
    metrics_service = MetricsService(provider, settings.upstream, settings.asset)
    transaction_builder = TransactionRequestBuilder(provider, settings.upstream)

    return {
        "provider": provider,
        "metrics_service": metrics_service,
        "transaction_builder": transaction_builder,
    }


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Store components on app.state at startup, close the upstream client at shutdown."""
    logger = get_logger("fundboard.main")
    components = app.state.components

    app.state.metrics_service = components["metrics_service"]
    app.state.transaction_builder = components["transaction_builder"]

    logger.info(
        "lifespan_started",
        default_user_configured=app.state.settings.upstream.user_id is not None,
    )

    yield

    await components["provider"].close()
    logger.info("fundboard_stopped")


async def run() -> None:
    """Load settings, configure logging and serve the BFF."""
    settings = AppSettings()

    setup_logging(settings.log_level)
    logger = get_logger("fundboard.main")

    components = _build_components(settings)

    app = create_app(lifespan=lifespan)
    app.state.settings = settings
    app.state.components = components

    logger.info(
        "starting_bff",
        host=settings.server.host,
        port=settings.server.port,
        upstream=settings.upstream.base_url,
    )

    config = uvicorn.Config(
        app,
        host=settings.server.host,
        port=settings.server.port,
        log_level="warning",  # Suppress uvicorn access logs
    )
    server = uvicorn.Server(config)
    await server.serve()


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
