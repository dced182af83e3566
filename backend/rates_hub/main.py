"""
Rates Hub main application.

Serves the WebSocket endpoint that clients subscribe to for exchange-rate
updates, and the HTTP API that triggers those updates.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket

from shared.config.settings import settings
from shared.config.logging import setup_logging, rates_hub_logger as logger
from shared.infrastructure.correlation import CorrelationIdMiddleware
from rates_hub import __version__
from rates_hub.api import (
    configure_cors,
    health_router,
    rates_router,
    register_exception_handlers,
)
from rates_hub.components.endpoints.handlers import RatesEndpoint
from rates_hub.connection_manager import ConnectionManager


# =============================================================================
# Lifespan
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.
    Runs on startup and shutdown.
    """
    setup_logging()

    config_errors = settings.validate_production_settings()
    if config_errors:
        for error in config_errors:
            logger.error("Configuration error: %s", error)
        if settings.environment == "production":
            raise RuntimeError(
                f"Production configuration errors: {'; '.join(config_errors)}. "
                "Server will not start with insecure configuration."
            )
        logger.warning("Running with insecure defaults (acceptable for development only)")

    logger.info("Server running on port %d", settings.port, env=settings.environment)

    yield

    logger.info("Shutting down Rates Hub")
    manager: ConnectionManager = app.state.manager
    await manager.shutdown()


# =============================================================================
# FastAPI Application
# =============================================================================


def create_app(manager: ConnectionManager | None = None) -> FastAPI:
    """
    Build the application.

    Args:
        manager: ConnectionManager to serve. A new one is created if omitted.
    """
    app = FastAPI(
        title="Rates Hub",
        description="Real-time exchange rate notifications",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.manager = manager if manager is not None else ConnectionManager()

    # Order matters: CORS must be outermost
    app.add_middleware(CorrelationIdMiddleware)
    configure_cors(app)

    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(rates_router)

    # The root path and /ws are kept as aliases of /ws/rates
    for path in (RatesEndpoint.ENDPOINT_NAME, "/ws", "/"):
        app.add_api_websocket_route(path, rates_websocket)

    return app


async def rates_websocket(websocket: WebSocket):
    """WebSocket endpoint for rate subscribers."""
    endpoint = RatesEndpoint(websocket, websocket.app.state.manager)
    await endpoint.run()


app = create_app()


# =============================================================================
# Development entry point
# =============================================================================

if __name__ == "__main__":
    from rates_hub.__main__ import main

    main()
