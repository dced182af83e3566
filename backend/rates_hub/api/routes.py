"""
HTTP routes.
- GET /health - Health check with connection statistics
- POST /api/currency/rates - Broadcast new rates to every connected client
"""

from fastapi import APIRouter, Depends, Request

from shared.config.logging import get_logger
from shared.config.settings import settings
from shared.utils.exceptions import ServiceUnavailableError, ValidationError
from rates_hub.api.dependencies import get_manager
from rates_hub.api.schemas import RatesUpdateRequest, RatesUpdateResponse
from rates_hub.connection_manager import ConnectionManager

logger = get_logger(__name__)

health_router = APIRouter(tags=["health"])
rates_router = APIRouter(prefix="/api/currency", tags=["currency"])


@health_router.get("/health")
def health_check(request: Request, manager: ConnectionManager = Depends(get_manager)):
    """Basic health check endpoint."""
    try:
        stats = manager.get_stats_sync()
    except Exception as e:
        logger.warning("Failed to get stats in health check", error=str(e))
        stats = {"error": "stats_unavailable"}
    return {
        "status": "healthy",
        "service": "rates-hub",
        "version": request.app.version,
        "environment": settings.environment,
        **stats,
    }


@rates_router.post("/rates", response_model=RatesUpdateResponse)
async def publish_rates(
    body: RatesUpdateRequest,
    manager: ConnectionManager = Depends(get_manager),
) -> RatesUpdateResponse:
    """
    Broadcast a rates snapshot as a RATES_UPDATE event.

    Returns once the update is queued for every live connection.
    """
    if not body.rates:
        raise ValidationError("rates must not be empty")
    if manager.is_shutting_down():
        raise ServiceUnavailableError("Hub is shutting down", retry_after=5)

    result = await manager.broadcast_rates(body.rates)
    return RatesUpdateResponse(recipients=result.sent)
