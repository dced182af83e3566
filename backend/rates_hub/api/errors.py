"""
Exception handlers for the HTTP API.

AppException subclasses render through FastAPI's HTTPException handler as
{"detail": ...}. Anything else is logged with its traceback and rendered as
a generic 500 response.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from shared.config.logging import get_logger
from shared.config.settings import settings

logger = get_logger(__name__)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render an unexpected exception as a 500 without leaking details outside development."""
    logger.error(
        "Unhandled exception",
        path=request.url.path,
        method=request.method,
        error_type=type(exc).__name__,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "message": str(exc) if settings.environment == "development" else None,
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(Exception, unhandled_exception_handler)
