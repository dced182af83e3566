"""
HTTP API for the hub.
- routes.py: health and rates ingress routes
- errors.py: exception handlers
- cors.py: CORS configuration
"""

from rates_hub.api.cors import configure_cors, get_cors_origins
from rates_hub.api.errors import register_exception_handlers
from rates_hub.api.routes import health_router, rates_router

__all__ = [
    "configure_cors",
    "get_cors_origins",
    "register_exception_handlers",
    "health_router",
    "rates_router",
]
