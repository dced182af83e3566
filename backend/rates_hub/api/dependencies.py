"""
FastAPI dependencies for the HTTP API.
"""

from fastapi import Request

from rates_hub.connection_manager import ConnectionManager


def get_manager(request: Request) -> ConnectionManager:
    """Get the application's ConnectionManager."""
    return request.app.state.manager
