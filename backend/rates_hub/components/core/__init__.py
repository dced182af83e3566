"""
Core shared components: constants and log context helpers.
"""

from rates_hub.components.core.constants import (
    WSCloseCode,
    WSConstants,
    DEFAULT_ALLOWED_ORIGINS,
)
from rates_hub.components.core.context import ConnectionContext, sanitize_log_data

__all__ = [
    "WSCloseCode",
    "WSConstants",
    "DEFAULT_ALLOWED_ORIGINS",
    "ConnectionContext",
    "sanitize_log_data",
]
