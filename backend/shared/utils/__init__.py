"""
Utilities module: Exceptions.
"""

from shared.utils.exceptions import (
    AppException,
    ValidationError,
    ServiceUnavailableError,
)

__all__ = [
    "AppException",
    "ValidationError",
    "ServiceUnavailableError",
]
