"""
Centralized HTTP exceptions for consistent error handling.

Usage:
    from shared.utils.exceptions import ValidationError, ServiceUnavailableError

    raise ValidationError("rates must not be empty")
    raise ServiceUnavailableError("Hub is shutting down")
"""

from fastapi import HTTPException, status
from typing import Any

from shared.config.logging import get_logger

logger = get_logger(__name__)


class AppException(HTTPException):
    """
    Base exception with automatic logging.

    All custom exceptions should inherit from this class
    to ensure consistent logging and response format.
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        log_level: str = "warning",
        headers: dict[str, str] | None = None,
        **log_context: Any,
    ):
        # Log the error with context
        log_fn = getattr(logger, log_level, logger.warning)
        log_fn(detail, status_code=status_code, **log_context)

        super().__init__(status_code=status_code, detail=detail, headers=headers)


# =============================================================================
# 400 Bad Request Errors
# =============================================================================


class ValidationError(AppException):
    """
    Input validation error (400).

    Usage:
        raise ValidationError("rates must not be empty")
        raise ValidationError("Invalid rate", field="EUR", value=-1)
    """

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            log_level="warning",
            **log_context,
        )


# =============================================================================
# 503 Service Unavailable Errors
# =============================================================================


class ServiceUnavailableError(AppException):
    """Service temporarily unable to handle the request (503)."""

    def __init__(
        self,
        detail: str = "Service temporarily unavailable",
        retry_after: int | None = None,
        **log_context: Any,
    ):
        headers = None
        if retry_after:
            headers = {"Retry-After": str(retry_after)}

        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=detail,
            log_level="warning",
            headers=headers,
            **log_context,
        )
