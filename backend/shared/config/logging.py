"""
Logging for the rates hub.

Every module logs through a StructuredLogger obtained from get_logger().
Keyword arguments passed to a log call travel on the record as `extra_data`
and are rendered by whichever formatter setup_logging() installed:

- JSON lines (one object per record) in production or with LOG_FORMAT=json
- Colored single-line text everywhere else

Records emitted while serving an HTTP request also carry the request ID
set by CorrelationIdMiddleware.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from shared.config.settings import settings

# Libraries whose INFO output would drown out connection events
_QUIET_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
}


def _request_id(record: logging.LogRecord) -> str | None:
    request_id = getattr(record, "request_id", None)
    if not request_id or request_id == "-":
        return None
    return request_id


def _fields(record: logging.LogRecord) -> dict[str, Any]:
    return getattr(record, "extra_data", None) or {}


class StructuredFormatter(logging.Formatter):
    """Renders each record as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry: dict[str, Any] = {
            "timestamp": created.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = _request_id(record)
        if request_id:
            entry["request_id"] = request_id

        fields = _fields(record)
        if fields:
            entry["data"] = fields

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        if settings.debug:
            entry["source"] = f"{record.pathname}:{record.lineno}"

        return json.dumps(entry, default=str)


class DevelopmentFormatter(logging.Formatter):
    """Colored one-line output for local runs."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"
    DIM = "\033[2m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, self.RESET)
        clock = datetime.fromtimestamp(record.created).strftime("%H:%M:%S.%f")[:-3]

        parts = [f"{self.DIM}{clock}{self.RESET}", f"{color}{record.levelname:<8}{self.RESET}"]
        request_id = _request_id(record)
        if request_id:
            parts.append(f"{self.DIM}{request_id[:8]}{self.RESET}")
        parts.append(f"{record.name}: {record.getMessage()}")

        fields = _fields(record)
        if fields:
            parts.append(" ".join(f"{key}={value}" for key, value in fields.items()))

        line = " ".join(parts)
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


class StructuredLogger(logging.Logger):
    """
    Logger whose calls accept arbitrary keyword fields.

        logger.info("Client disconnected", reason="timeout", total_connections=2)

    The standard keywords (exc_info, extra, stack_info, stacklevel) keep their
    usual meaning; everything else becomes the record's extra_data.
    """

    def _log(
        self,
        level: int,
        msg: object,
        args: Any,
        exc_info: Any = None,
        extra: dict[str, Any] | None = None,
        stack_info: bool = False,
        stacklevel: int = 1,
        **fields: Any,
    ) -> None:
        extra = dict(extra or {})
        extra["extra_data"] = fields or None
        # One extra frame (this override) sits between the caller and findCaller
        super()._log(
            level,
            msg,
            args,
            exc_info=exc_info,
            extra=extra,
            stack_info=stack_info,
            stacklevel=stacklevel + 1,
        )


logging.setLoggerClass(StructuredLogger)


def _resolve_level() -> int:
    # Unknown names fall back to the default; validate_production_settings reports them
    named = logging.getLevelNamesMapping().get(settings.log_level.upper())
    if named is not None:
        return named
    return logging.DEBUG if settings.debug else logging.INFO


def _use_json() -> bool:
    if settings.log_format:
        return settings.log_format.lower() == "json"
    return settings.environment == "production"


def setup_logging() -> None:
    """
    Install the hub's handler on the root logger.

    Called from the application lifespan; calling it again replaces the
    handler instead of adding a second one.
    """
    from shared.infrastructure.correlation import CorrelationIdFilter

    level = _resolve_level()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.addFilter(CorrelationIdFilter())
    handler.setFormatter(StructuredFormatter() if _use_json() else DevelopmentFormatter())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    for name, quiet_level in _QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)


def get_logger(name: str) -> StructuredLogger:
    """Return the StructuredLogger for `name` (normally the module's __name__)."""
    return logging.getLogger(name)  # type: ignore[return-value]


rates_hub_logger = get_logger("rates_hub")
