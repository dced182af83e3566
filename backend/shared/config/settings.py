"""
Application settings loaded from environment variables.
Uses pydantic-settings for type-safe configuration.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """Application settings with defaults for development."""

    # Server
    host: str = "0.0.0.0"
    port: int = 5000

    # Comma-separated list of allowed origins (empty uses default localhost list)
    allowed_origins: str = ""

    # Environment
    environment: str = "development"
    debug: bool = True

    # WebSocket
    ws_max_total_connections: int = 1000  # Global connection limit
    ws_max_message_size: int = 64 * 1024  # 64 KB, inbound frames only
    ws_send_queue_size: int = 100  # Pending outbound messages per connection
    ws_receive_timeout: float = 90.0  # Close idle connections after this many seconds
    ws_accept_timeout: float = 5.0

    # Logging (empty values follow DEBUG and ENVIRONMENT)
    log_level: str = ""  # DEBUG, INFO, WARNING, ...
    log_format: str = ""  # "json" or "text"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    def validate_production_settings(self) -> list[str]:
        """
        Validate that the configuration is safe for production.
        Returns a list of validation errors. Empty list means all checks pass.
        """
        errors = []

        if self.environment == "production":
            if self.debug:
                errors.append("DEBUG must be False in production")

            if not self.allowed_origins:
                errors.append(
                    "ALLOWED_ORIGINS must be set in production (localhost defaults are not allowed)"
                )

        if self.ws_send_queue_size < 1:
            errors.append("WS_SEND_QUEUE_SIZE must be at least 1")

        if self.log_level and self.log_level.upper() not in _LOG_LEVELS:
            errors.append(f"LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}")

        if self.log_format and self.log_format.lower() not in ("json", "text"):
            errors.append('LOG_FORMAT must be "json" or "text"')

        return errors


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience exports
settings = get_settings()
