"""
Shared module for cross-cutting concerns used by the rates hub.

STRUCTURE:
- shared.config: Configuration
  - settings.py: Environment config (Pydantic)
  - logging.py: Structured logging

- shared.infrastructure: Request plumbing
  - correlation.py: X-Request-ID middleware and log filter

- shared.utils: Utilities
  - exceptions.py: HTTP exceptions with auto-logging

IMPORT EXAMPLES:
    from shared.config.settings import settings
    from shared.config.logging import get_logger
    from shared.utils.exceptions import ValidationError
"""
