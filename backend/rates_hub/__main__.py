"""
Run the hub with uvicorn: python -m rates_hub
"""

import uvicorn

from shared.config.settings import settings


def main() -> None:
    uvicorn.run(
        "rates_hub.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
