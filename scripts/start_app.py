#!/usr/bin/env python3
"""Serve the API with uvicorn.

Logfire is configured here, before the app factory instruments FastAPI and
httpx, so startup failures are reported too.
"""

import sys

import logfire
import uvicorn

from linkage.config import Settings
from linkage.util.observability import configure_logfire


def main() -> int:
    settings = Settings()
    configure_logfire(settings)

    logfire.info(
        "Starting Linkage API", port=settings.port, environment=settings.environment
    )
    try:
        uvicorn.run(
            "linkage.interface.api.app:create_app",
            factory=True,
            host="0.0.0.0",
            port=settings.port,
            reload=settings.debug,
            log_level="debug" if settings.debug else "info",
        )
    except Exception:
        logfire.exception("Linkage API failed to start")
        raise
    return 0


if __name__ == "__main__":
    sys.exit(main())
