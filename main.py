"""Main entry point for running the catalog service."""

import os

import uvicorn
from loguru import logger

from catalog.api.main import app
from catalog.core.config import get_settings
from catalog.core.logging import setup_logging


def main() -> None:
    """Run the service under uvicorn."""
    settings = get_settings()
    setup_logging(settings)

    # Container platforms pass the listening port through PORT
    port = int(os.environ.get("PORT", settings.api_port))

    intercepted = {"handlers": ["default"], "level": "INFO", "propagate": False}
    log_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "handlers": {
            "default": {"class": "catalog.core.logging.InterceptHandler"},
        },
        "loggers": {
            "uvicorn": intercepted,
            "uvicorn.error": intercepted,
            "uvicorn.access": intercepted,
        },
    }

    # Reload requires the app as an import string
    if settings.debug:
        logger.info(
            "Starting Uvicorn on http://{}:{} (development mode with auto-reload)",
            settings.api_host,
            port,
        )
        uvicorn.run(
            "catalog.api.main:app",
            host=settings.api_host,
            port=port,
            reload=True,
            log_config=log_config,
        )
    else:
        logger.info(
            "Starting Uvicorn on http://{}:{} (production mode)",
            settings.api_host,
            port,
        )
        uvicorn.run(
            app,
            host=settings.api_host,
            port=port,
            reload=False,
            log_config=log_config,
        )


if __name__ == "__main__":
    main()
