#!/usr/bin/env python3
"""
Start the Whispr Social Backend under uvicorn.

Logging is configured by app.main when uvicorn imports it.
"""
import logging
import sys

import uvicorn

from app.core.config import get_settings

logger = logging.getLogger("whispr.run")


def main():
    settings = get_settings()
    reload = settings.DEBUG and settings.is_development

    try:
        uvicorn.run(
            "app.main:app",
            host=settings.API_HOST,
            port=settings.API_PORT,
            reload=reload,
            log_level=settings.LOG_LEVEL.lower(),
            access_log=True
        )
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception as e:
        logger.error(f"Failed to start server ({settings.ENVIRONMENT}, port {settings.API_PORT}): {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
