"""
Main application entry point.
Configures logging, builds the FastAPI app and runs it under uvicorn.
"""
import logging
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from dashboard_api.api.routes import create_app
from dashboard_api.config.settings import settings

# Configure logging for stdout/stderr collectors
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
    force=True,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    The response cache is created with the app and dropped on shutdown.
    """
    logger.info("Starting Crypto Dashboard API...")
    try:
        yield
    finally:
        logger.info("Shutting down Crypto Dashboard API...")
        app.state.cache.clear()
        logger.info("Shutdown complete")


app = create_app(settings, lifespan=lifespan)


def main():
    """Run the application."""
    logger.info(
        "Configuration loaded",
        extra={
            "host": settings.host,
            "port": settings.port,
            "log_level": settings.log_level,
            "environment": settings.environment,
            "coingecko_base": settings.coingecko_base,
            "currency_api_url": settings.currency_api_url,
            "cache_ttl": settings.cache_ttl,
        },
    )

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        lifespan="on",
        access_log=True,
    )


if __name__ == "__main__":
    main()
