"""
FastAPI Application

Main entry point for the Sales Analytics API.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
import structlog

from sales_analytics.config import get_settings
from sales_analytics.config.logging import configure_logging
from sales_analytics.database.connection import close_database, init_database
from sales_analytics.serving.api import create_api_app

settings = get_settings()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    configure_logging(settings=settings)

    logger.info(
        "Starting Sales Analytics API",
        environment=settings.app_env,
        backend=settings.data_source.backend,
    )

    if settings.data_source.backend == "database":
        try:
            init_database(settings)
        except Exception as e:
            # Report requests answer 503 until the warehouse is reachable
            logger.warning("Database init failed", error=str(e))

    yield

    logger.info("Shutting down...")
    close_database()


app = create_api_app(settings, lifespan=lifespan)


@app.get("/api/v1/info")
def api_info():
    """API information endpoint."""
    return {
        "name": settings.app_name,
        "version": settings.version,
        "environment": settings.app_env,
        "data_source": settings.data_source.backend,
        "documentation": "/docs" if settings.is_development else None,
    }


def run() -> None:
    """Start the API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "sales_analytics.main:app",
        host=settings.api_host,
        port=settings.api_port,
        workers=settings.api_workers,
        log_level=settings.monitoring.log_level.lower(),
        access_log=True,
    )


if __name__ == "__main__":
    run()
