"""
FastAPI Application Factory

Creates and configures the reports API application.
"""

from typing import Any, Callable, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
import structlog

from sales_analytics.config import Settings, get_settings
from sales_analytics.ingestion.sources import DataSourceError
from sales_analytics.quality.validators import DataQualityError
from sales_analytics.serving.api.middleware import RequestLoggingMiddleware
from sales_analytics.serving.api.routes import health_router, reports_router
from sales_analytics.serving.api.routes.health import metrics

logger = structlog.get_logger(__name__)


async def data_source_error_handler(request: Request, exc: DataSourceError) -> JSONResponse:
    logger.error("Data source unavailable", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=503, content={"error": "data_source_unavailable", "detail": str(exc)})


async def data_quality_error_handler(request: Request, exc: DataQualityError) -> JSONResponse:
    logger.error("Data quality check failed", path=request.url.path, entity=exc.entity)
    failed = [check.name for check in exc.result.checks if not check.passed]
    return JSONResponse(
        status_code=422,
        content={"error": "data_quality_failed", "entity": exc.entity, "failed_checks": failed},
    )


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    logger.warning("Invalid report request", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=422, content={"error": "invalid_request", "detail": str(exc)})


def create_api_app(
    settings: Optional[Settings] = None,
    lifespan: Optional[Callable[[FastAPI], Any]] = None,
) -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        Configured FastAPI app instance
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Sales Analytics API",
        description="Trend, cumulative, segmentation, part-to-whole and performance reports over the sales star schema",
        version=settings.version,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.security.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(RequestLoggingMiddleware)

    app.add_exception_handler(DataSourceError, data_source_error_handler)
    app.add_exception_handler(DataQualityError, data_quality_error_handler)
    app.add_exception_handler(ValueError, value_error_handler)

    app.include_router(health_router, tags=["Health"])
    if settings.monitoring.enable_metrics:
        app.add_api_route("/metrics", metrics, include_in_schema=False)
    app.include_router(reports_router, prefix="/api/v1/reports", tags=["Reports"])

    return app
