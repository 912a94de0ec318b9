"""
Health Check Endpoints

Provides health and liveness checks for orchestration systems.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel

from sales_analytics.config import get_settings
from sales_analytics.database.connection import check_database_health

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    version: str
    environment: str
    timestamp: datetime
    checks: Dict[str, Any]


def _check_data_source() -> Dict[str, Any]:
    settings = get_settings()
    backend = settings.data_source.backend

    if backend == "database":
        check = check_database_health()
    else:
        path = Path(settings.data_source.path)
        if path.is_dir():
            check = {"status": "healthy", "path": str(path)}
        else:
            check = {"status": "unhealthy", "error": f"Directory not found: {path}"}

    check["backend"] = backend
    return check


@router.get("/health", response_model=HealthResponse)
def health_check(response: Response) -> HealthResponse:
    """
    Health check endpoint.

    Checks that the configured data source (file directory or database)
    is reachable.
    """
    settings = get_settings()
    checks = {"data_source": _check_data_source()}

    overall_status = "healthy"
    if checks["data_source"].get("status") != "healthy":
        overall_status = "degraded"
        response.status_code = 503

    return HealthResponse(
        status=overall_status,
        version=settings.version,
        environment=settings.app_env,
        timestamp=datetime.now(timezone.utc),
        checks=checks,
    )


@router.get("/health/live")
def liveness_check() -> Dict[str, str]:
    """
    Liveness probe endpoint.

    Returns 200 if the application is running.
    """
    return {"status": "alive"}


def metrics() -> Response:
    """Prometheus scrape endpoint"""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
