"""
Database Connection Management

Synchronous SQLAlchemy 2.0 engine for reading the gold star schema.
Reports read each record set once per invocation, so a small pooled
engine is all that is needed.
"""

import time
from typing import Optional

import structlog
from sqlalchemy import Engine, create_engine, text

from sales_analytics.config import Settings, get_settings

logger = structlog.get_logger(__name__)

_engine: Optional[Engine] = None


def init_database(settings: Optional[Settings] = None) -> Engine:
    """
    Initialize the database engine.

    Returns:
        Engine: The initialized database engine
    """
    global _engine

    if _engine is not None:
        logger.warning("Database already initialized")
        return _engine

    settings = settings or get_settings()
    _engine = create_engine(
        settings.database.sync_url,
        echo=settings.database.echo,
        pool_size=settings.database.pool_size,
        pool_pre_ping=True,
    )

    try:
        with _engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info(
            "Database connection established",
            host=settings.database.host,
            database=settings.database.db,
        )
    except Exception as e:
        logger.error("Failed to connect to database", error=str(e))
        _engine.dispose()
        _engine = None
        raise

    return _engine


def close_database() -> None:
    """Dispose of the engine and its pooled connections."""
    global _engine

    if _engine is not None:
        _engine.dispose()
        _engine = None
        logger.info("Database connection pool closed")


def get_engine() -> Engine:
    """
    Get the database engine.

    Raises:
        RuntimeError: If database is not initialized
    """
    if _engine is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")
    return _engine


def check_database_health(engine: Optional[Engine] = None) -> dict:
    """
    Check database health status.

    Returns:
        dict: Health status with latency information
    """
    try:
        engine = engine or get_engine()
        start = time.perf_counter()
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        latency_ms = (time.perf_counter() - start) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(latency_ms, 2),
        }
    except Exception as e:
        return {
            "status": "unhealthy",
            "error": str(e),
        }
