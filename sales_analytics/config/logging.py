"""
Logging Configuration for Sales Analytics

Structured logging through structlog. Events from structlog loggers and
from the standard library (uvicorn, SQLAlchemy) share one processor chain
and are rendered as JSON lines or as console output.
"""

import logging
import sys
from typing import List, Optional

import structlog
from structlog.processors import JSONRenderer, TimeStamper
from structlog.stdlib import add_log_level, ProcessorFormatter

from sales_analytics.config.settings import Settings, get_settings

SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")

SHARED_PROCESSORS = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    add_log_level,
    TimeStamper(fmt="iso"),
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
]


def _renderer(log_format: str):
    if log_format == "json":
        return JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def _handlers(settings: Settings) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if settings.monitoring.log_file:
        handlers.append(logging.FileHandler(settings.monitoring.log_file, encoding="utf-8"))
    return handlers


def configure_logging(log_level: Optional[str] = None, settings: Optional[Settings] = None) -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Override log level (DEBUG, INFO, WARNING, ERROR)
        settings: Settings to read the format and file from (defaults to cached settings)
    """
    settings = settings or get_settings()
    level = (log_level or settings.monitoring.log_level).upper()
    numeric_level = getattr(logging, level, logging.INFO)

    structlog.configure(
        processors=SHARED_PROCESSORS + [ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = ProcessorFormatter(
        processor=_renderer(settings.monitoring.log_format),
        foreign_pre_chain=SHARED_PROCESSORS,
    )
    handlers = _handlers(settings)
    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers = list(handlers)
    root_logger.setLevel(numeric_level)

    for logger_name in SERVER_LOGGERS:
        server_logger = logging.getLogger(logger_name)
        server_logger.handlers = list(handlers)
        server_logger.setLevel(numeric_level)
        server_logger.propagate = False

    structlog.get_logger(__name__).info(
        "Logging configured",
        level=level,
        format=settings.monitoring.log_format,
        log_file=settings.monitoring.log_file,
        environment=settings.app_env,
    )
