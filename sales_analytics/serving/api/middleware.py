"""
API Middleware

Request logging with timing information. The request id is bound into the
structlog context for the duration of the request, so report build events
logged by the composer carry it too.
"""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
import structlog

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log report requests with their parameters and timing"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started_at = time.perf_counter()
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(time.time_ns())

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id, path=request.url.path)

        logger.debug(
            "Request received",
            method=request.method,
            params=dict(request.query_params) or None,
            client=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)
            elapsed_ms = (time.perf_counter() - started_at) * 1000
            log = logger.warning if response.status_code >= 400 else logger.info
            log("Request served", status_code=response.status_code, duration_ms=round(elapsed_ms, 2))
        finally:
            structlog.contextvars.clear_contextvars()

        response.headers["X-Response-Time"] = f"{elapsed_ms:.2f}ms"
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
