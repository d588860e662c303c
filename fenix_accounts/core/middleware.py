"""
Middleware configuration for the application.
Correlation ids on every request, plus one structured log line per request.
"""

import time
from typing import Callable

import structlog
from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = structlog.get_logger(__name__)

# Liveness probes hit these every few seconds
QUIET_PATHS = frozenset({"/health"})


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Binds method/path to the log context and logs the outcome with timing."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        structlog.contextvars.bind_contextvars(method=request.method, path=request.url.path)
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("Request failed", process_time_ms=_elapsed_ms(start))
            raise
        else:
            log = logger.warning if response.status_code >= 500 else logger.info
            log("Request completed", status_code=response.status_code, process_time_ms=_elapsed_ms(start))
            return response
        finally:
            structlog.contextvars.unbind_contextvars("method", "path")


def setup_middleware(app):
    """Setup all middleware for the application."""
    # Starlette runs middleware LIFO; the correlation id must wrap request logging
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CorrelationIdMiddleware,
        header_name="X-Request-ID",
        update_request_header=True,
    )
