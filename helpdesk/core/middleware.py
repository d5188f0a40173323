"""
HTTP middleware: correlation id on every request and one timing log per request.
"""

import time
from typing import Callable

import structlog
from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = structlog.get_logger(__name__)

QUIET_PATHS = {"/health"}


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """One `info` event per request; the elapsed time also goes back as X-Process-Time."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        path = request.url.path

        try:
            response = await call_next(request)
        except Exception:
            logger.exception("Request crashed", method=request.method, path=path, elapsed_ms=_elapsed_ms(started))
            raise

        elapsed = _elapsed_ms(started)
        response.headers["X-Process-Time"] = f"{elapsed}ms"
        if path not in QUIET_PATHS:
            logger.info(
                "Request handled",
                method=request.method,
                path=path,
                status_code=response.status_code,
                elapsed_ms=elapsed,
            )
        return response


def setup_middleware(app: FastAPI) -> None:
    # Added last so it runs first: the request id is bound before the timing log.
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationIdMiddleware, header_name="X-Request-ID")
