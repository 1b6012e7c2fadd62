import time

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

logger = structlog.get_logger()

# Polled constantly by the page; logged at debug only
QUIET_PATHS = {"/dashboard/health", "/dashboard/panels"}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs every request as structured JSON."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        latency_ms = round((time.perf_counter() - start) * 1000, 1)

        log = logger.debug if request.url.path in QUIET_PATHS else logger.info
        log(
            "http_request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            latency_ms=latency_ms,
        )
        return response
