"""
BarcodeSnap Backend — Request Logging Middleware
==================================================

What:  One access line per HTTP request: method, path, status, duration,
       response size, request ID and client address.
How:   Times the downstream call and picks the log level from the status code.
When:  After RequestIDMiddleware (uses its request ID).

Never logged: request bodies (images, barcode payloads, credentials).
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.middleware.request_id import request_id_var

logger = logging.getLogger("barcodesnap.access")

# Probe and docs traffic
SKIP_PATHS = frozenset({"/health", "/docs", "/redoc", "/openapi.json"})


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs each request once its response is ready; SKIP_PATHS are passed through."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in SKIP_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        client = request.client.host if request.client else "-"
        size = response.headers.get("content-length", "-")
        logger.log(
            level_for_status(response.status_code),
            "[%s] %s %s → %d (%s bytes) %.1fms client=%s",
            request_id_var.get(""),
            request.method,
            path,
            response.status_code,
            size,
            elapsed_ms,
            client,
        )
        return response
