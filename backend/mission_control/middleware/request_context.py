"""
Request Context Middleware - tags every request with an id and logs it.

The id is taken from an incoming X-Request-ID header or generated, exposed
to log records through ``request_id_ctx`` and echoed on the response.
"""
import time
import uuid
from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from mission_control.logging_config import request_id_ctx
import logging

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Paths not worth a log line
EXCLUDED_PATHS = {
    "/health",
    "/docs",
    "/openapi.json",
    "/redoc",
    "/favicon.ico",
}


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Assigns a request id and logs method, path, status and duration."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        token = request_id_ctx.set(request_id)
        start_time = time.time()

        response = None
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            duration_ms = int((time.time() - start_time) * 1000)
            status_code = response.status_code if response else 500
            if request.url.path not in EXCLUDED_PATHS:
                log = logger.warning if status_code >= 500 else logger.info
                log(
                    f"{request.method} {request.url.path} -> {status_code} ({duration_ms}ms) "
                    f"client={self._get_client_ip(request)}"
                )
            request_id_ctx.reset(token)

    def _get_client_ip(self, request: Request) -> str:
        """Extract real client IP"""
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip
        return request.client.host if request.client else "unknown"
