"""
Rate limiting configuration for the Mission Control API.
Uses slowapi for request rate limiting.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse
import logging

from mission_control.config import settings

logger = logging.getLogger(__name__)


def get_client_ip(request: Request) -> str:
    """Get client IP, considering X-Forwarded-For header for proxies."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


# Applied to every route through SlowAPIMiddleware
limiter = Limiter(
    key_func=get_client_ip,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
    headers_enabled=True,  # Add X-RateLimit-* headers
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """Custom handler for rate limit exceeded errors."""
    logger.warning(
        f"Rate limit exceeded: {exc.detail} for {get_client_ip(request)} on {request.url.path}"
    )
    return JSONResponse(
        status_code=429,
        content={
            "detail": "Too many requests. Please slow down.",
            "error": "rate_limit_exceeded",
            "retry_after": exc.detail.split("per")[0].strip() if exc.detail else "60 seconds"
        },
        headers={
            "Retry-After": "60",
            "X-RateLimit-Limit": exc.detail or "unknown"
        }
    )
