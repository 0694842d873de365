"""
slowapi limiter shared by every router.

Clients are keyed by IP (first X-Forwarded-For hop, then X-Real-IP, then
the socket peer). Counters live in Redis when REDIS_ENABLED is set so
several API workers share them; otherwise in process memory.

Tiers: settings.rate_limit_default for reads, settings.rate_limit_write
for writes including join/leave, AUTH_LIMIT for register and login.
"""

import logging

from fastapi import Request
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from bookclub.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

AUTH_LIMIT = "10/minute"
RETRY_AFTER_SECONDS = 60


def get_client_ip(request: Request) -> str:
    forwarded_for = request.headers.get("X-Forwarded-For", "")
    if forwarded_for:
        return forwarded_for.split(",", 1)[0].strip()
    return request.headers.get("X-Real-IP", "").strip() or get_remote_address(request)


limiter = Limiter(
    key_func=get_client_ip,
    default_limits=[settings.rate_limit_default],
    storage_uri=settings.redis_url if settings.redis_enabled else "memory://",
    strategy="fixed-window",
    enabled=settings.rate_limit_enabled,
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 in the same {"detail", "code"} shape as the membership errors."""
    limit = str(exc.detail)
    logger.warning(f"Rate limit hit by {get_client_ip(request)}: {limit}")

    return JSONResponse(
        status_code=429,
        content={
            "detail": "Too many requests. Please slow down.",
            "code": "rate_limit_exceeded",
            "limit": limit,
        },
        headers={
            "Retry-After": str(RETRY_AFTER_SECONDS),
            "X-RateLimit-Limit": limit,
        },
    )
