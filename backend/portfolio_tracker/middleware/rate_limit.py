# backend/portfolio_tracker/middleware/rate_limit.py
"""
Rate limiting with slowapi.

Limits protect the Yahoo Finance quota as much as the API itself: every
portfolio, snapshot and benchmark request can fan out into provider calls.
Limits are defined in services/constants.py and keyed by client IP.

X-Forwarded-For / X-Real-IP are honoured only from trusted proxies
(TRUST_PROXY_HEADERS or TRUSTED_PROXY_IPS); otherwise the socket address is
used, so clients cannot spoof their key.

Storage is in-memory (one process). Limiting is disabled in the test
environment.

Usage:
    @router.post("/")
    @limiter.limit(RATE_LIMIT_WRITE)
    def create_item(request: Request, ...):
        ...
"""

import logging

from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.requests import Request
from starlette.responses import JSONResponse

from portfolio_tracker.config import settings
from portfolio_tracker.services.constants import (
    RATE_LIMIT_DEFAULT,
    RATE_LIMIT_WRITE,
    RATE_LIMIT_SNAPSHOT,
    RATE_LIMIT_HEALTH,
)

logger = logging.getLogger(__name__)

RETRY_AFTER_SECONDS = 60


def _get_client_ip(request: Request) -> str:
    """Client IP, from forwarding headers only when the peer is a trusted proxy."""
    peer = get_remote_address(request)

    if settings.trust_proxy_headers or peer in settings.trusted_proxy_ips:
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            # First entry is the original client
            return forwarded_for.split(",")[0].strip()
        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip

    return peer


limiter = Limiter(
    key_func=_get_client_ip,
    default_limits=[RATE_LIMIT_DEFAULT],
    enabled=settings.rate_limit_enabled,
)


async def rate_limit_exceeded_handler(
    request: Request, exc: RateLimitExceeded
) -> JSONResponse:
    """429 in the standard ErrorDetail shape, with a Retry-After header."""
    limit_info = str(exc.detail) if exc.detail else "Rate limit exceeded"
    logger.warning(f"Rate limit exceeded for {_get_client_ip(request)}: {limit_info}")

    return JSONResponse(
        status_code=429,
        content={
            "error": "RateLimitError",
            "message": f"Too many requests. {limit_info}",
            "details": {"retry_after": RETRY_AFTER_SECONDS},
        },
        headers={"Retry-After": str(RETRY_AFTER_SECONDS)},
    )


__all__ = [
    "limiter",
    "rate_limit_exceeded_handler",
    "SlowAPIMiddleware",
    "RATE_LIMIT_DEFAULT",
    "RATE_LIMIT_WRITE",
    "RATE_LIMIT_SNAPSHOT",
    "RATE_LIMIT_HEALTH",
]
