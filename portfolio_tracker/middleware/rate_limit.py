# portfolio_tracker/middleware/rate_limit.py
"""
Per-client request limits (slowapi).

The expensive endpoints are the ones that fan out to Yahoo Finance: a
single GET /portfolio issues one quote call per distinct symbol. Limits
are therefore graded by how much provider traffic an endpoint causes
(see services/constants.py). RATE_LIMIT_ENABLED=false turns them all off.

Clients are keyed by IP. Behind a reverse proxy the forwarded address is
used, but only when the proxy is trusted, since the header is client
controlled otherwise.

Usage:
    @router.get("/search")
    @limiter.limit(RATE_LIMIT_QUOTES)
    def search_symbol(request: Request, q: str): ...
"""

import logging

from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.requests import Request
from starlette.responses import JSONResponse

from portfolio_tracker.config import settings
from portfolio_tracker.schemas.errors import ErrorDetail
from portfolio_tracker.services.constants import (
    RATE_LIMIT_DEFAULT,
    RATE_LIMIT_HEALTH,
    RATE_LIMIT_QUOTES,
    RATE_LIMIT_VALUATION,
    RATE_LIMIT_WRITE,
)

logger = logging.getLogger(__name__)

# Retry-After sent with our own 429s
DEFAULT_RETRY_AFTER = 60


def client_key(request: Request) -> str:
    """Rate-limit key: the originating client address."""
    peer = get_remote_address(request)
    if not (settings.trust_proxy_headers or peer in settings.trusted_proxy_ips):
        return peer

    forwarded = request.headers.get("X-Forwarded-For", "")
    # Left-most hop is the original client
    origin = forwarded.split(",")[0].strip() or request.headers.get("X-Real-IP", "").strip()
    return origin or peer


limiter = Limiter(
    key_func=client_key,
    default_limits=[RATE_LIMIT_DEFAULT],
    enabled=settings.rate_limit_enabled,
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 in the ErrorDetail shape, with Retry-After."""
    limit = str(exc.detail) if exc.detail else "rate limit"
    logger.warning(
        f"Client {client_key(request)} throttled on {request.method} {request.url.path} ({limit})"
    )

    body = ErrorDetail(
        error="RateLimitError",
        message=f"Too many requests: {limit}",
        details={"retry_after": DEFAULT_RETRY_AFTER},
    )
    return JSONResponse(
        status_code=429,
        content=body.model_dump(),
        headers={"Retry-After": str(DEFAULT_RETRY_AFTER)},
    )


__all__ = [
    "limiter",
    "client_key",
    "rate_limit_exceeded_handler",
    "SlowAPIMiddleware",
    "RATE_LIMIT_DEFAULT",
    "RATE_LIMIT_WRITE",
    "RATE_LIMIT_QUOTES",
    "RATE_LIMIT_VALUATION",
    "RATE_LIMIT_HEALTH",
]
