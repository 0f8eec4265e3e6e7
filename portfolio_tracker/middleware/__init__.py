# portfolio_tracker/middleware/__init__.py
"""
ASGI middleware and request limits.

- correlation: X-Correlation-ID binding for request tracing
- rate_limit: slowapi limiter and its 429 handler
"""

from portfolio_tracker.middleware.correlation import CorrelationIdMiddleware
from portfolio_tracker.middleware.rate_limit import (
    RATE_LIMIT_DEFAULT,
    RATE_LIMIT_HEALTH,
    RATE_LIMIT_QUOTES,
    RATE_LIMIT_VALUATION,
    RATE_LIMIT_WRITE,
    SlowAPIMiddleware,
    limiter,
    rate_limit_exceeded_handler,
)

__all__ = [
    "CorrelationIdMiddleware",
    "SlowAPIMiddleware",
    "limiter",
    "rate_limit_exceeded_handler",
    "RATE_LIMIT_DEFAULT",
    "RATE_LIMIT_HEALTH",
    "RATE_LIMIT_QUOTES",
    "RATE_LIMIT_VALUATION",
    "RATE_LIMIT_WRITE",
]
