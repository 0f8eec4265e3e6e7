# portfolio_tracker/middleware/correlation.py
"""
Request correlation IDs.

A valuation request logs from several worker threads at once (one per
symbol). The ID bound here is copied into those threads with the request
context, so all of its log lines share it. The same ID is returned in the
X-Correlation-ID response header.

An incoming X-Correlation-ID wins, then X-Request-ID; without either (or
when the value is longer than 128 characters) a UUID4 is generated.
"""

import logging
import uuid
from typing import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from portfolio_tracker.utils.context import clear_correlation_id, set_correlation_id

logger = logging.getLogger(__name__)

CORRELATION_ID_HEADER = "X-Correlation-ID"
INBOUND_HEADERS = (CORRELATION_ID_HEADER, "X-Request-ID")
MAX_CORRELATION_ID_LENGTH = 128


def pick_correlation_id(request: Request) -> str:
    """First usable inbound ID, else a new UUID4."""
    for header in INBOUND_HEADERS:
        candidate = request.headers.get(header, "").strip()
        if not candidate:
            continue
        if len(candidate) > MAX_CORRELATION_ID_LENGTH:
            logger.debug(f"Discarding {header}: {len(candidate)} chars")
            continue
        return candidate
    return str(uuid.uuid4())


class CorrelationIdMiddleware(BaseHTTPMiddleware):

    async def dispatch(
            self,
            request: Request,
            call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        correlation_id = pick_correlation_id(request)
        set_correlation_id(correlation_id)
        try:
            response = await call_next(request)
        finally:
            clear_correlation_id()

        response.headers[CORRELATION_ID_HEADER] = correlation_id
        return response
