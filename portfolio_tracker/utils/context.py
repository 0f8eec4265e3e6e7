# portfolio_tracker/utils/context.py
"""
Request context for the portfolio tracker.

Holds the correlation ID of the request being served. Uses contextvars so
the value follows the request through async handlers and into the worker
threads spawned by ``copy_context().run``.

Usage:
    from portfolio_tracker.utils.context import get_correlation_id, set_correlation_id

    set_correlation_id("abc-123")     # middleware
    get_correlation_id()              # anywhere -> "abc-123"
"""

from contextvars import ContextVar

_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> str | None:
    """Return the current request's correlation ID, or None outside a request."""
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation ID for the current request."""
    _correlation_id_var.set(correlation_id)


def clear_correlation_id() -> None:
    """Clear the correlation ID at the end of a request."""
    _correlation_id_var.set(None)
