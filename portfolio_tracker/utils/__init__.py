# portfolio_tracker/utils/__init__.py
"""
Utility modules for the portfolio tracker.

- logging: Logging configuration with correlation ID support
- context: Request context (correlation IDs)
- date_utils: Calendar helpers for look-back periods

Usage:
    from portfolio_tracker.utils import setup_logging
    from portfolio_tracker.utils import get_correlation_id, set_correlation_id
"""

from portfolio_tracker.utils.context import (
    get_correlation_id,
    set_correlation_id,
    clear_correlation_id,
)
from portfolio_tracker.utils.logging import setup_logging

__all__ = [
    # Logging
    "setup_logging",
    # Context
    "get_correlation_id",
    "set_correlation_id",
    "clear_correlation_id",
]
