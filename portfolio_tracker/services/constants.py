# portfolio_tracker/services/constants.py
"""
Centralized constants for the portfolio tracker services.

Single source of truth for limits and rate-limit strings used across
routers and services.

Usage:
    from portfolio_tracker.services.constants import (
        MAX_BATCH_QUOTE_SYMBOLS,
        RATE_LIMIT_QUOTES,
    )
"""

from decimal import Decimal


# =============================================================================
# PRESENTATION
# =============================================================================

# Monetary values and percentages are rounded to cents only in API responses
MONEY_QUANTUM: Decimal = Decimal("0.01")


# =============================================================================
# QUOTE LIMITS
# =============================================================================

# Maximum symbols accepted by the batch quote endpoint
MAX_BATCH_QUOTE_SYMBOLS: int = 50

# Maximum length of a search query
MAX_SEARCH_QUERY_LENGTH: int = 10


# =============================================================================
# RATE LIMITING CONSTANTS
# =============================================================================
# Format follows slowapi/limits syntax: "100/minute", "10/hour", etc.

# Default rate limit for read endpoints
RATE_LIMIT_DEFAULT: str = "100/minute"

# Rate limit for write endpoints (POST, PUT, DELETE)
RATE_LIMIT_WRITE: str = "30/minute"

# Endpoints that call the quote provider on every request
# (search, per-symbol price/history, batch quotes)
RATE_LIMIT_QUOTES: str = "30/minute"

# Portfolio valuation and history fan out one provider call per symbol
RATE_LIMIT_VALUATION: str = "20/minute"

# Health checks are polled by monitors
RATE_LIMIT_HEALTH: str = "300/minute"
