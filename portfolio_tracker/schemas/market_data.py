# portfolio_tracker/schemas/market_data.py
"""
Pydantic schemas for quotes and price history.

These schemas handle:
- Current quote for a symbol (search, price endpoints)
- Daily OHLCV history for a symbol
- Batch quote requests with per-symbol success flags
"""

import datetime as dt

from pydantic import Field, field_validator

from portfolio_tracker.schemas.portfolio import CamelModel, JsonDecimal
from portfolio_tracker.schemas.validators import validate_symbol
from portfolio_tracker.services.constants import MAX_BATCH_QUOTE_SYMBOLS


# =============================================================================
# QUOTE SCHEMAS
# =============================================================================

class QuoteResponse(CamelModel):
    """Current price snapshot for one symbol."""

    symbol: str
    current_price: JsonDecimal = Field(..., description="Latest price")
    change: JsonDecimal | None = Field(
        default=None,
        description="Change from the previous close"
    )
    change_percent: JsonDecimal | None = Field(
        default=None,
        description="Percent change from the previous close"
    )
    last_updated: dt.date = Field(..., description="Trading date of the price")


# =============================================================================
# HISTORY SCHEMAS
# =============================================================================

class HistoricalPointResponse(CamelModel):
    """One trading day of OHLCV data."""

    date: dt.date
    open: JsonDecimal
    high: JsonDecimal
    low: JsonDecimal
    close: JsonDecimal
    volume: int | None = None


# =============================================================================
# BATCH QUOTE SCHEMAS
# =============================================================================

class BatchQuotesRequest(CamelModel):
    """Symbols to quote in one call."""

    symbols: list[str] = Field(
        ...,
        min_length=1,
        max_length=MAX_BATCH_QUOTE_SYMBOLS,
        examples=[["AAPL", "MSFT", "TSLA"]],
        description=f"1 to {MAX_BATCH_QUOTE_SYMBOLS} ticker symbols"
    )

    @field_validator("symbols")
    @classmethod
    def normalize_symbols(cls, v: list[str]) -> list[str]:
        return [validate_symbol(s) for s in v]


class BatchQuoteItem(CamelModel):
    """Outcome for one symbol of a batch."""

    symbol: str
    success: bool
    quote: QuoteResponse | None = None
    error: str | None = None


class BatchQuotesResponse(CamelModel):
    """Per-symbol outcomes of a batch quote request."""

    results: list[BatchQuoteItem]
    success_count: int
    failure_count: int
