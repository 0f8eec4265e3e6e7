# portfolio_tracker/schemas/__init__.py
"""
Pydantic schemas for API request/response validation.

Organized by domain:
- errors: Error response formats
- market_data: Quotes, symbol history, batch quotes
- portfolio: Lots, holdings, summary, value history
- settings: Single-setting requests and responses
- validators: Reusable validation functions (symbol, amounts, dates)

Usage:
    from portfolio_tracker.schemas import LotCreate, LotResponse, PortfolioResponse
    from portfolio_tracker.schemas import QuoteResponse, BatchQuotesRequest
    from portfolio_tracker.schemas import ErrorDetail
"""

from portfolio_tracker.schemas.errors import ErrorDetail, ValidationErrorDetail
from portfolio_tracker.schemas.market_data import (
    QuoteResponse,
    HistoricalPointResponse,
    BatchQuotesRequest,
    BatchQuoteItem,
    BatchQuotesResponse,
)
from portfolio_tracker.schemas.portfolio import (
    LotCreate,
    LotUpdate,
    LotResponse,
    DeleteResponse,
    HoldingResponse,
    PortfolioSummaryResponse,
    PortfolioResponse,
    ValuePointResponse,
)
from portfolio_tracker.schemas.settings import (
    SettingValue,
    SettingValueRequest,
    SettingValueResponse,
)

__all__ = [
    # Errors
    "ErrorDetail",
    "ValidationErrorDetail",
    # Market data
    "QuoteResponse",
    "HistoricalPointResponse",
    "BatchQuotesRequest",
    "BatchQuoteItem",
    "BatchQuotesResponse",
    # Portfolio
    "LotCreate",
    "LotUpdate",
    "LotResponse",
    "DeleteResponse",
    "HoldingResponse",
    "PortfolioSummaryResponse",
    "PortfolioResponse",
    "ValuePointResponse",
    # Settings
    "SettingValue",
    "SettingValueRequest",
    "SettingValueResponse",
]
