# portfolio_tracker/services/protocols.py
"""
Protocol interfaces for service dependency injection.

Using typing.Protocol enables structural subtyping:
- Any quote provider (or a test double) satisfies the protocol without
  inheriting from MarketDataProvider
- The valuation service depends only on the two calls it makes
"""

from __future__ import annotations

from datetime import date
from typing import Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from portfolio_tracker.services.market_data.base import HistoricalPricesResult, Quote


class QuoteProviderProtocol(Protocol):
    """Interface required by ValuationService."""

    def get_current_quote(self, symbol: str) -> Quote:
        ...

    def get_history(
        self,
        symbol: str,
        start_date: date,
        end_date: date,
    ) -> HistoricalPricesResult:
        ...
