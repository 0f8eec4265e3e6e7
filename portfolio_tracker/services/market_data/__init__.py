# portfolio_tracker/services/market_data/__init__.py
"""
Quote provider package.

This package contains:
- Abstract interface and value objects for quote providers (base.py)
- Yahoo Finance implementation (yahoo.py)

Usage:
    from portfolio_tracker.services.market_data import (
        MarketDataProvider,
        Quote,
        OHLCVData,
        HistoricalPricesResult,
        YahooFinanceProvider,
    )

Architecture:
    MarketDataProvider (ABC: retry + circuit breaker)
    └── YahooFinanceProvider (concrete)
"""

from portfolio_tracker.services.market_data.base import (
    MarketDataProvider,
    Quote,
    QuoteResult,
    OHLCVData,
    HistoricalPricesResult,
)
from portfolio_tracker.services.market_data.yahoo import YahooFinanceProvider

__all__ = [
    # Abstract interface
    "MarketDataProvider",
    # Data classes
    "Quote",
    "QuoteResult",
    "OHLCVData",
    "HistoricalPricesResult",
    # Concrete implementations
    "YahooFinanceProvider",
]
