# portfolio_tracker/services/__init__.py
"""
Service layer for business logic.

Services:
- Have NO knowledge of HTTP (no HTTPException, no status codes)
- Raise domain-specific exceptions
- Receive database sessions as parameters (not via Depends)
- Are easily testable via dependency injection

Usage:
    from portfolio_tracker.services import ValuationService, LotStore, SettingsService
    from portfolio_tracker.services import LotNotFoundError, InvalidPeriodError

Architecture:
    services/
    ├── __init__.py              # This file - main exports
    ├── exceptions.py            # Domain exceptions
    ├── constants.py             # Limits and rate-limit strings
    ├── protocols.py             # Service interfaces (Protocol classes)
    ├── circuit_breaker.py       # Circuit breaker for the quote provider
    ├── fetcher.py               # Concurrent per-symbol fetching (quotes, valuation)
    ├── lot_store.py             # Purchase lot CRUD
    ├── settings_normalizer.py   # Stored <-> typed settings conversion
    ├── settings_service.py      # Settings read/update/reset
    ├── market_data/             # Quote provider package
    │   ├── base.py              # Abstract provider interface
    │   └── yahoo.py             # Yahoo Finance implementation
    └── valuation/               # Valuation engine
        ├── service.py           # Orchestrator
        ├── engine.py            # Holdings + summary
        ├── history.py           # Value history reconstruction
        ├── calculators.py       # Formulas
        └── types.py             # Data types
"""

# Circuit breaker
from portfolio_tracker.services.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerOpen,
    CircuitState,
)
# Exceptions
from portfolio_tracker.services.exceptions import (
    ServiceError,
    ValidationError,
    InvalidPeriodError,
    NotFoundError,
    LotNotFoundError,
    SettingNotFoundError,
    MarketDataError,
    ProviderUnavailableError,
    TickerNotFoundError,
    RateLimitError,
)
# Lots
from portfolio_tracker.services.lot_store import LotStore, LotChanges
# Market data
from portfolio_tracker.services.market_data import (
    MarketDataProvider,
    Quote,
    QuoteResult,
    OHLCVData,
    HistoricalPricesResult,
    YahooFinanceProvider,
)
# Settings
from portfolio_tracker.services.settings_normalizer import to_typed, to_stored
from portfolio_tracker.services.settings_service import (
    SettingsService,
    SettingsUpdateResult,
    UserPreferences,
)
# Valuation
from portfolio_tracker.services.valuation import (
    ValuationService,
    valuate_portfolio,
    reconstruct_history,
    LotSnapshot,
    Holding,
    PortfolioSummary,
    PortfolioValuation,
    Period,
    ValuePoint,
)

__all__ = [
    # Circuit breaker
    "CircuitBreaker",
    "CircuitBreakerOpen",
    "CircuitState",
    # Exceptions
    "ServiceError",
    "ValidationError",
    "InvalidPeriodError",
    "NotFoundError",
    "LotNotFoundError",
    "SettingNotFoundError",
    "MarketDataError",
    "ProviderUnavailableError",
    "TickerNotFoundError",
    "RateLimitError",
    # Lots
    "LotStore",
    "LotChanges",
    # Market data
    "MarketDataProvider",
    "Quote",
    "QuoteResult",
    "OHLCVData",
    "HistoricalPricesResult",
    "YahooFinanceProvider",
    # Settings
    "to_typed",
    "to_stored",
    "SettingsService",
    "SettingsUpdateResult",
    "UserPreferences",
    # Valuation
    "ValuationService",
    "valuate_portfolio",
    "reconstruct_history",
    "LotSnapshot",
    "Holding",
    "PortfolioSummary",
    "PortfolioValuation",
    "Period",
    "ValuePoint",
]
