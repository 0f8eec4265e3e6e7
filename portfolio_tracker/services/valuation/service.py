# portfolio_tracker/services/valuation/service.py
"""
Valuation Service - orchestrator for portfolio valuation.

Single entry point the HTTP layer uses for anything priced:
- get_valuation(): Holdings and summary at current prices
- get_history(): Portfolio value series for a look-back period
- get_symbol_history(): Daily price series for one symbol

Design Principles:
- Dependency Injection: Quote provider and fetch policy via constructor
- No HTTP Knowledge: Raises domain exceptions, not HTTPException
- No Storage Knowledge: Receives lot snapshots, never a session
- No Retries: Retrying is the provider's job

Usage:
    from portfolio_tracker.services.valuation import ValuationService

    service = ValuationService(provider, max_workers=4, fetch_timeout=10)

    valuation = service.get_valuation(lots)
    history = service.get_history(lots, "6M")
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Sequence, TYPE_CHECKING

from portfolio_tracker.services.market_data.base import HistoricalPricesResult
from portfolio_tracker.services.valuation.engine import valuate_portfolio
from portfolio_tracker.services.valuation.history import reconstruct_history
from portfolio_tracker.services.valuation.types import (
    LotSnapshot,
    Period,
    PortfolioValuation,
    ValuePoint,
)

if TYPE_CHECKING:
    from portfolio_tracker.services.protocols import QuoteProviderProtocol

logger = logging.getLogger(__name__)


class ValuationService:
    """
    Main service for valuation operations.

    Attributes:
        _provider: Injected quote provider
        _max_workers: Parallel per-symbol fetches (1 = serialized)
        _fetch_timeout: Seconds allowed per symbol fetch (None = unbounded)
    """

    def __init__(
            self,
            provider: QuoteProviderProtocol,
            max_workers: int = 1,
            fetch_timeout: float | None = None,
    ) -> None:
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")

        self._provider = provider
        self._max_workers = max_workers
        self._fetch_timeout = fetch_timeout

        logger.info(
            f"ValuationService initialized (max_workers={max_workers}, "
            f"fetch_timeout={fetch_timeout})"
        )

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def get_valuation(self, lots: Sequence[LotSnapshot]) -> PortfolioValuation:
        """
        Value lots at current prices.

        Per-symbol quote failures leave those holdings unpriced; nothing
        is raised for them.
        """
        return valuate_portfolio(
            lots,
            self._provider.get_current_quote,
            max_workers=self._max_workers,
            timeout=self._fetch_timeout,
        )

    def get_history(
            self,
            lots: Sequence[LotSnapshot],
            period: Period | str,
            today: date | None = None,
    ) -> list[ValuePoint]:
        """
        Reconstruct portfolio value over a look-back period.

        Raises:
            InvalidPeriodError: Unknown period token
        """
        return reconstruct_history(
            lots,
            self._history_points,
            period,
            today=today,
            max_workers=self._max_workers,
            timeout=self._fetch_timeout,
        )

    def get_symbol_history(
            self,
            symbol: str,
            period: Period | str,
            today: date | None = None,
    ) -> HistoricalPricesResult:
        """
        Daily prices for one symbol over a look-back period.

        Unlike portfolio history, provider failures propagate.

        Raises:
            InvalidPeriodError: Unknown period token
            TickerNotFoundError, RateLimitError, ProviderUnavailableError,
            CircuitBreakerOpen: From the provider
        """
        resolved = Period.parse(period)
        end_date = today or date.today()
        return self._provider.get_history(symbol, resolved.start_date(end_date), end_date)

    # =========================================================================
    # PRIVATE METHODS
    # =========================================================================

    def _history_points(self, symbol: str, start_date: date, end_date: date):
        return self._provider.get_history(symbol, start_date, end_date).prices
