# portfolio_tracker/services/market_data/base.py
"""
Abstract interface for quote providers.

This module defines the contract every quote provider follows and the
value objects it returns. The valuation core only ever sees this interface.

Design Principles:
- Dependency Inversion: The valuation core depends on this ABC, not on yfinance
- Template Method: Public methods normalize the symbol, apply the circuit
  breaker and the retry policy, then delegate to the provider's ``_fetch_*``
- Retry lives here: The valuation core never retries; transient provider
  errors are retried with exponential backoff before they escape
- No placeholders: A failed fetch raises, it never returns an invented price

Failure contract:
    TickerNotFoundError       - Symbol unknown to the provider (not retried)
    RateLimitError            - Provider back-pressure (retried, then raised)
    ProviderUnavailableError  - Network or server failure (retried, then raised)
    CircuitBreakerOpen        - Provider considered down, call not attempted
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import TypeVar, Callable, Any

from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

from portfolio_tracker.services.circuit_breaker import CircuitBreaker
from portfolio_tracker.services.exceptions import (
    ProviderUnavailableError,
    RateLimitError,
    TickerNotFoundError,
)
from portfolio_tracker.services.fetcher import fetch_per_symbol, unique_symbols

logger = logging.getLogger(__name__)

T = TypeVar('T')


# =============================================================================
# DATA CLASSES - QUOTES
# =============================================================================

@dataclass(frozen=True)
class Quote:
    """
    Current market price snapshot for one symbol.

    Produced fresh per request and never persisted.

    Attributes:
        symbol: Upper-case ticker symbol
        current_price: Latest price
        change: Absolute change from the previous close (if known)
        change_percent: Percent change from the previous close (if known)
        last_updated: Trading date the price belongs to
    """

    symbol: str
    current_price: Decimal
    last_updated: date
    change: Decimal | None = None
    change_percent: Decimal | None = None

    def __post_init__(self) -> None:
        if not self.symbol:
            raise ValueError("symbol is required")
        if self.current_price <= 0:
            raise ValueError(f"current_price must be positive, got {self.current_price}")


@dataclass
class QuoteResult:
    """
    Outcome of one symbol in a batch quote request.

    Attributes:
        symbol: Symbol requested
        success: Whether a quote was obtained
        quote: The quote when successful
        error: Human-readable failure when not
    """

    symbol: str
    success: bool
    quote: Quote | None = None
    error: str | None = None


# =============================================================================
# DATA CLASSES - PRICE HISTORY (OHLCV)
# =============================================================================

@dataclass(frozen=True)
class OHLCVData:
    """
    Single day's OHLCV (Open, High, Low, Close, Volume) price data.

    The history reconstruction only consumes ``close``.

    Attributes:
        date: Trading date (no time component)
        open: Opening price
        high: Highest price during the day
        low: Lowest price during the day
        close: Closing price (valuation price)
        volume: Number of shares traded
    """

    date: date
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: int | None = None

    def __post_init__(self) -> None:
        if self.close <= 0:
            raise ValueError(f"close price must be positive, got {self.close}")
        if self.high < self.low:
            raise ValueError(f"high ({self.high}) cannot be less than low ({self.low})")


@dataclass
class HistoricalPricesResult:
    """
    Daily price series for one symbol, ascending by date.

    Attributes:
        symbol: The symbol requested
        prices: OHLCV points sorted by date
        from_date: Requested start date
        to_date: Requested end date
        actual_from_date: Earliest date in returned data
        actual_to_date: Latest date in returned data
    """

    symbol: str
    prices: list[OHLCVData] = field(default_factory=list)
    from_date: date | None = None
    to_date: date | None = None
    actual_from_date: date | None = None
    actual_to_date: date | None = None

    def __post_init__(self) -> None:
        self.prices = sorted(self.prices, key=lambda p: p.date)
        if self.prices and self.actual_from_date is None:
            self.actual_from_date = self.prices[0].date
        if self.prices and self.actual_to_date is None:
            self.actual_to_date = self.prices[-1].date

    @property
    def days_fetched(self) -> int:
        return len(self.prices)


# =============================================================================
# ABSTRACT BASE CLASS
# =============================================================================

class MarketDataProvider(ABC):
    """
    Abstract base class for quote providers.

    Subclasses implement ``name``, ``_fetch_quote`` and ``_fetch_history``.
    Callers use ``get_current_quote``, ``get_history`` and ``get_quotes``.

    Retry Behavior:
        Transient failures (ProviderUnavailableError, RateLimitError) are
        retried with exponential backoff. Class attributes tune it:

        - MAX_RETRY_ATTEMPTS: Total attempts (default: 3, overridable per instance)
        - RETRY_MIN_WAIT: Minimum wait in seconds (default: 1)
        - RETRY_MAX_WAIT: Maximum wait in seconds (default: 10)
        - RETRY_MULTIPLIER: Exponential multiplier (default: 1)

    Circuit Breaker:
        The retried call as a whole runs inside the provider's circuit
        breaker. TickerNotFoundError does not count as a provider failure.
    """

    MAX_RETRY_ATTEMPTS: int = 3
    RETRY_MIN_WAIT: float = 1
    RETRY_MAX_WAIT: float = 10
    RETRY_MULTIPLIER: float = 1

    MAX_BATCH_SIZE: int = 50

    def __init__(
            self,
            circuit_breaker: CircuitBreaker | None = None,
            retry_attempts: int | None = None,
    ) -> None:
        self._circuit_breaker = circuit_breaker or CircuitBreaker(
            name=f"{self.name}-quotes",
            excluded_exceptions=(TickerNotFoundError,),
        )
        if retry_attempts is not None:
            self.MAX_RETRY_ATTEMPTS = retry_attempts

    # =========================================================================
    # ABSTRACT PROPERTIES AND METHODS
    # =========================================================================

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider identifier used in logs and error messages (e.g. "yahoo")."""
        pass

    @abstractmethod
    def _fetch_quote(self, symbol: str) -> Quote:
        """
        Fetch the current quote for an upper-case symbol, once.

        Raises:
            TickerNotFoundError, RateLimitError, ProviderUnavailableError
        """
        pass

    @abstractmethod
    def _fetch_history(
            self,
            symbol: str,
            start_date: date,
            end_date: date,
    ) -> HistoricalPricesResult:
        """
        Fetch daily OHLCV data for an upper-case symbol, once.

        Raises:
            TickerNotFoundError, RateLimitError, ProviderUnavailableError
        """
        pass

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    @property
    def circuit_breaker(self) -> CircuitBreaker:
        return self._circuit_breaker

    def get_current_quote(self, symbol: str) -> Quote:
        """
        Fetch the current quote for a symbol.

        Args:
            symbol: Ticker symbol, any case

        Returns:
            Quote for the upper-cased symbol

        Raises:
            TickerNotFoundError: Symbol unknown
            RateLimitError: Provider rate limit persisted through retries
            ProviderUnavailableError: Provider failure persisted through retries
            CircuitBreakerOpen: Provider considered down
        """
        normalized = self._normalize_symbol(symbol)
        return self._call_guarded(self._fetch_quote, normalized)

    def get_history(
            self,
            symbol: str,
            start_date: date,
            end_date: date,
    ) -> HistoricalPricesResult:
        """
        Fetch the daily price series for a symbol within [start_date, end_date].

        Points outside the range are dropped so callers can rely on the bound.

        Raises:
            Same failures as get_current_quote.
        """
        if start_date > end_date:
            raise ValueError(f"start_date {start_date} is after end_date {end_date}")

        normalized = self._normalize_symbol(symbol)
        result = self._call_guarded(self._fetch_history, normalized, start_date, end_date)
        in_range = [p for p in result.prices if start_date <= p.date <= end_date]
        return HistoricalPricesResult(
            symbol=normalized,
            prices=in_range,
            from_date=start_date,
            to_date=end_date,
        )

    def get_quotes(
            self,
            symbols: list[str],
            max_workers: int = 1,
            timeout: float | None = None,
    ) -> dict[str, QuoteResult]:
        """
        Fetch quotes for several symbols, tolerating per-symbol failures.

        Duplicate symbols are fetched once, concurrently on up to
        ``max_workers`` threads. A failure or timeout for one symbol is
        recorded in its QuoteResult and never raised.

        Args:
            symbols: Up to MAX_BATCH_SIZE symbols
            max_workers: Concurrent lookups (1 serializes them)
            timeout: Seconds allowed per symbol, or None for no limit

        Returns:
            Dict mapping upper-case symbol to QuoteResult, in request order

        Raises:
            ValueError: More than MAX_BATCH_SIZE symbols
        """
        if len(symbols) > self.MAX_BATCH_SIZE:
            raise ValueError(
                f"At most {self.MAX_BATCH_SIZE} symbols per batch, got {len(symbols)}"
            )

        keys = unique_symbols(self._normalize_symbol(symbol) for symbol in symbols)
        outcome = fetch_per_symbol(
            keys, self.get_current_quote, max_workers=max_workers, timeout=timeout
        )

        results: dict[str, QuoteResult] = {}
        for key in keys:
            if key in outcome.results:
                results[key] = QuoteResult(symbol=key, success=True, quote=outcome.results[key])
            else:
                results[key] = QuoteResult(symbol=key, success=False, error=outcome.failures[key])
        return results

    def is_available(self) -> bool:
        """False while the circuit breaker is open."""
        return not self._circuit_breaker.is_open

    # =========================================================================
    # RETRY AND CIRCUIT BREAKER
    # =========================================================================

    def _call_guarded(self, func: Callable[..., T], *args: Any) -> T:
        with self._circuit_breaker:
            return self._execute_with_retry(func, *args)

    def _execute_with_retry(
            self,
            func: Callable[..., T],
            *args: Any,
            **kwargs: Any,
    ) -> T:
        """
        Execute a function with retry logic for transient failures.

        Retries ProviderUnavailableError and RateLimitError with exponential
        backoff. TickerNotFoundError and anything else propagate at once.

        Raises:
            The last exception if all retries fail
        """

        @retry(
            stop=stop_after_attempt(self.MAX_RETRY_ATTEMPTS),
            wait=wait_exponential(
                multiplier=self.RETRY_MULTIPLIER,
                min=self.RETRY_MIN_WAIT,
                max=self.RETRY_MAX_WAIT,
            ),
            retry=retry_if_exception_type((ProviderUnavailableError, RateLimitError)),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        def _inner() -> T:
            return func(*args, **kwargs)

        return _inner()

    @staticmethod
    def _normalize_symbol(symbol: str) -> str:
        normalized = (symbol or "").strip().upper()
        if not normalized:
            raise ValueError("symbol is required")
        return normalized
