# portfolio_tracker/services/market_data/yahoo.py
"""
Yahoo Finance quote provider implementation.

Implements the MarketDataProvider interface using the yfinance library.
Yahoo Finance is a free data source suitable for personal use.

Key features:
- Current quote from the two most recent daily closes
- Historical OHLCV price data
- Every HTTP request bounded by a timeout
- Error classification into not-found / rate-limited / unavailable
- Retry and circuit breaker inherited from the base class

Limitations:
- Rate limits exist but are not documented
- Prices may be delayed 15-20 minutes
"""

import logging
import math
from datetime import date, timedelta
from decimal import Decimal
from typing import Any

import yfinance as yf

from portfolio_tracker.services.circuit_breaker import CircuitBreaker
from portfolio_tracker.services.exceptions import (
    MarketDataError,
    ProviderUnavailableError,
    TickerNotFoundError,
    RateLimitError,
)
from portfolio_tracker.services.market_data.base import (
    MarketDataProvider,
    OHLCVData,
    HistoricalPricesResult,
    Quote,
)

logger = logging.getLogger(__name__)

# Daily bars requested to compute the latest quote and its change
QUOTE_LOOKBACK_PERIOD = "5d"

PRICE_QUANTUM = Decimal("0.00000001")


class YahooFinanceProvider(MarketDataProvider):
    """
    Yahoo Finance implementation of MarketDataProvider.

    Configuration:
        timeout: Per-request timeout in seconds passed to yfinance

    Retry Behavior (inherited from MarketDataProvider):
        - Retries on ProviderUnavailableError and RateLimitError
        - Does NOT retry on TickerNotFoundError
        - Exponential backoff: 1s -> 2s -> 4s

    Example:
        provider = YahooFinanceProvider(timeout=10)

        quote = provider.get_current_quote("AAPL")
        print(quote.current_price)

        history = provider.get_history("AAPL", date(2024, 1, 1), date(2024, 6, 30))
        print(f"Fetched {history.days_fetched} days of data")
    """

    def __init__(
            self,
            timeout: float = 10,
            circuit_breaker: CircuitBreaker | None = None,
            retry_attempts: int | None = None,
    ) -> None:
        """
        Initialize the Yahoo Finance provider.

        Args:
            timeout: Request timeout in seconds
            circuit_breaker: Breaker shared by all calls (one is created if omitted)
            retry_attempts: Overrides MAX_RETRY_ATTEMPTS
        """
        self._timeout = timeout
        super().__init__(circuit_breaker=circuit_breaker, retry_attempts=retry_attempts)
        logger.info(f"YahooFinanceProvider initialized (timeout={timeout}s)")

    @property
    def name(self) -> str:
        return "yahoo"

    # =========================================================================
    # QUOTES
    # =========================================================================

    def _fetch_quote(self, symbol: str) -> Quote:
        """Build a quote from the last two daily closes."""
        logger.debug(f"Fetching quote for {symbol}")

        try:
            df = yf.Ticker(symbol).history(
                period=QUOTE_LOOKBACK_PERIOD,
                interval="1d",
                auto_adjust=False,
                timeout=self._timeout,
            )
        except Exception as e:
            raise self._classify_error(symbol, e) from e

        bars = self._dataframe_to_ohlcv(df) if not df.empty else []
        if not bars:
            raise TickerNotFoundError(ticker=symbol, provider=self.name)

        latest = bars[-1]
        change = None
        change_percent = None
        if len(bars) > 1:
            previous_close = bars[-2].close
            change = latest.close - previous_close
            change_percent = (change / previous_close * 100).quantize(PRICE_QUANTUM)

        return Quote(
            symbol=symbol,
            current_price=latest.close,
            change=change,
            change_percent=change_percent,
            last_updated=latest.date,
        )

    # =========================================================================
    # HISTORICAL PRICES
    # =========================================================================

    def _fetch_history(
            self,
            symbol: str,
            start_date: date,
            end_date: date,
    ) -> HistoricalPricesResult:
        logger.debug(f"Fetching historical prices for {symbol}: {start_date} to {end_date}")

        try:
            # Yahoo Finance end date is exclusive
            df = yf.Ticker(symbol).history(
                start=start_date.isoformat(),
                end=(end_date + timedelta(days=1)).isoformat(),
                interval="1d",
                auto_adjust=False,
                timeout=self._timeout,
            )
        except Exception as e:
            raise self._classify_error(symbol, e) from e

        if df.empty:
            raise TickerNotFoundError(ticker=symbol, provider=self.name)

        prices = self._dataframe_to_ohlcv(df)
        logger.debug(f"Fetched {len(prices)} days for {symbol}")

        return HistoricalPricesResult(
            symbol=symbol,
            prices=prices,
            from_date=start_date,
            to_date=end_date,
        )

    # =========================================================================
    # HELPER METHODS
    # =========================================================================

    def _classify_error(self, symbol: str, error: Exception) -> MarketDataError:
        """Map a yfinance/requests failure onto the provider error taxonomy."""
        error_str = str(error).lower()

        if "not found" in error_str or "no data" in error_str or "delisted" in error_str:
            return TickerNotFoundError(ticker=symbol, provider=self.name)

        if "rate limit" in error_str or "too many requests" in error_str:
            return RateLimitError(provider=self.name)

        logger.error(f"Yahoo Finance error for {symbol}: {error}")
        return ProviderUnavailableError(provider=self.name, reason=str(error))

    def _dataframe_to_ohlcv(self, df) -> list[OHLCVData]:
        """
        Convert a pandas DataFrame from yfinance to a list of OHLCVData.

        Rows without a usable close are skipped. Missing open/high/low fall
        back to the close.
        """
        prices = []

        for idx, row in df.iterrows():
            price_date = idx.date() if hasattr(idx, 'date') else idx

            close_price = self._to_decimal(row.get('Close'))
            if close_price is None or close_price <= 0:
                logger.warning(f"Skipping {price_date}: missing close price")
                continue

            open_price = self._to_decimal(row.get('Open')) or close_price
            high_price = self._to_decimal(row.get('High')) or close_price
            low_price = self._to_decimal(row.get('Low')) or close_price

            try:
                prices.append(OHLCVData(
                    date=price_date,
                    open=open_price,
                    high=max(high_price, low_price),
                    low=min(high_price, low_price),
                    close=close_price,
                    volume=self._to_int(row.get('Volume')),
                ))
            except ValueError as e:
                logger.warning(f"Error parsing row {idx}: {e}")

        return prices

    @staticmethod
    def _to_decimal(value: Any) -> Decimal | None:
        """Convert a value to Decimal, returning None for NaN/None."""
        if value is None:
            return None
        try:
            if math.isnan(float(value)):
                return None
            return Decimal(str(value)).quantize(PRICE_QUANTUM)
        except (TypeError, ValueError):
            return None

    @staticmethod
    def _to_int(value: Any) -> int | None:
        """Convert a value to int, returning None for NaN/None."""
        if value is None:
            return None
        try:
            if math.isnan(float(value)):
                return None
            return int(value)
        except (TypeError, ValueError):
            return None
