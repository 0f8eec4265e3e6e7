# portfolio_tracker/routers/market_data.py
"""
Quote endpoints.

Thin wrappers over the shared quote provider:
- GET  /search?q=                          - Current quote for one symbol
- GET  /stocks/{symbol}/price              - Same, addressed by path
- GET  /stocks/{symbol}/history/{period}   - Daily OHLCV over a period
- POST /stocks/quotes                      - Up to 50 quotes, per-symbol outcome

Unlike portfolio valuation, single-symbol lookups surface provider errors:
unknown symbol 404, provider throttling 429, provider down 503.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, Request
from pydantic import AfterValidator

from portfolio_tracker.config import settings
from portfolio_tracker.dependencies import get_market_data_provider, get_valuation_service
from portfolio_tracker.middleware.rate_limit import limiter, RATE_LIMIT_QUOTES
from portfolio_tracker.schemas.market_data import (
    BatchQuoteItem,
    BatchQuotesRequest,
    BatchQuotesResponse,
    HistoricalPointResponse,
    QuoteResponse,
)
from portfolio_tracker.schemas.validators import validate_symbol
from portfolio_tracker.services.constants import MAX_SEARCH_QUERY_LENGTH
from portfolio_tracker.services.market_data.base import MarketDataProvider, Quote
from portfolio_tracker.services.valuation import ValuationService

# Validated symbol parameter types
SymbolQuery = Annotated[
    str,
    Query(min_length=1, max_length=MAX_SEARCH_QUERY_LENGTH, description="Ticker symbol"),
    AfterValidator(validate_symbol),
]
SymbolPath = Annotated[
    str,
    Path(min_length=1, max_length=MAX_SEARCH_QUERY_LENGTH, description="Ticker symbol"),
    AfterValidator(validate_symbol),
]

# =============================================================================
# ROUTER SETUP
# =============================================================================

router = APIRouter(tags=["Market Data"])


def _map_quote(quote: Quote) -> QuoteResponse:
    return QuoteResponse(
        symbol=quote.symbol,
        current_price=quote.current_price,
        change=quote.change,
        change_percent=quote.change_percent,
        last_updated=quote.last_updated,
    )


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get(
    "/search",
    response_model=QuoteResponse,
    summary="Look up a symbol",
    response_description="Latest quote for the symbol",
)
@limiter.limit(RATE_LIMIT_QUOTES)
def search_symbol(
        request: Request,
        q: SymbolQuery,
        provider: MarketDataProvider = Depends(get_market_data_provider),
) -> QuoteResponse:
    """
    Return the latest quote for a ticker (case-insensitive).

    Raises **404** for unknown symbols, **429** when the provider throttles
    and **503** when it is unavailable.
    """
    return _map_quote(provider.get_current_quote(q))


@router.get(
    "/stocks/{symbol}/price",
    response_model=QuoteResponse,
    summary="Get the current price of a symbol",
)
@limiter.limit(RATE_LIMIT_QUOTES)
def get_stock_price(
        request: Request,
        symbol: SymbolPath,
        provider: MarketDataProvider = Depends(get_market_data_provider),
) -> QuoteResponse:
    """Latest quote for `symbol`; same errors as `/search`."""
    return _map_quote(provider.get_current_quote(symbol))


@router.get(
    "/stocks/{symbol}/history/{period}",
    response_model=list[HistoricalPointResponse],
    summary="Get daily prices of a symbol",
    response_description="Daily OHLCV bars, oldest first",
)
@limiter.limit(RATE_LIMIT_QUOTES)
def get_stock_history(
        request: Request,
        symbol: SymbolPath,
        period: str,
        service: ValuationService = Depends(get_valuation_service),
) -> list[HistoricalPointResponse]:
    """
    Daily bars for one symbol over `1M`, `3M`, `6M`, `1Y` or `2Y`.

    Raises **400** for other periods.
    """
    history = service.get_symbol_history(symbol, period)
    return [
        HistoricalPointResponse(
            date=bar.date,
            open=bar.open,
            high=bar.high,
            low=bar.low,
            close=bar.close,
            volume=bar.volume,
        )
        for bar in history.prices
    ]


@router.post(
    "/stocks/quotes",
    response_model=BatchQuotesResponse,
    summary="Get quotes for several symbols",
)
@limiter.limit(RATE_LIMIT_QUOTES)
def get_batch_quotes(
        request: Request,
        body: BatchQuotesRequest,
        provider: MarketDataProvider = Depends(get_market_data_provider),
) -> BatchQuotesResponse:
    """
    Quote up to 50 symbols.

    Always 200: each symbol reports `success` and either `quote` or
    `error`. Duplicate symbols are quoted once; symbols are quoted
    concurrently, like a portfolio valuation.
    """
    results = provider.get_quotes(
        body.symbols,
        max_workers=settings.quote_max_concurrency,
        timeout=settings.quote_fetch_timeout,
    )

    items = [
        BatchQuoteItem(
            symbol=symbol,
            success=result.success,
            quote=_map_quote(result.quote) if result.quote else None,
            error=result.error,
        )
        for symbol, result in results.items()
    ]
    success_count = sum(1 for item in items if item.success)

    return BatchQuotesResponse(
        results=items,
        success_count=success_count,
        failure_count=len(items) - success_count,
    )
