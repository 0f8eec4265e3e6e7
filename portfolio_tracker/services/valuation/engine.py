# portfolio_tracker/services/valuation/engine.py
"""
Portfolio valuation engine.

Turns purchase lots plus a per-symbol quote lookup into holdings and a
portfolio summary.

Rules:
- The quote lookup runs once per unique symbol, never once per lot
- A failed lookup leaves every lot of that symbol unpriced; the rest of the
  portfolio is still valued
- Holdings come back in input order, one per lot
- All arithmetic is Decimal; nothing is rounded here

Usage:
    valuation = valuate_portfolio(lots, provider.get_current_quote, max_workers=4)
    valuation.summary.total_value
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Callable, Sequence

from portfolio_tracker.services.market_data.base import Quote
from portfolio_tracker.services.valuation.calculators import (
    HoldingCalculator,
    SummaryCalculator,
)
from portfolio_tracker.services.fetcher import fetch_per_symbol, unique_symbols
from portfolio_tracker.services.valuation.types import (
    LotSnapshot,
    PortfolioValuation,
)

logger = logging.getLogger(__name__)

QuoteLookup = Callable[[str], Quote | None]

_holding_calculator = HoldingCalculator()
_summary_calculator = SummaryCalculator()


def valuate_portfolio(
        lots: Sequence[LotSnapshot],
        quote_lookup: QuoteLookup,
        max_workers: int = 1,
        timeout: float | None = None,
) -> PortfolioValuation:
    """
    Value a list of lots at current prices.

    Args:
        lots: Lots to value (not mutated)
        quote_lookup: Symbol -> Quote; raises (or returns None) when no price
        max_workers: Parallel lookups (1 = one at a time)
        timeout: Seconds allowed per lookup; a timeout counts as a failure

    Returns:
        PortfolioValuation with one holding per lot and a warning per
        unpriced symbol
    """
    outcome = fetch_per_symbol(
        (lot.symbol for lot in lots),
        quote_lookup,
        max_workers=max_workers,
        timeout=timeout,
    )

    prices: dict[str, Decimal] = {}
    warnings: list[str] = []
    for symbol, quote in outcome.results.items():
        if quote is None:
            outcome.failures[symbol] = "no quote returned"
            continue
        prices[symbol] = quote.current_price

    for symbol in unique_symbols(lot.symbol for lot in lots):
        reason = outcome.failures.get(symbol)
        if reason is None:
            continue
        logger.warning(f"Quote unavailable for {symbol}, holding left unpriced: {reason}")
        warnings.append(f"{symbol}: price unavailable ({reason})")

    holdings = [
        _holding_calculator.calculate(lot, prices.get(lot.symbol))
        for lot in lots
    ]
    summary = _summary_calculator.calculate(holdings)

    logger.info(
        f"Valuated {summary.holdings_count} holdings "
        f"({summary.priced_holdings_count} priced, {len(prices)} symbols)"
    )

    return PortfolioValuation(holdings=holdings, summary=summary, warnings=warnings)
