# portfolio_tracker/services/valuation/history.py
"""
Portfolio value history reconstruction.

Rebuilds the portfolio's value on each past trading date of a look-back
period from the lots and each symbol's daily closes.

Algorithm:
    1. Resolve the period to [start, today] (unknown period -> InvalidPeriodError)
    2. Fetch each unique symbol's daily series once, keep points in range
    3. Take the sorted union of all trading dates across the series
    4. value(d) = Σ quantity × close(symbol, d) over lots purchased on or
       before d that have a close on exactly d (no forward/backward fill)
    5. Emit only dates where value > 0

Performance:
    One fetch per symbol (not per lot, not per date), then pure in-memory
    joins over dict lookups.

Failure Handling:
    A symbol whose fetch fails contributes nothing on any date; its lots
    simply drop out of the sums. The reconstruction itself still succeeds.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Callable, Iterable, Protocol, Sequence

from portfolio_tracker.services.fetcher import fetch_per_symbol
from portfolio_tracker.services.valuation.types import (
    LotSnapshot,
    Period,
    ValuePoint,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class PricePoint(Protocol):
    """Anything with a trading date and a close (OHLCVData satisfies it)."""

    date: date
    close: Decimal


HistoryLookup = Callable[[str, date, date], Iterable[PricePoint]]


# =============================================================================
# PUBLIC API
# =============================================================================

def reconstruct_history(
        lots: Sequence[LotSnapshot],
        history_lookup: HistoryLookup,
        period: Period | str,
        today: date | None = None,
        max_workers: int = 1,
        timeout: float | None = None,
) -> list[ValuePoint]:
    """
    Reconstruct daily portfolio value over a look-back period.

    Args:
        lots: All lots, including ones bought during the period
        history_lookup: (symbol, start, end) -> daily points; raises on failure
        period: Period or token such as "3M"
        today: End of the window (defaults to date.today())
        max_workers: Parallel series fetches
        timeout: Seconds allowed per fetch; a timeout counts as a failure

    Returns:
        ValuePoints in ascending date order, each with value > 0

    Raises:
        InvalidPeriodError: Unknown period token (checked before any fetch)
    """
    resolved = Period.parse(period)
    end_date = today or date.today()
    start_date = resolved.start_date(end_date)

    if not lots:
        return []

    outcome = fetch_per_symbol(
        (lot.symbol for lot in lots),
        lambda symbol: history_lookup(symbol, start_date, end_date),
        max_workers=max_workers,
        timeout=timeout,
    )
    for symbol, reason in outcome.failures.items():
        logger.warning(f"History unavailable for {symbol}, omitted from series: {reason}")

    closes = _closes_in_range(outcome.results, start_date, end_date)
    points = _value_series(lots, closes)

    logger.info(
        f"Reconstructed {resolved.value} history: {len(points)} points, "
        f"{len(closes)} symbols with data, {len(outcome.failures)} failed"
    )
    return points


# =============================================================================
# PRIVATE HELPERS
# =============================================================================

def _closes_in_range(
        series: dict[str, Iterable[PricePoint]],
        start_date: date,
        end_date: date,
) -> dict[str, dict[date, Decimal]]:
    """Index each symbol's closes by date, keeping only in-range dates."""
    closes: dict[str, dict[date, Decimal]] = {}
    for symbol, points in series.items():
        by_date = {
            p.date: p.close
            for p in points or ()
            if start_date <= p.date <= end_date
        }
        if by_date:
            closes[symbol] = by_date
    return closes


def _value_series(
        lots: Sequence[LotSnapshot],
        closes: dict[str, dict[date, Decimal]],
) -> list[ValuePoint]:
    """Join lots with closes on every trading date in the union of series."""
    all_dates = sorted({d for by_date in closes.values() for d in by_date})

    lots_by_symbol: dict[str, list[LotSnapshot]] = defaultdict(list)
    for lot in lots:
        if lot.symbol in closes:
            lots_by_symbol[lot.symbol].append(lot)

    points = []
    for current in all_dates:
        value = ZERO
        for symbol, symbol_lots in lots_by_symbol.items():
            close = closes[symbol].get(current)
            if close is None:
                continue
            for lot in symbol_lots:
                if lot.purchase_date <= current:
                    value += lot.quantity * close
        if value > ZERO:
            points.append(ValuePoint(date=current, value=value))

    return points
