# portfolio_tracker/services/valuation/types.py
"""
Internal data types for the valuation engine.

These dataclasses are used internally by the calculators, the engine and
the history reconstruction. They are NOT Pydantic schemas - those live in
portfolio_tracker/schemas/portfolio.py for API serialization.

Design Principles:
- Immutable where possible (frozen=True for value objects)
- Use Decimal for ALL financial values (never float)
- No rounding here; values are quantized only when mapped to responses
- Unknown values are None, never 0 and never NaN
- Warnings accumulate for data quality tracking

Type Hierarchy:
    LotSnapshot         - Read-only copy of one stored lot
    Holding             - One lot enriched with its current price
    PortfolioSummary    - Aggregates over all holdings
    PortfolioValuation  - Holdings + summary + warnings
    Period              - Supported history look-back windows
    ValuePoint          - Portfolio value on one date
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from portfolio_tracker.services.exceptions import InvalidPeriodError
from portfolio_tracker.utils.date_utils import subtract_months

if TYPE_CHECKING:
    from portfolio_tracker.models import Lot


# =============================================================================
# LOTS
# =============================================================================

@dataclass(frozen=True)
class LotSnapshot:
    """
    Read-only copy of a purchase lot, taken per request.

    The engine works on snapshots so a valuation can never write back to
    the store.

    Attributes:
        id: Store-assigned identifier (None for ad-hoc lots)
        symbol: Upper-case ticker
        quantity: Shares bought (fractional allowed)
        buy_price: Unit price paid
        purchase_date: Date of the purchase
    """

    id: int | None
    symbol: str
    quantity: Decimal
    buy_price: Decimal
    purchase_date: date

    @classmethod
    def from_model(cls, lot: Lot) -> LotSnapshot:
        return cls(
            id=lot.id,
            symbol=lot.symbol,
            quantity=Decimal(lot.quantity),
            buy_price=Decimal(lot.buy_price),
            purchase_date=lot.purchase_date,
        )


# =============================================================================
# VALUATION
# =============================================================================

@dataclass(frozen=True)
class Holding:
    """
    One lot enriched with current market data.

    Attributes:
        lot: The lot being valued
        current_price: Latest price (None when the provider could not supply it)
        cost: quantity * buy_price
        current_value: quantity * current_price (None when price unknown)
        gain_loss: current_value - cost (None when price unknown)
        gain_loss_percent: gain_loss / cost * 100 (None when price unknown or cost <= 0)
    """

    lot: LotSnapshot
    current_price: Decimal | None
    cost: Decimal
    current_value: Decimal | None
    gain_loss: Decimal | None
    gain_loss_percent: Decimal | None

    @property
    def symbol(self) -> str:
        return self.lot.symbol

    @property
    def is_priced(self) -> bool:
        return self.current_price is not None


@dataclass(frozen=True)
class PortfolioSummary:
    """
    Portfolio-level aggregates.

    Unpriced holdings contribute zero to total_value; priced_holdings_count
    lets a client tell "worth $0" from "value partly unknown".

    Attributes:
        total_value: Sum of known current values
        total_cost: Sum of all costs (always defined)
        total_gain_loss: total_value - total_cost
        total_gain_loss_percent: Percent of total_cost (0 when total_cost <= 0)
        holdings_count: Number of lots
        priced_holdings_count: Number of lots with a known price
    """

    total_value: Decimal
    total_cost: Decimal
    total_gain_loss: Decimal
    total_gain_loss_percent: Decimal
    holdings_count: int
    priced_holdings_count: int

    @property
    def has_complete_data(self) -> bool:
        return self.priced_holdings_count == self.holdings_count


@dataclass
class PortfolioValuation:
    """
    Complete valuation: holdings in input order plus the summary.

    Attributes:
        holdings: One Holding per input lot, same order
        summary: Aggregates over holdings
        warnings: One entry per symbol that could not be priced
    """

    holdings: list[Holding]
    summary: PortfolioSummary
    warnings: list[str] = field(default_factory=list)


# =============================================================================
# HISTORY
# =============================================================================

class Period(str, enum.Enum):
    """
    Supported history look-back windows, counted back from today on the calendar.
    """

    ONE_MONTH = "1M"
    THREE_MONTHS = "3M"
    SIX_MONTHS = "6M"
    ONE_YEAR = "1Y"
    TWO_YEARS = "2Y"

    @property
    def months(self) -> int:
        return _PERIOD_MONTHS[self]

    def start_date(self, today: date) -> date:
        """First date of the window ending on ``today``."""
        return subtract_months(today, self.months)

    @classmethod
    def parse(cls, token: str | Period) -> Period:
        """
        Resolve a period token such as "1Y" (case-insensitive, trimmed).

        Raises:
            InvalidPeriodError: Token is not a supported period. There is no
                fallback to a default period.
        """
        if isinstance(token, cls):
            return token
        normalized = str(token or "").strip().upper()
        try:
            return cls(normalized)
        except ValueError:
            raise InvalidPeriodError(str(token), valid=tuple(p.value for p in cls)) from None


_PERIOD_MONTHS: dict[Period, int] = {
    Period.ONE_MONTH: 1,
    Period.THREE_MONTHS: 3,
    Period.SIX_MONTHS: 6,
    Period.ONE_YEAR: 12,
    Period.TWO_YEARS: 24,
}


@dataclass(frozen=True)
class ValuePoint:
    """Portfolio value on one trading date."""

    date: date
    value: Decimal
