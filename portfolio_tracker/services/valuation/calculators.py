# portfolio_tracker/services/valuation/calculators.py
"""
Point-in-time valuation calculators.

Each calculator is stateless and does one piece of arithmetic, so every
formula can be tested in isolation. The engine composes them.

Design Principles:
- Single Responsibility: One formula per calculator
- Pure: No I/O, no logging, inputs are never mutated
- Decimal in, Decimal out, no rounding (presentation rounds)
- None propagates: an unknown price yields unknown value and gain/loss
"""

from __future__ import annotations

from decimal import Decimal

from portfolio_tracker.services.valuation.types import (
    Holding,
    LotSnapshot,
    PortfolioSummary,
)

ZERO = Decimal("0")
HUNDRED = Decimal("100")


# =============================================================================
# COST CALCULATOR
# =============================================================================

class CostCalculator:
    """
    Cost of a lot.

    Formula:
        cost = quantity × buy_price
    """

    def calculate(self, lot: LotSnapshot) -> Decimal:
        return lot.quantity * lot.buy_price


# =============================================================================
# VALUE CALCULATOR
# =============================================================================

class ValueCalculator:
    """
    Current market value of a lot.

    Formula:
        current_value = quantity × current_price

    Returns None when the price is unknown.
    """

    def calculate(self, lot: LotSnapshot, current_price: Decimal | None) -> Decimal | None:
        if current_price is None:
            return None
        return lot.quantity * current_price


# =============================================================================
# GAIN/LOSS CALCULATOR
# =============================================================================

class GainLossCalculator:
    """
    Unrealized gain or loss of a lot.

    Formula:
        gain_loss = current_value - cost
        gain_loss_percent = (gain_loss / cost) × 100

    Note:
        Both are None if the current value is unknown. The percentage is
        also None when cost <= 0, so it is never infinite or NaN.
    """

    def calculate(
            self,
            cost: Decimal,
            current_value: Decimal | None,
    ) -> tuple[Decimal | None, Decimal | None]:
        """
        Returns:
            Tuple of (amount, percentage)
        """
        if current_value is None:
            return None, None

        gain_loss = current_value - cost

        if cost <= ZERO:
            return gain_loss, None

        return gain_loss, (gain_loss / cost) * HUNDRED


# =============================================================================
# HOLDING CALCULATOR
# =============================================================================

class HoldingCalculator:
    """Combines cost, value and gain/loss into a Holding."""

    def __init__(self) -> None:
        self._cost = CostCalculator()
        self._value = ValueCalculator()
        self._gain_loss = GainLossCalculator()

    def calculate(self, lot: LotSnapshot, current_price: Decimal | None) -> Holding:
        cost = self._cost.calculate(lot)
        current_value = self._value.calculate(lot, current_price)
        gain_loss, gain_loss_percent = self._gain_loss.calculate(cost, current_value)

        return Holding(
            lot=lot,
            current_price=current_price,
            cost=cost,
            current_value=current_value,
            gain_loss=gain_loss,
            gain_loss_percent=gain_loss_percent,
        )


# =============================================================================
# SUMMARY CALCULATOR
# =============================================================================

class SummaryCalculator:
    """
    Portfolio aggregates over holdings.

    Formula:
        total_cost = Σ cost
        total_value = Σ current_value (unknown values count as 0)
        total_gain_loss = total_value - total_cost
        total_gain_loss_percent = total_gain_loss / total_cost × 100, or 0 when total_cost <= 0

    An empty list yields all zeros.
    """

    def calculate(self, holdings: list[Holding]) -> PortfolioSummary:
        total_cost = sum((h.cost for h in holdings), ZERO)
        total_value = sum(
            (h.current_value for h in holdings if h.current_value is not None),
            ZERO,
        )
        total_gain_loss = total_value - total_cost

        if total_cost > ZERO:
            total_gain_loss_percent = (total_gain_loss / total_cost) * HUNDRED
        else:
            total_gain_loss_percent = ZERO

        return PortfolioSummary(
            total_value=total_value,
            total_cost=total_cost,
            total_gain_loss=total_gain_loss,
            total_gain_loss_percent=total_gain_loss_percent,
            holdings_count=len(holdings),
            priced_holdings_count=sum(1 for h in holdings if h.is_priced),
        )
