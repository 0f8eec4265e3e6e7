# portfolio_tracker/services/valuation/__init__.py
"""
Valuation Package.

This package provides portfolio valuation capabilities:
- Holdings and summary at current prices (valuate_portfolio)
- Portfolio value history for a look-back period (reconstruct_history)

Usage:
    from portfolio_tracker.services.valuation import ValuationService

    service = ValuationService(provider, max_workers=4, fetch_timeout=10)

    valuation = service.get_valuation(lots)
    history = service.get_history(lots, "1Y")

Architecture:
    valuation/
    ├── __init__.py      # This file - package exports
    ├── types.py         # Internal data classes
    ├── calculators.py   # Per-holding and summary formulas
    ├── engine.py        # valuate_portfolio
    ├── history.py       # reconstruct_history
    └── service.py       # ValuationService (orchestrator)

Data Flow:
    Lots → unique symbols → fetch_per_symbol(quote) → prices
    Lot + price → HoldingCalculator → Holding
    Holdings → SummaryCalculator → PortfolioSummary
    Lots + per-symbol closes → reconstruct_history → ValuePoints
"""

from portfolio_tracker.services.valuation.calculators import (
    CostCalculator,
    ValueCalculator,
    GainLossCalculator,
    HoldingCalculator,
    SummaryCalculator,
)
from portfolio_tracker.services.valuation.engine import valuate_portfolio
from portfolio_tracker.services.fetcher import FetchOutcome, fetch_per_symbol
from portfolio_tracker.services.valuation.history import reconstruct_history
from portfolio_tracker.services.valuation.service import ValuationService
from portfolio_tracker.services.valuation.types import (
    LotSnapshot,
    Holding,
    PortfolioSummary,
    PortfolioValuation,
    Period,
    ValuePoint,
)

__all__ = [
    # Main service
    "ValuationService",
    "valuate_portfolio",
    "reconstruct_history",

    # Data types
    "LotSnapshot",
    "Holding",
    "PortfolioSummary",
    "PortfolioValuation",
    "Period",
    "ValuePoint",

    # Building blocks (for testing)
    "CostCalculator",
    "ValueCalculator",
    "GainLossCalculator",
    "HoldingCalculator",
    "SummaryCalculator",
    "FetchOutcome",
    "fetch_per_symbol",
]
