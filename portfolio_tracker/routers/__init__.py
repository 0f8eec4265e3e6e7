# portfolio_tracker/routers/__init__.py
"""
API routers for the Portfolio Tracker.

Each router handles a specific domain:
- portfolio: Lots, valuation and value history
- market_data: Symbol search, quotes and per-symbol history
- settings: User preferences
"""

from portfolio_tracker.routers.market_data import router as market_data_router
from portfolio_tracker.routers.portfolio import router as portfolio_router
from portfolio_tracker.routers.settings import router as settings_router

__all__ = [
    "portfolio_router",
    "market_data_router",
    "settings_router",
]
