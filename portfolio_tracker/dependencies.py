# portfolio_tracker/dependencies.py
"""
Dependency injection module for FastAPI services.

This module provides singleton service instances that are shared across
all requests. The quote provider in particular must be shared so that its
circuit breaker sees every call the application makes.

Services are lazily initialized on first use to avoid import-time side effects.

Usage in routers:
    from portfolio_tracker.dependencies import get_valuation_service, get_lot_store

    @router.get("/portfolio")
    def get_portfolio(
        service: ValuationService = Depends(get_valuation_service),
        store: LotStore = Depends(get_lot_store),
    ):
        ...

Tests replace any of these through ``app.dependency_overrides``.
"""

import logging
from functools import lru_cache

from portfolio_tracker.config import settings
from portfolio_tracker.services.circuit_breaker import CircuitBreaker
from portfolio_tracker.services.exceptions import TickerNotFoundError
from portfolio_tracker.services.lot_store import LotStore
from portfolio_tracker.services.market_data.base import MarketDataProvider
from portfolio_tracker.services.market_data.yahoo import YahooFinanceProvider
from portfolio_tracker.services.settings_service import SettingsService
from portfolio_tracker.services.valuation.service import ValuationService

logger = logging.getLogger(__name__)


# =============================================================================
# SINGLETON SERVICE INSTANCES
# =============================================================================
# Order matters: define dependencies before dependents
# 1. get_market_data_provider (no deps)
# 2. get_valuation_service (depends on provider)
# 3. get_lot_store, get_settings_service (no deps)


@lru_cache(maxsize=1)
def get_market_data_provider() -> MarketDataProvider:
    """
    Get the singleton quote provider.

    The provider owns the circuit breaker, so one instance keeps breaker
    state consistent across the valuation, history and quote endpoints.
    """
    logger.debug("Initializing singleton YahooFinanceProvider")
    breaker = CircuitBreaker(
        name="yahoo-quotes",
        failure_threshold=settings.quote_circuit_failure_threshold,
        recovery_timeout=settings.quote_circuit_recovery_timeout,
        excluded_exceptions=(TickerNotFoundError,),
    )
    return YahooFinanceProvider(
        timeout=settings.quote_fetch_timeout,
        circuit_breaker=breaker,
        retry_attempts=settings.quote_retry_attempts,
    )


@lru_cache(maxsize=1)
def get_valuation_service() -> ValuationService:
    """
    Get the singleton ValuationService instance.

    Per-symbol fetches run on up to QUOTE_MAX_CONCURRENCY threads.
    """
    logger.debug("Initializing singleton ValuationService")
    return ValuationService(
        provider=get_market_data_provider(),
        max_workers=settings.quote_max_concurrency,
        fetch_timeout=settings.quote_fetch_timeout,
    )


@lru_cache(maxsize=1)
def get_lot_store() -> LotStore:
    """Get the singleton LotStore instance."""
    logger.debug("Initializing singleton LotStore")
    return LotStore()


@lru_cache(maxsize=1)
def get_settings_service() -> SettingsService:
    """Get the singleton SettingsService instance."""
    logger.debug("Initializing singleton SettingsService")
    return SettingsService()


def clear_service_caches() -> None:
    """
    Clear all service caches.

    Useful for testing or when you need to reset state.
    """
    get_market_data_provider.cache_clear()
    get_valuation_service.cache_clear()
    get_lot_store.cache_clear()
    get_settings_service.cache_clear()
    logger.info("Cleared all service singleton caches")
