# tests/conftest.py
"""
Pytest configuration and fixtures.

This module provides shared fixtures for all tests:
- Environment for the application under test (in-memory SQLite, no rate limits)
- Database session fixtures
- Mock quote provider
- TestClient wired to the mock provider
- Sample data factories
"""

import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import threading
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from portfolio_tracker.database import get_db
from portfolio_tracker.dependencies import (
    get_market_data_provider,
    get_valuation_service,
)
from portfolio_tracker.main import app
from portfolio_tracker.models import Base, Lot
from portfolio_tracker.services.exceptions import TickerNotFoundError
from portfolio_tracker.services.market_data.base import (
    HistoricalPricesResult,
    MarketDataProvider,
    OHLCVData,
    Quote,
)
from portfolio_tracker.services.valuation.service import ValuationService
from portfolio_tracker.services.valuation.types import LotSnapshot


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture(scope="function")
def db_engine():
    """Create an in-memory SQLite database engine for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def db(db_engine) -> Iterator[Session]:
    """Create a database session for testing."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


# =============================================================================
# MOCK MARKET DATA PROVIDER
# =============================================================================

class MockMarketDataProvider(MarketDataProvider):
    """
    Mock implementation of MarketDataProvider for testing.

    Goes through the real base class, so symbol normalization, retries and
    the circuit breaker behave as in production (without retry waits).
    Unknown symbols raise TickerNotFoundError.
    """

    RETRY_MIN_WAIT = 0
    RETRY_MAX_WAIT = 0

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._prices: dict[str, Decimal] = {}
        self._errors: dict[str, Exception] = {}
        self._histories: dict[str, list[OHLCVData]] = {}
        self._lock = threading.Lock()
        self.quote_calls: list[str] = []
        self.history_calls: list[tuple[str, date, date]] = []
        self.today = date(2024, 6, 28)

    @property
    def name(self) -> str:
        return "mock"

    def set_price(self, symbol: str, price: Decimal | str) -> None:
        """Configure the current price of a symbol."""
        self._prices[symbol.upper()] = Decimal(str(price))

    def set_error(self, symbol: str, error: Exception) -> None:
        """Make every fetch for a symbol raise ``error``."""
        self._errors[symbol.upper()] = error

    def set_history(self, symbol: str, closes: dict[date, Decimal | str]) -> None:
        """Configure daily closes for a symbol."""
        self._histories[symbol.upper()] = [
            make_bar(d, close) for d, close in sorted(closes.items())
        ]

    def _fetch_quote(self, symbol: str) -> Quote:
        with self._lock:
            self.quote_calls.append(symbol)
        if symbol in self._errors:
            raise self._errors[symbol]
        if symbol not in self._prices:
            raise TickerNotFoundError(ticker=symbol, provider=self.name)
        return Quote(symbol=symbol, current_price=self._prices[symbol], last_updated=self.today)

    def _fetch_history(self, symbol: str, start_date: date, end_date: date) -> HistoricalPricesResult:
        with self._lock:
            self.history_calls.append((symbol, start_date, end_date))
        if symbol in self._errors:
            raise self._errors[symbol]
        if symbol not in self._histories:
            raise TickerNotFoundError(ticker=symbol, provider=self.name)
        return HistoricalPricesResult(
            symbol=symbol,
            prices=list(self._histories[symbol]),
            from_date=start_date,
            to_date=end_date,
        )


@pytest.fixture
def mock_provider() -> MockMarketDataProvider:
    """Create a fresh mock provider for each test."""
    return MockMarketDataProvider()


@pytest.fixture
def valuation_service(mock_provider: MockMarketDataProvider) -> ValuationService:
    """ValuationService over the mock provider, fetching concurrently."""
    return ValuationService(provider=mock_provider, max_workers=4, fetch_timeout=5.0)


# =============================================================================
# API CLIENT
# =============================================================================

@pytest.fixture(scope="function")
def client(
        db: Session,
        mock_provider: MockMarketDataProvider,
        valuation_service: ValuationService,
) -> Iterator[TestClient]:
    """TestClient with the test database and the mock provider."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_market_data_provider] = lambda: mock_provider
    app.dependency_overrides[get_valuation_service] = lambda: valuation_service

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


# =============================================================================
# SAMPLE DATA FACTORIES
# =============================================================================

def make_bar(day: date, close: Decimal | str) -> OHLCVData:
    """Daily bar whose open/high/low equal the close."""
    price = Decimal(str(close))
    return OHLCVData(date=day, open=price, high=price, low=price, close=price, volume=1000)


def make_lot(
        symbol: str = "AAPL",
        quantity: Decimal | str = "10",
        buy_price: Decimal | str = "100",
        purchase_date: date = date(2024, 1, 2),
        lot_id: int | None = None,
) -> LotSnapshot:
    """Factory for in-memory lot snapshots."""
    return LotSnapshot(
        id=lot_id,
        symbol=symbol,
        quantity=Decimal(str(quantity)),
        buy_price=Decimal(str(buy_price)),
        purchase_date=purchase_date,
    )


def create_lot(
        db: Session,
        symbol: str = "AAPL",
        quantity: Decimal | str = "10",
        buy_price: Decimal | str = "100",
        purchase_date: date = date(2024, 1, 2),
) -> Lot:
    """Factory for stored lots."""
    lot = Lot(
        symbol=symbol,
        quantity=Decimal(str(quantity)),
        buy_price=Decimal(str(buy_price)),
        purchase_date=purchase_date,
    )
    db.add(lot)
    db.commit()
    db.refresh(lot)
    return lot


def weekdays(start: date, end: date) -> list[date]:
    """Mon-Fri dates in [start, end]."""
    days = []
    current = start
    while current <= end:
        if current.weekday() < 5:
            days.append(current)
        current += timedelta(days=1)
    return days
