# portfolio_tracker/routers/portfolio.py
"""
Portfolio endpoints.

Provides lot management and valuation of the single portfolio:
- GET    /portfolio                    - Holdings at current prices + summary
- POST   /portfolio                    - Record a purchase lot
- PUT    /portfolio/{id}               - Change quantity, buy price or date
- DELETE /portfolio/{id}               - Remove a lot
- GET    /portfolio/history/{period}   - Daily portfolio value (1M..2Y)

Valuation never fails because one symbol cannot be priced: such holdings
come back with null price fields and a warning, and the summary counts
them at zero value.
"""

from decimal import Decimal, ROUND_HALF_UP

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from portfolio_tracker.database import get_db
from portfolio_tracker.dependencies import (
    get_lot_store,
    get_settings_service,
    get_valuation_service,
)
from portfolio_tracker.middleware.rate_limit import (
    limiter,
    RATE_LIMIT_DEFAULT,
    RATE_LIMIT_VALUATION,
    RATE_LIMIT_WRITE,
)
from portfolio_tracker.models import Lot
from portfolio_tracker.schemas.portfolio import (
    DeleteResponse,
    HoldingResponse,
    LotCreate,
    LotResponse,
    LotUpdate,
    PortfolioResponse,
    PortfolioSummaryResponse,
    ValuePointResponse,
)
from portfolio_tracker.services.constants import MONEY_QUANTUM
from portfolio_tracker.services.lot_store import LotChanges, LotStore
from portfolio_tracker.services.settings_service import SettingsService
from portfolio_tracker.services.valuation import ValuationService
from portfolio_tracker.services.valuation.types import Holding, PortfolioSummary, ValuePoint

# =============================================================================
# ROUTER SETUP
# =============================================================================

router = APIRouter(
    prefix="/portfolio",
    tags=["Portfolio"],
)


# =============================================================================
# MAPPER FUNCTIONS (Internal Types -> Pydantic Schemas)
# =============================================================================

def _money(value: Decimal | None) -> Decimal | None:
    """Round to cents for display; None stays None."""
    if value is None:
        return None
    return value.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def _map_lot(lot: Lot) -> LotResponse:
    return LotResponse(
        id=lot.id,
        symbol=lot.symbol,
        quantity=lot.quantity,
        buy_price=lot.buy_price,
        purchase_date=lot.purchase_date,
        created_at=lot.created_at,
    )


def _map_holding(holding: Holding) -> HoldingResponse:
    """Map internal Holding to Pydantic schema."""
    lot = holding.lot
    return HoldingResponse(
        id=lot.id,
        symbol=lot.symbol,
        quantity=lot.quantity,
        buy_price=lot.buy_price,
        purchase_date=lot.purchase_date,
        current_price=holding.current_price,
        cost=_money(holding.cost),
        current_value=_money(holding.current_value),
        gain_loss=_money(holding.gain_loss),
        gain_loss_percent=_money(holding.gain_loss_percent),
    )


def _map_summary(summary: PortfolioSummary) -> PortfolioSummaryResponse:
    return PortfolioSummaryResponse(
        total_value=_money(summary.total_value),
        total_cost=_money(summary.total_cost),
        total_gain_loss=_money(summary.total_gain_loss),
        total_gain_loss_percent=_money(summary.total_gain_loss_percent),
        holdings_count=summary.holdings_count,
        priced_holdings_count=summary.priced_holdings_count,
    )


def _map_value_point(point: ValuePoint) -> ValuePointResponse:
    return ValuePointResponse(date=point.date, value=_money(point.value))


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get(
    "",
    response_model=PortfolioResponse,
    summary="Get holdings and summary",
    response_description="Every lot valued at its latest price",
)
@limiter.limit(RATE_LIMIT_VALUATION)
def get_portfolio(
        request: Request,
        db: Session = Depends(get_db),
        store: LotStore = Depends(get_lot_store),
        service: ValuationService = Depends(get_valuation_service),
        settings_service: SettingsService = Depends(get_settings_service),
) -> PortfolioResponse:
    """
    Value every lot at its symbol's latest price.

    Each distinct symbol is quoted once, concurrently. A symbol whose quote
    cannot be obtained leaves `currentPrice`, `currentValue`, `gainLoss`
    and `gainLossPercent` null on its holdings and adds an entry to
    `warnings`; the request itself still succeeds.

    Money fields and percentages are rounded to cents.
    """
    valuation = service.get_valuation(store.snapshots(db))
    preferences = settings_service.get_preferences(db)

    return PortfolioResponse(
        holdings=[_map_holding(h) for h in valuation.holdings],
        summary=_map_summary(valuation.summary),
        currency=preferences.currency,
        warnings=valuation.warnings,
    )


@router.post(
    "",
    response_model=LotResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a purchase lot",
    response_description="The stored lot",
)
@limiter.limit(RATE_LIMIT_WRITE)
def create_lot(
        request: Request,
        lot: LotCreate,
        db: Session = Depends(get_db),
        store: LotStore = Depends(get_lot_store),
) -> LotResponse:
    """
    Record a purchase.

    - **symbol**: Ticker, stored upper-case (`aapl` -> `AAPL`)
    - **quantity**: Shares bought, > 0
    - **buyPrice**: Unit price paid, > 0
    - **purchaseDate**: Not in the future

    Several lots of the same symbol are kept separately.
    """
    created = store.create(
        db,
        symbol=lot.symbol,
        quantity=lot.quantity,
        buy_price=lot.buy_price,
        purchase_date=lot.purchase_date,
    )
    return _map_lot(created)


@router.get(
    "/history/{period}",
    response_model=list[ValuePointResponse],
    summary="Get portfolio value history",
    response_description="Daily portfolio value, oldest first",
)
@limiter.limit(RATE_LIMIT_VALUATION)
def get_portfolio_history(
        request: Request,
        period: str,
        db: Session = Depends(get_db),
        store: LotStore = Depends(get_lot_store),
        service: ValuationService = Depends(get_valuation_service),
) -> list[ValuePointResponse]:
    """
    Reconstruct the portfolio's value for each trading day of a period.

    **Periods:** `1M`, `3M`, `6M`, `1Y`, `2Y`. Anything else returns 400.

    A lot contributes from its purchase date onward, priced at its
    symbol's close on that exact date. Symbols whose history cannot be
    fetched are left out; days on which nothing is held are omitted.
    """
    # InvalidPeriodError propagates to the global handler (400)
    points = service.get_history(store.snapshots(db), period)
    return [_map_value_point(p) for p in points]


@router.put(
    "/{lot_id}",
    response_model=LotResponse,
    summary="Update a lot",
    response_description="The updated lot",
)
@limiter.limit(RATE_LIMIT_WRITE)
def update_lot(
        request: Request,
        lot_id: int,
        changes: LotUpdate,
        db: Session = Depends(get_db),
        store: LotStore = Depends(get_lot_store),
) -> LotResponse:
    """
    Change the quantity, buy price or purchase date of a lot.

    Omitted fields are left unchanged. The symbol cannot be changed.

    Raises **404** if the lot does not exist.
    """
    updated = store.update(
        db,
        lot_id,
        LotChanges(
            quantity=changes.quantity,
            buy_price=changes.buy_price,
            purchase_date=changes.purchase_date,
        ),
    )
    return _map_lot(updated)


@router.delete(
    "/{lot_id}",
    response_model=DeleteResponse,
    summary="Delete a lot",
)
@limiter.limit(RATE_LIMIT_WRITE)
def delete_lot(
        request: Request,
        lot_id: int,
        db: Session = Depends(get_db),
        store: LotStore = Depends(get_lot_store),
) -> DeleteResponse:
    """
    Remove a lot permanently.

    Raises **404** if the lot does not exist.
    """
    store.delete(db, lot_id)
    return DeleteResponse(success=True, message=f"Lot {lot_id} deleted")


@router.get(
    "/lots",
    response_model=list[LotResponse],
    summary="List lots",
    response_description="Stored lots, newest first",
)
@limiter.limit(RATE_LIMIT_DEFAULT)
def list_lots(
        request: Request,
        db: Session = Depends(get_db),
        store: LotStore = Depends(get_lot_store),
) -> list[LotResponse]:
    """List stored lots without pricing them."""
    return [_map_lot(lot) for lot in store.list(db)]
