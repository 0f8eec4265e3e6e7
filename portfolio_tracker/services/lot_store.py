# portfolio_tracker/services/lot_store.py
"""
Lot Store - durable CRUD for purchase lots.

This service handles:
- Creating lots (symbol normalized, amounts and date validated)
- Listing lots, newest first
- Partial updates of quantity, buy price and purchase date
- Deleting lots

Design Principles:
- CRUD only: No pricing or valuation logic lives here
- No HTTP Knowledge: Raises LotNotFoundError / ValidationError
- Snapshots out: Valuation receives LotSnapshot copies, never ORM rows
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from portfolio_tracker.models import Lot
from portfolio_tracker.schemas.validators import (
    validate_positive,
    validate_purchase_date,
    validate_symbol,
)
from portfolio_tracker.services.exceptions import LotNotFoundError, ValidationError
from portfolio_tracker.services.valuation.types import LotSnapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LotChanges:
    """Fields of a lot that may change after creation; None means unchanged."""

    quantity: Decimal | None = None
    buy_price: Decimal | None = None
    purchase_date: date | None = None


class LotStore:
    """
    Service for storing purchase lots.

    Every method takes the request's session and commits its own writes.
    """

    def __init__(self) -> None:
        logger.info("LotStore initialized")

    # =========================================================================
    # READ
    # =========================================================================

    def list(self, db: Session) -> list[Lot]:
        """All lots, most recently created first."""
        return list(db.scalars(
            select(Lot).order_by(Lot.created_at.desc(), Lot.id.desc())
        ).all())

    def snapshots(self, db: Session) -> list[LotSnapshot]:
        """Read-only copies of all lots, in list() order."""
        return [LotSnapshot.from_model(lot) for lot in self.list(db)]

    def get(self, db: Session, lot_id: int) -> Lot:
        """
        Raises:
            LotNotFoundError: No lot with this id
        """
        lot = db.get(Lot, lot_id)
        if lot is None:
            raise LotNotFoundError(lot_id)
        return lot

    # =========================================================================
    # WRITE
    # =========================================================================

    def create(
            self,
            db: Session,
            symbol: str,
            quantity: Decimal,
            buy_price: Decimal,
            purchase_date: date,
    ) -> Lot:
        """
        Store a new lot.

        Raises:
            ValidationError: Bad symbol, non-positive amount or future date
        """
        lot = Lot(
            symbol=self._checked(validate_symbol, "symbol", symbol),
            quantity=self._checked(validate_positive, "quantity", quantity, "quantity"),
            buy_price=self._checked(validate_positive, "buy_price", buy_price, "buy_price"),
            purchase_date=self._checked(validate_purchase_date, "purchase_date", purchase_date),
        )
        db.add(lot)
        db.commit()
        db.refresh(lot)

        logger.info(f"Created lot {lot.id}: {lot.symbol} {lot.quantity}@{lot.buy_price}")
        return lot

    def update(self, db: Session, lot_id: int, changes: LotChanges) -> Lot:
        """
        Apply a partial update.

        Raises:
            LotNotFoundError: No lot with this id
            ValidationError: Invalid new value
        """
        lot = self.get(db, lot_id)

        # Validate everything before touching the row
        new_values: dict = {}
        if changes.quantity is not None:
            new_values["quantity"] = self._checked(validate_positive, "quantity", changes.quantity, "quantity")
        if changes.buy_price is not None:
            new_values["buy_price"] = self._checked(validate_positive, "buy_price", changes.buy_price, "buy_price")
        if changes.purchase_date is not None:
            new_values["purchase_date"] = self._checked(validate_purchase_date, "purchase_date", changes.purchase_date)

        for field_name, value in new_values.items():
            setattr(lot, field_name, value)
        changed_fields = list(new_values)

        if changed_fields:
            db.commit()
            db.refresh(lot)
            logger.info(f"Updated lot {lot_id}: {changed_fields}")

        return lot

    def delete(self, db: Session, lot_id: int) -> bool:
        """
        Remove a lot.

        Raises:
            LotNotFoundError: No lot with this id
        """
        lot = self.get(db, lot_id)
        symbol = lot.symbol
        db.delete(lot)
        db.commit()

        logger.info(f"Deleted lot {lot_id} ({symbol})")
        return True

    # =========================================================================
    # PRIVATE METHODS
    # =========================================================================

    @staticmethod
    def _checked(validator, field: str, *args):
        try:
            return validator(*args)
        except (ValueError, ArithmeticError) as e:
            raise ValidationError(str(e), field=field) from e
