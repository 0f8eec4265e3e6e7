# portfolio_tracker/schemas/portfolio.py
"""
Pydantic schemas for lots, holdings and portfolio history.

These schemas define:
- What clients send to create or update a lot (Create / Update)
- What the API returns for lots, holdings, the summary and history

Validation layers:
- Field constraints: type, positivity, length
- Field validators: symbol normalization, amounts that fit the Numeric(18, 8)
  columns, no future purchase dates
- Service: existence checks (LotNotFoundError)

JSON field names are camelCase (buyPrice, gainLossPercent); request bodies
accept camelCase or snake_case. Money fields are rounded to cents when the
response is built, never earlier.
"""

import datetime as dt
from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

from portfolio_tracker.schemas.validators import (
    SYMBOL_MAX_LENGTH,
    validate_positive,
    validate_purchase_date,
    validate_symbol,
)

# Decimal in Python, JSON number on the wire
JsonDecimal = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class CamelModel(BaseModel):
    """Base for API models: camelCase JSON, snake_case Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# =============================================================================
# LOT SCHEMAS
# =============================================================================

class LotCreate(CamelModel):
    """Schema for creating a purchase lot."""

    symbol: str = Field(
        ...,
        min_length=1,
        max_length=SYMBOL_MAX_LENGTH,
        examples=["AAPL", "BRK.B"],
        description="Ticker symbol (stored upper-case)"
    )
    quantity: Decimal = Field(
        ...,
        gt=0,
        examples=[Decimal("10"), Decimal("0.5")],
        description="Shares bought (fractional allowed)"
    )
    buy_price: Decimal = Field(
        ...,
        gt=0,
        examples=[Decimal("150.25")],
        description="Unit price paid"
    )
    purchase_date: dt.date = Field(
        ...,
        examples=["2024-01-15"],
        description="Purchase date (not in the future)"
    )

    @field_validator("symbol")
    @classmethod
    def normalize_symbol(cls, v: str) -> str:
        return validate_symbol(v)

    @field_validator("quantity", "buy_price")
    @classmethod
    def check_amount(cls, v: Decimal, info: ValidationInfo) -> Decimal:
        return validate_positive(v, info.field_name)

    @field_validator("purchase_date")
    @classmethod
    def check_purchase_date(cls, v: dt.date) -> dt.date:
        return validate_purchase_date(v)


class LotUpdate(CamelModel):
    """
    Schema for a partial lot update.

    Only quantity, buy price and purchase date can change; the symbol of a
    lot is fixed. Omitted fields are left unchanged.
    """

    model_config = ConfigDict(extra="forbid")

    quantity: Decimal | None = Field(default=None, gt=0, description="New share count")
    buy_price: Decimal | None = Field(default=None, gt=0, description="New unit price")
    purchase_date: dt.date | None = Field(default=None, description="New purchase date")

    @field_validator("quantity", "buy_price")
    @classmethod
    def check_amount(cls, v: Decimal | None, info: ValidationInfo) -> Decimal | None:
        if v is None:
            return v
        return validate_positive(v, info.field_name)

    @field_validator("purchase_date")
    @classmethod
    def check_purchase_date(cls, v: dt.date | None) -> dt.date | None:
        if v is None:
            return v
        return validate_purchase_date(v)


class LotResponse(CamelModel):
    """A stored lot."""

    id: int
    symbol: str
    quantity: JsonDecimal
    buy_price: JsonDecimal
    purchase_date: dt.date
    created_at: dt.datetime | None = None


class DeleteResponse(CamelModel):
    """Result of deleting a lot."""

    success: bool = True
    message: str


# =============================================================================
# VALUATION SCHEMAS
# =============================================================================

class HoldingResponse(CamelModel):
    """One lot enriched with its current price."""

    id: int | None = Field(..., description="Lot id")
    symbol: str
    quantity: JsonDecimal
    buy_price: JsonDecimal
    purchase_date: dt.date
    current_price: JsonDecimal | None = Field(
        ...,
        description="Latest price (null when the provider could not supply it)"
    )
    cost: JsonDecimal = Field(..., description="quantity × buyPrice")
    current_value: JsonDecimal | None = Field(
        ...,
        description="quantity × currentPrice (null when price unknown)"
    )
    gain_loss: JsonDecimal | None = Field(
        ...,
        description="currentValue - cost (null when price unknown)"
    )
    gain_loss_percent: JsonDecimal | None = Field(
        ...,
        description="gainLoss as a percent of cost (null when price unknown or cost is zero)"
    )


class PortfolioSummaryResponse(CamelModel):
    """Portfolio-level totals."""

    total_value: JsonDecimal = Field(
        ...,
        description="Sum of known current values (unpriced holdings count as 0)"
    )
    total_cost: JsonDecimal = Field(..., description="Sum of all costs")
    total_gain_loss: JsonDecimal = Field(..., description="totalValue - totalCost")
    total_gain_loss_percent: JsonDecimal = Field(
        ...,
        description="totalGainLoss as a percent of totalCost (0 when totalCost is 0)"
    )
    holdings_count: int = Field(..., description="Number of lots")
    priced_holdings_count: int = Field(
        ...,
        description="Number of lots with a known current price"
    )


class PortfolioResponse(CamelModel):
    """Holdings and summary at current prices."""

    holdings: list[HoldingResponse]
    summary: PortfolioSummaryResponse
    currency: str = Field(..., description="Display currency from settings")
    warnings: list[str] = Field(
        default_factory=list,
        description="Symbols that could not be priced"
    )


# =============================================================================
# HISTORY SCHEMAS
# =============================================================================

class ValuePointResponse(CamelModel):
    """Portfolio value on one trading date."""

    date: dt.date
    value: JsonDecimal
