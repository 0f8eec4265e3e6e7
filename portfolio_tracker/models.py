# portfolio_tracker/models.py
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import String, Text, Date, DateTime, Numeric, Index
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


class Lot(Base):
    """
    One purchase of a symbol.

    Only quantity, buy_price and purchase_date change after creation.
    Valuation never writes to this table.
    """
    __tablename__ = "lots"

    id: Mapped[int] = mapped_column(primary_key=True)
    symbol: Mapped[str] = mapped_column(String(10), index=True)  # Upper-case ticker
    quantity: Mapped[Decimal] = mapped_column(Numeric(18, 8))  # Fractional shares allowed
    buy_price: Mapped[Decimal] = mapped_column(Numeric(18, 8))  # Unit price paid
    purchase_date: Mapped[date] = mapped_column(Date)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        # History reconstruction scans lots by symbol and purchase date
        Index('ix_lot_symbol_purchase_date', 'symbol', 'purchase_date'),
    )

    def __repr__(self) -> str:
        return f"<Lot id={self.id} {self.symbol} {self.quantity}@{self.buy_price} on {self.purchase_date}>"


class UserSetting(Base):
    """
    Flat key/value settings store.

    Keys are the snake_case stored names; values are always text and are
    converted to typed values by the settings normalizer.
    """
    __tablename__ = "user_settings"

    setting_key: Mapped[str] = mapped_column(String(50), primary_key=True)
    setting_value: Mapped[str] = mapped_column(Text)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
