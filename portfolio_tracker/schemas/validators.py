# portfolio_tracker/schemas/validators.py
"""
Reusable validation functions for Pydantic schemas and the lot store.

This module provides:
- Symbol validation and normalization
- Positive amount validation
- Purchase date validation

Each function raises ValueError, which Pydantic reports as a 422 and the
lot store converts into a ValidationError.
"""

import re
from datetime import date
from decimal import Decimal

# =============================================================================
# CONSTANTS
# =============================================================================

# Symbol: 1-10 chars; letters, digits, dots, dashes, '=' and a leading caret
# (BRK.B, RDS-A, EURUSD=X, ^GSPC)
SYMBOL_PATTERN = re.compile(r'^\^?[A-Z0-9][A-Z0-9.\-=]*$')
SYMBOL_MAX_LENGTH = 10

MIN_VALID_DATE = date(1970, 1, 1)

# Amounts are stored as Numeric(18, 8)
AMOUNT_MAX_DIGITS = 18
AMOUNT_DECIMAL_PLACES = 8
AMOUNT_QUANTUM = Decimal(1).scaleb(-AMOUNT_DECIMAL_PLACES)
AMOUNT_LIMIT = Decimal(10) ** (AMOUNT_MAX_DIGITS - AMOUNT_DECIMAL_PLACES)


# =============================================================================
# SYMBOL VALIDATION
# =============================================================================

def validate_symbol(value: str) -> str:
    """
    Validate and normalize a ticker symbol.

    Returns:
        Upper-cased, trimmed symbol

    Raises:
        ValueError: Empty, longer than 10 characters, or invalid characters
    """
    if value is None:
        raise ValueError("Symbol is required")

    normalized = value.strip().upper()

    if not normalized:
        raise ValueError("Symbol cannot be empty")

    if len(normalized) > SYMBOL_MAX_LENGTH:
        raise ValueError(
            f"Symbol '{normalized}' exceeds maximum length of {SYMBOL_MAX_LENGTH} characters"
        )

    if not SYMBOL_PATTERN.match(normalized):
        raise ValueError(
            f"Invalid symbol format: '{normalized}'. "
            "Use letters, digits, '.', '-', '=' and an optional leading '^'"
        )

    return normalized


# =============================================================================
# AMOUNT VALIDATION
# =============================================================================

def validate_positive(value: Decimal, field_name: str) -> Decimal:
    """
    Require a finite amount greater than zero that the amount columns can
    hold exactly: below 10^10, at most 8 decimal places.

    Raises:
        ValueError: Zero, negative, NaN, infinite, too large or too precise
    """
    if value is None:
        raise ValueError(f"{field_name} is required")
    value = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    if not value.is_finite():
        raise ValueError(f"{field_name} must be a finite number")
    if value <= 0:
        raise ValueError(f"{field_name} must be greater than zero")
    if value >= AMOUNT_LIMIT:
        raise ValueError(f"{field_name} must be less than {AMOUNT_LIMIT:,}")
    if value != value.quantize(AMOUNT_QUANTUM):
        raise ValueError(
            f"{field_name} allows at most {AMOUNT_DECIMAL_PLACES} decimal places"
        )
    return value


# =============================================================================
# DATE VALIDATION
# =============================================================================

def validate_purchase_date(value: date, today: date | None = None) -> date:
    """
    Require a purchase date that is not in the future.

    Raises:
        ValueError: After today or before 1970-01-01
    """
    if value is None:
        raise ValueError("Purchase date is required")

    today = today or date.today()
    if value > today:
        raise ValueError(f"Purchase date {value} cannot be in the future")
    if value < MIN_VALID_DATE:
        raise ValueError(f"Purchase date {value} is before {MIN_VALID_DATE}")

    return value
