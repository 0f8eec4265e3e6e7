# portfolio_tracker/services/settings_normalizer.py
"""
Conversion between stored settings rows and typed settings.

The settings table is a flat string -> string store with snake_case keys.
Clients see camelCase keys with booleans, numbers and strings. This module
converts between the two and nothing else.

Key mapping:
    A fixed table, not a case-conversion rule. Every supported key appears
    once in each direction, so the mapping is a bijection. An unknown typed
    key is rejected; an unknown stored key is skipped on read.

Value coercion (read, stored -> typed):
    "true" / "false"            -> True / False
    full decimal number text    -> float ("12", "-0.5", "1e3"; no residue)
    anything else               -> unchanged string

Value coercion (write, typed -> stored):
    bool                        -> "true" / "false"
    int / float / Decimal       -> number text (must be finite)
    dict / list                 -> canonical JSON text
    str                         -> unchanged

Round trip:
    to_typed(to_stored(v)) == v for every supported key and every bool,
    number, or string that does not itself read as a bool or number.
    JSON text written for a dict/list is NOT parsed back on read; it comes
    back as a string.

Usage:
    from portfolio_tracker.services.settings_normalizer import to_typed, to_stored

    to_typed({"dark_mode": "true", "refresh_interval": "30"})
    # {"darkMode": True, "refreshInterval": 30.0}
"""

from __future__ import annotations

import json
import logging
import math
import re
from decimal import Decimal
from typing import Any, Mapping

from portfolio_tracker.services.exceptions import ValidationError

logger = logging.getLogger(__name__)


# =============================================================================
# KEY TABLE
# =============================================================================

STORED_TO_TYPED_KEYS: dict[str, str] = {
    "currency": "currency",
    "dark_mode": "darkMode",
    "pro_mode": "proMode",
    "theme": "theme",
    "refresh_interval": "refreshInterval",
    "default_period": "defaultPeriod",
}

TYPED_TO_STORED_KEYS: dict[str, str] = {
    typed: stored for stored, typed in STORED_TO_TYPED_KEYS.items()
}

if len(TYPED_TO_STORED_KEYS) != len(STORED_TO_TYPED_KEYS):
    raise RuntimeError("settings key table is not one-to-one")

SUPPORTED_TYPED_KEYS: tuple[str, ...] = tuple(TYPED_TO_STORED_KEYS)

# Whole-string decimal number, optional sign and exponent
_NUMBER_PATTERN = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")

TypedValue = str | float | bool


# =============================================================================
# KEYS
# =============================================================================

def typed_key(stored_key: str) -> str:
    """
    Map a stored key to its typed form.

    Raises:
        ValidationError: Key is not in the table
    """
    try:
        return STORED_TO_TYPED_KEYS[stored_key]
    except KeyError:
        raise ValidationError(f"Unknown stored setting key: '{stored_key}'", field=stored_key) from None


def stored_key(typed: str) -> str:
    """
    Map a typed key to its stored form.

    Raises:
        ValidationError: Key is not in the table
    """
    try:
        return TYPED_TO_STORED_KEYS[typed]
    except KeyError:
        raise ValidationError(
            f"Unknown setting: '{typed}'. Supported settings: {', '.join(SUPPORTED_TYPED_KEYS)}",
            field=typed,
        ) from None


# =============================================================================
# VALUES
# =============================================================================

def coerce_stored_value(text: str) -> TypedValue:
    """Interpret stored text as bool, float or string."""
    if text == "true":
        return True
    if text == "false":
        return False
    if _NUMBER_PATTERN.match(text):
        return float(text)
    return text


def serialize_value(value: Any, key: str | None = None) -> str:
    """
    Render a typed value as stored text.

    Raises:
        ValidationError: None, a non-finite number, or an unsupported type
    """
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, Decimal)):
        if isinstance(value, Decimal) and not value.is_finite():
            raise ValidationError(f"Setting value must be a finite number, got {value}", field=key)
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValidationError(f"Setting value must be a finite number, got {value}", field=key)
        return repr(value)
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, sort_keys=True, separators=(",", ":"))
    if value is None:
        raise ValidationError("Setting value cannot be null", field=key)
    raise ValidationError(
        f"Unsupported setting value type: {type(value).__name__}", field=key
    )


# =============================================================================
# MAPPINGS
# =============================================================================

def to_typed(stored: Mapping[str, str]) -> dict[str, TypedValue]:
    """
    Convert stored rows to typed settings.

    Stored keys outside the table are skipped with a warning so a stray
    row never breaks reading settings.
    """
    typed: dict[str, TypedValue] = {}
    for key, text in stored.items():
        if key not in STORED_TO_TYPED_KEYS:
            logger.warning(f"Ignoring unknown stored setting '{key}'")
            continue
        typed[STORED_TO_TYPED_KEYS[key]] = coerce_stored_value(text)
    return typed


def to_stored(typed: Mapping[str, Any]) -> dict[str, str]:
    """
    Convert typed settings to stored rows.

    Raises:
        ValidationError: Unknown key or unsupported value
    """
    return {
        stored_key(key): serialize_value(value, key=key)
        for key, value in typed.items()
    }
