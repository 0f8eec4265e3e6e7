# portfolio_tracker/services/settings_service.py
"""
Settings Service for the single user's preferences.

This service handles:
- Reading settings merged over defaults
- Batch updates applied in one transaction (all keys or none)
- Single-key read and update
- Reset to defaults

Design Principles:
- Stored rows hold text; typing is done by settings_normalizer
- No HTTP Knowledge: Raises domain exceptions, not HTTPException
- No global state: Consumers receive a UserPreferences value object

Default Settings:
- currency: "USD"
- darkMode: False
- proMode: False
- theme: "light"
- refreshInterval: 60.0 (seconds)
- defaultPeriod: "1M"
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from sqlalchemy import select, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from portfolio_tracker.models import UserSetting
from portfolio_tracker.services.exceptions import SettingNotFoundError, ValidationError
from portfolio_tracker.services.settings_normalizer import (
    SUPPORTED_TYPED_KEYS,
    TYPED_TO_STORED_KEYS,
    TypedValue,
    to_stored,
    to_typed,
)
from portfolio_tracker.services.valuation.types import Period

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

DEFAULT_SETTINGS: dict[str, TypedValue] = {
    "currency": "USD",
    "darkMode": False,
    "proMode": False,
    "theme": "light",
    "refreshInterval": 60.0,
    "defaultPeriod": Period.ONE_MONTH.value,
}

# Expected Python type per typed key
SETTING_TYPES: dict[str, type | tuple[type, ...]] = {
    "currency": str,
    "darkMode": bool,
    "proMode": bool,
    "theme": str,
    "refreshInterval": (int, float),
    "defaultPeriod": str,
}

VALID_THEMES = ("light", "dark", "system")


def has_expected_type(key: str, value: Any) -> bool:
    expected = SETTING_TYPES[key]
    # bool is an int subclass; only bool settings accept it
    if isinstance(value, bool) and expected is not bool:
        return False
    return isinstance(value, expected)


# =============================================================================
# RESULT TYPES
# =============================================================================

@dataclass(frozen=True)
class UserPreferences:
    """Typed, read-only view of the settings handed to consumers."""

    currency: str
    dark_mode: bool
    pro_mode: bool
    theme: str
    refresh_interval: float
    default_period: str

    @classmethod
    def from_typed(cls, typed: Mapping[str, TypedValue]) -> UserPreferences:
        """Values of the wrong type (a stray stored row) fall back to the default."""
        merged = dict(DEFAULT_SETTINGS)
        for key, value in typed.items():
            if key in SETTING_TYPES and not has_expected_type(key, value):
                logger.warning(f"Ignoring setting {key}={value!r}: expected {SETTING_TYPES[key]}")
                continue
            merged[key] = value
        return cls(
            currency=str(merged["currency"]),
            dark_mode=bool(merged["darkMode"]),
            pro_mode=bool(merged["proMode"]),
            theme=str(merged["theme"]),
            refresh_interval=float(merged["refreshInterval"]),
            default_period=str(merged["defaultPeriod"]),
        )


@dataclass
class SettingsUpdateResult:
    """Result of updating settings."""

    settings: dict[str, TypedValue]
    changed_fields: list[str]


# =============================================================================
# SERVICE
# =============================================================================

class SettingsService:
    """
    Service for reading and writing settings.

    Every public method takes the request's session; writes commit or roll
    back inside the call.
    """

    def __init__(self) -> None:
        logger.info("SettingsService initialized")

    # =========================================================================
    # READ
    # =========================================================================

    def get_all(self, db: Session) -> dict[str, TypedValue]:
        """Typed settings: stored values over defaults."""
        return {**DEFAULT_SETTINGS, **to_typed(self._load_stored(db))}

    def get(self, db: Session, key: str) -> TypedValue:
        """
        Typed value of one setting.

        Raises:
            SettingNotFoundError: Key is not a supported setting
        """
        if key not in TYPED_TO_STORED_KEYS:
            raise SettingNotFoundError(key)
        return self.get_all(db)[key]

    def get_preferences(self, db: Session) -> UserPreferences:
        return UserPreferences.from_typed(self.get_all(db))

    # =========================================================================
    # WRITE
    # =========================================================================

    def update(self, db: Session, changes: Mapping[str, Any]) -> SettingsUpdateResult:
        """
        Apply several settings in one transaction.

        Every key and value is validated before anything is written, and
        the writes share a single commit; on any failure the session is
        rolled back and no key changes.

        Raises:
            ValidationError: Unknown key or invalid value
        """
        if not changes:
            return SettingsUpdateResult(settings=self.get_all(db), changed_fields=[])

        for key, value in changes.items():
            self._validate(key, value)
        stored_changes = to_stored(changes)

        current = self._load_stored(db)
        changed_fields = [
            key for key, stored in zip(changes, stored_changes.values())
            if current.get(TYPED_TO_STORED_KEYS[key]) != stored
        ]

        try:
            for setting_key, setting_value in stored_changes.items():
                db.merge(UserSetting(setting_key=setting_key, setting_value=setting_value))
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.error(f"Settings update rolled back: {list(changes)}", exc_info=True)
            raise

        if changed_fields:
            logger.info(f"Settings updated: {changed_fields}")

        return SettingsUpdateResult(settings=self.get_all(db), changed_fields=changed_fields)

    def set(self, db: Session, key: str, value: Any) -> TypedValue:
        """
        Update a single setting.

        Raises:
            SettingNotFoundError: Key is not a supported setting
            ValidationError: Invalid value
        """
        if key not in TYPED_TO_STORED_KEYS:
            raise SettingNotFoundError(key)
        return self.update(db, {key: value}).settings[key]

    def reset(self, db: Session) -> dict[str, TypedValue]:
        """Delete all stored settings so defaults apply again."""
        try:
            db.execute(delete(UserSetting))
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise

        logger.info("Settings reset to defaults")
        return dict(DEFAULT_SETTINGS)

    # =========================================================================
    # PRIVATE METHODS
    # =========================================================================

    def _load_stored(self, db: Session) -> dict[str, str]:
        rows = db.scalars(select(UserSetting)).all()
        return {row.setting_key: row.setting_value for row in rows}

    def _validate(self, key: str, value: Any) -> None:
        if key not in SETTING_TYPES:
            raise ValidationError(
                f"Unknown setting: '{key}'. Supported settings: {', '.join(SUPPORTED_TYPED_KEYS)}",
                field=key,
            )

        expected = SETTING_TYPES[key]
        if isinstance(value, bool) and expected is not bool:
            raise ValidationError(f"Setting '{key}' does not accept a boolean", field=key)
        if not has_expected_type(key, value):
            raise ValidationError(
                f"Setting '{key}' expects {self._type_name(expected)}, got {type(value).__name__}",
                field=key,
            )

        if key == "currency" and not (len(value) == 3 and value.isalpha() and value.isupper()):
            raise ValidationError("currency must be a 3-letter upper-case code", field=key)
        if key == "theme" and value not in VALID_THEMES:
            raise ValidationError(f"theme must be one of: {', '.join(VALID_THEMES)}", field=key)
        if key == "refreshInterval" and value <= 0:
            raise ValidationError("refreshInterval must be positive", field=key)
        if key == "defaultPeriod" and value not in {p.value for p in Period}:
            raise ValidationError(
                f"defaultPeriod must be one of: {', '.join(p.value for p in Period)}", field=key
            )

    @staticmethod
    def _type_name(expected: type | tuple[type, ...]) -> str:
        if expected is bool:
            return "a boolean"
        if expected is str:
            return "a string"
        return "a number"
