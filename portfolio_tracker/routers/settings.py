# portfolio_tracker/routers/settings.py
"""
User settings endpoints.

Settings are a flat object of typed values keyed in camelCase:
- GET  /settings          - All settings (stored values over defaults)
- PUT  /settings          - Update several keys at once, all or nothing
- POST /settings/reset    - Back to defaults
- GET  /settings/{key}    - One setting
- PUT  /settings/{key}    - Update one setting

Supported keys: currency, darkMode, proMode, theme, refreshInterval,
defaultPeriod. Unknown keys and mistyped values are rejected with 422
before anything is written.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, Request
from sqlalchemy.orm import Session

from portfolio_tracker.database import get_db
from portfolio_tracker.dependencies import get_settings_service
from portfolio_tracker.middleware.rate_limit import (
    limiter,
    RATE_LIMIT_DEFAULT,
    RATE_LIMIT_WRITE,
)
from portfolio_tracker.schemas.settings import (
    SettingValue,
    SettingValueRequest,
    SettingValueResponse,
)
from portfolio_tracker.services.settings_service import SettingsService


# =============================================================================
# ROUTER SETUP
# =============================================================================

router = APIRouter(
    prefix="/settings",
    tags=["Settings"],
)


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get(
    "",
    response_model=dict[str, SettingValue],
    summary="Get all settings",
)
@limiter.limit(RATE_LIMIT_DEFAULT)
def get_settings(
        request: Request,
        db: Session = Depends(get_db),
        service: SettingsService = Depends(get_settings_service),
) -> dict[str, SettingValue]:
    """
    Every supported setting with its typed value.

    Keys never written return their defaults.
    """
    return service.get_all(db)


@router.put(
    "",
    response_model=dict[str, SettingValue],
    summary="Update several settings",
    response_description="All settings after the update",
)
@limiter.limit(RATE_LIMIT_WRITE)
def update_settings(
        request: Request,
        changes: dict[str, Any] = Body(
            ...,
            examples=[{"currency": "EUR", "darkMode": True, "refreshInterval": 30}],
        ),
        db: Session = Depends(get_db),
        service: SettingsService = Depends(get_settings_service),
) -> dict[str, SettingValue]:
    """
    Apply a batch of settings atomically.

    Every key and value is checked first; if any is invalid nothing is
    stored. Keys absent from the body keep their current value.
    """
    result = service.update(db, changes)
    return result.settings


@router.post(
    "/reset",
    response_model=dict[str, SettingValue],
    summary="Reset settings to defaults",
)
@limiter.limit(RATE_LIMIT_WRITE)
def reset_settings(
        request: Request,
        db: Session = Depends(get_db),
        service: SettingsService = Depends(get_settings_service),
) -> dict[str, SettingValue]:
    """Discard every stored setting."""
    return service.reset(db)


@router.get(
    "/{key}",
    response_model=SettingValueResponse,
    summary="Get one setting",
)
@limiter.limit(RATE_LIMIT_DEFAULT)
def get_setting(
        request: Request,
        key: str,
        db: Session = Depends(get_db),
        service: SettingsService = Depends(get_settings_service),
) -> SettingValueResponse:
    """Raises **404** for unsupported keys."""
    return SettingValueResponse(key=key, value=service.get(db, key))


@router.put(
    "/{key}",
    response_model=SettingValueResponse,
    summary="Update one setting",
)
@limiter.limit(RATE_LIMIT_WRITE)
def update_setting(
        request: Request,
        key: str,
        body: SettingValueRequest,
        db: Session = Depends(get_db),
        service: SettingsService = Depends(get_settings_service),
) -> SettingValueResponse:
    """
    Set one setting.

    Raises **404** for unsupported keys and **422** for invalid values.
    """
    return SettingValueResponse(key=key, value=service.set(db, key, body.value))
