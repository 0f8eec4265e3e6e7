# portfolio_tracker/schemas/settings.py
"""
Pydantic schemas for user settings.

Settings travel as a flat JSON object with camelCase keys
(``{"currency": "USD", "darkMode": true, "refreshInterval": 30}``).
Key and value checks live in the settings service so the same rules apply
to batch and single-key updates.
"""

from pydantic import Field

from portfolio_tracker.schemas.portfolio import CamelModel

SettingValue = bool | float | str


class SettingValueRequest(CamelModel):
    """Body of a single-setting update."""

    # bool first so JSON true/false is not coerced to a number or string
    value: SettingValue = Field(..., description="New value for the setting")


class SettingValueResponse(CamelModel):
    """One setting and its typed value."""

    key: str
    value: SettingValue

