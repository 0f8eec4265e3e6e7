# tests/routers/test_settings_api.py
"""
Integration tests for Settings API endpoints.

These tests verify:
- GET /settings returns defaults until something is stored
- PUT /settings applies a batch all or nothing
- POST /settings/reset
- GET / PUT /settings/{key}
"""

import pytest

from portfolio_tracker.models import UserSetting

DEFAULTS = {
    "currency": "USD",
    "darkMode": False,
    "proMode": False,
    "theme": "light",
    "refreshInterval": 60,
    "defaultPeriod": "1M",
}


class TestGetSettings:

    def test_defaults(self, client):
        response = client.get("/settings")

        assert response.status_code == 200
        assert response.json() == DEFAULTS

    def test_typed_values_after_update(self, client):
        client.put("/settings", json={"darkMode": True, "refreshInterval": 15})

        data = client.get("/settings").json()

        assert data["darkMode"] is True
        assert data["refreshInterval"] == 15
        assert data["currency"] == "USD"


class TestUpdateSettings:
    """Tests for PUT /settings."""

    def test_batch_update(self, client, db):
        response = client.put("/settings", json={
            "currency": "EUR",
            "darkMode": True,
            "theme": "dark",
        })

        assert response.status_code == 200
        data = response.json()
        assert data["currency"] == "EUR"
        assert data["darkMode"] is True
        assert data["theme"] == "dark"
        assert data["proMode"] is False

        stored = {row.setting_key: row.setting_value for row in db.query(UserSetting).all()}
        assert stored["dark_mode"] == "true"
        assert stored["currency"] == "EUR"

    def test_empty_batch_is_noop(self, client):
        response = client.put("/settings", json={})

        assert response.status_code == 200
        assert response.json() == DEFAULTS

    @pytest.mark.parametrize("changes", [
        {"currency": "EUR", "darkMode": "yes"},
        {"currency": "EUR", "unknownKey": 1},
        {"currency": "EUR", "theme": "neon"},
        {"currency": "EUR", "refreshInterval": 0},
        {"currency": "EUR", "defaultPeriod": "5Y"},
        {"currency": "euro"},
        {"currency": "EUR", "darkMode": None},
    ])
    def test_invalid_batch_writes_nothing(self, client, db, changes):
        response = client.put("/settings", json=changes)

        assert response.status_code == 422
        assert response.json()["error"] == "ValidationError"
        assert client.get("/settings").json() == DEFAULTS
        assert db.query(UserSetting).count() == 0

    def test_non_object_body(self, client):
        response = client.put("/settings", json=["currency", "EUR"])

        assert response.status_code == 422


class TestResetSettings:

    def test_reset(self, client):
        client.put("/settings", json={"currency": "GBP", "proMode": True})

        response = client.post("/settings/reset")

        assert response.status_code == 200
        assert response.json() == DEFAULTS
        assert client.get("/settings").json() == DEFAULTS


class TestSingleSetting:
    """Tests for GET / PUT /settings/{key}."""

    def test_get_default(self, client):
        response = client.get("/settings/theme")

        assert response.status_code == 200
        assert response.json() == {"key": "theme", "value": "light"}

    def test_get_unknown_key(self, client):
        response = client.get("/settings/fontSize")

        assert response.status_code == 404
        assert response.json()["error"] == "SettingNotFoundError"

    def test_set_boolean(self, client):
        response = client.put("/settings/proMode", json={"value": True})

        assert response.status_code == 200
        assert response.json() == {"key": "proMode", "value": True}
        assert client.get("/settings/proMode").json()["value"] is True

    def test_set_number(self, client):
        response = client.put("/settings/refreshInterval", json={"value": 45})

        assert response.status_code == 200
        assert response.json()["value"] == 45

    def test_set_unknown_key(self, client):
        assert client.put("/settings/fontSize", json={"value": 12}).status_code == 404

    def test_set_wrong_type(self, client):
        response = client.put("/settings/darkMode", json={"value": "on"})

        assert response.status_code == 422
        assert response.json()["details"] == {"field": "darkMode"}
