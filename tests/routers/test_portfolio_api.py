# tests/routers/test_portfolio_api.py
"""
Integration tests for Portfolio API endpoints.

These tests verify full HTTP request/response cycles for:
- GET /portfolio (Holdings at current prices + summary)
- POST /portfolio (Create lot)
- GET /portfolio/lots (List lots)
- PUT /portfolio/{id} (Update lot)
- DELETE /portfolio/{id} (Delete lot)
- GET /portfolio/history/{period} (Value history)

Quotes come from the mock provider wired in by the ``client`` fixture.
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from portfolio_tracker.models import UserSetting
from portfolio_tracker.services.exceptions import ProviderUnavailableError
from tests.conftest import create_lot, weekdays


# =============================================================================
# HELPERS
# =============================================================================

def lot_payload(**overrides) -> dict:
    payload = {
        "symbol": "AAPL",
        "quantity": "10",
        "buyPrice": "100",
        "purchaseDate": "2024-01-02",
    }
    payload.update(overrides)
    return payload


def holding_for(body: dict, lot_id: int) -> dict:
    return next(h for h in body["holdings"] if h["id"] == lot_id)


# =============================================================================
# GET /portfolio
# =============================================================================

class TestGetPortfolio:
    """Tests for GET /portfolio."""

    def test_empty_portfolio(self, client):
        response = client.get("/portfolio")

        assert response.status_code == 200
        data = response.json()
        assert data["holdings"] == []
        assert data["warnings"] == []
        assert data["summary"] == {
            "totalValue": 0,
            "totalCost": 0,
            "totalGainLoss": 0,
            "totalGainLossPercent": 0,
            "holdingsCount": 0,
            "pricedHoldingsCount": 0,
        }

    def test_two_lots_same_symbol(self, client, db, mock_provider):
        first = create_lot(db, "AAPL", "10", "100")
        second = create_lot(db, "AAPL", "5", "110")
        mock_provider.set_price("AAPL", "150")

        response = client.get("/portfolio")

        assert response.status_code == 200
        data = response.json()

        h1 = holding_for(data, first.id)
        assert h1["currentPrice"] == 150
        assert h1["cost"] == 1000
        assert h1["currentValue"] == 1500
        assert h1["gainLoss"] == 500
        assert h1["gainLossPercent"] == 50

        h2 = holding_for(data, second.id)
        assert h2["cost"] == 550
        assert h2["currentValue"] == 750
        assert h2["gainLoss"] == 200
        assert h2["gainLossPercent"] == pytest.approx(36.36)

        summary = data["summary"]
        assert summary["totalCost"] == 1550
        assert summary["totalValue"] == 2250
        assert summary["totalGainLoss"] == 700
        assert summary["totalGainLossPercent"] == pytest.approx(45.16)
        assert summary["holdingsCount"] == 2
        assert summary["pricedHoldingsCount"] == 2

        # One quote for both lots
        assert mock_provider.quote_calls == ["AAPL"]

    def test_unpriced_symbol_has_null_fields(self, client, db):
        lot = create_lot(db, "TSLA", "2", "200")

        response = client.get("/portfolio")

        assert response.status_code == 200
        data = response.json()
        holding = holding_for(data, lot.id)
        assert holding["cost"] == 400
        assert holding["currentPrice"] is None
        assert holding["currentValue"] is None
        assert holding["gainLoss"] is None
        assert holding["gainLossPercent"] is None

        summary = data["summary"]
        assert summary["totalValue"] == 0
        assert summary["totalCost"] == 400
        assert summary["totalGainLoss"] == -400
        assert summary["totalGainLossPercent"] == -100
        assert summary["pricedHoldingsCount"] == 0

        assert len(data["warnings"]) == 1
        assert data["warnings"][0].startswith("TSLA")

    def test_one_failing_symbol_does_not_fail_request(self, client, db, mock_provider):
        create_lot(db, "AAPL", "1", "100")
        create_lot(db, "MSFT", "1", "300")
        mock_provider.set_price("AAPL", "120")
        mock_provider.set_error("MSFT", ProviderUnavailableError(provider="mock", reason="down"))

        response = client.get("/portfolio")

        assert response.status_code == 200
        summary = response.json()["summary"]
        assert summary["totalValue"] == 120
        assert summary["totalCost"] == 400
        assert summary["pricedHoldingsCount"] == 1

    def test_currency_from_settings(self, client):
        assert client.get("/portfolio").json()["currency"] == "USD"

        client.put("/settings", json={"currency": "EUR"})

        assert client.get("/portfolio").json()["currency"] == "EUR"

    def test_stray_setting_row_does_not_break_valuation(self, client, db):
        db.add(UserSetting(setting_key="refresh_interval", setting_value="soon"))
        db.commit()

        response = client.get("/portfolio")

        assert response.status_code == 200
        assert response.json()["currency"] == "USD"

    def test_money_rounded_to_cents(self, client, db, mock_provider):
        create_lot(db, "AAPL", "3", "10")
        mock_provider.set_price("AAPL", "10.005")

        holding = client.get("/portfolio").json()["holdings"][0]

        # 3 x 10.005 = 30.015 -> 30.02 (half up)
        assert holding["currentValue"] == pytest.approx(30.02)
        assert holding["currentPrice"] == pytest.approx(10.005)


# =============================================================================
# POST /portfolio
# =============================================================================

class TestCreateLot:
    """Tests for POST /portfolio."""

    def test_create_lot(self, client):
        response = client.post("/portfolio", json=lot_payload(symbol="aapl"))

        assert response.status_code == 201
        data = response.json()
        assert data["id"] > 0
        assert data["symbol"] == "AAPL"
        assert data["quantity"] == 10
        assert data["buyPrice"] == 100
        assert data["purchaseDate"] == "2024-01-02"

    def test_accepts_snake_case(self, client):
        response = client.post("/portfolio", json={
            "symbol": "MSFT",
            "quantity": 0.5,
            "buy_price": 300,
            "purchase_date": "2024-01-02",
        })

        assert response.status_code == 201
        assert response.json()["quantity"] == 0.5

    def test_same_symbol_kept_as_separate_lots(self, client):
        client.post("/portfolio", json=lot_payload())
        client.post("/portfolio", json=lot_payload(quantity="5", buyPrice="110"))

        lots = client.get("/portfolio/lots").json()

        assert len(lots) == 2

    @pytest.mark.parametrize("overrides", [
        {"quantity": "0"},
        {"quantity": "-1"},
        {"buyPrice": "0"},
        {"buyPrice": "0.000000001"},
        {"quantity": "1.123456789"},
        {"buyPrice": "10000000000"},
        {"symbol": ""},
        {"symbol": "TOOLONGSYMBOL"},
        {"symbol": "AA PL"},
        {"purchaseDate": (date.today() + timedelta(days=1)).isoformat()},
        {"purchaseDate": "not-a-date"},
    ])
    def test_invalid_lot_rejected(self, client, overrides):
        response = client.post("/portfolio", json=lot_payload(**overrides))

        assert response.status_code == 422
        data = response.json()
        assert data["error"] == "ValidationError"
        assert data["details"]

    def test_amount_below_storage_precision_not_stored(self, client):
        response = client.post("/portfolio", json=lot_payload(buyPrice="0.000000001"))

        assert response.status_code == 422
        assert response.json()["details"][0]["field"] == "body.buyPrice"
        assert client.get("/portfolio/lots").json() == []

    def test_smallest_storable_amount_accepted(self, client):
        response = client.post("/portfolio", json=lot_payload(quantity="0.00000001"))

        assert response.status_code == 201
        assert response.json()["quantity"] == 1e-8

    def test_missing_field_rejected(self, client):
        payload = lot_payload()
        del payload["buyPrice"]

        response = client.post("/portfolio", json=payload)

        assert response.status_code == 422
        assert client.get("/portfolio/lots").json() == []


# =============================================================================
# GET /portfolio/lots
# =============================================================================

class TestListLots:

    def test_list_does_not_quote(self, client, db, mock_provider):
        create_lot(db, "AAPL")

        response = client.get("/portfolio/lots")

        assert response.status_code == 200
        assert [lot["symbol"] for lot in response.json()] == ["AAPL"]
        assert mock_provider.quote_calls == []


# =============================================================================
# PUT /portfolio/{id}
# =============================================================================

class TestUpdateLot:
    """Tests for PUT /portfolio/{id}."""

    def test_update_quantity(self, client, db):
        lot = create_lot(db, "AAPL", "10", "100")

        response = client.put(f"/portfolio/{lot.id}", json={"quantity": "12"})

        assert response.status_code == 200
        data = response.json()
        assert data["quantity"] == 12
        assert data["buyPrice"] == 100
        assert data["symbol"] == "AAPL"

    def test_update_all_fields(self, client, db):
        lot = create_lot(db)

        response = client.put(f"/portfolio/{lot.id}", json={
            "quantity": "1",
            "buyPrice": "99.5",
            "purchaseDate": "2023-12-29",
        })

        assert response.status_code == 200
        data = response.json()
        assert data["quantity"] == 1
        assert data["buyPrice"] == 99.5
        assert data["purchaseDate"] == "2023-12-29"

    def test_symbol_cannot_change(self, client, db):
        lot = create_lot(db)

        response = client.put(f"/portfolio/{lot.id}", json={"symbol": "MSFT"})

        assert response.status_code == 422

    def test_invalid_value_leaves_lot_unchanged(self, client, db):
        lot = create_lot(db, "AAPL", "10", "100")

        response = client.put(f"/portfolio/{lot.id}", json={"quantity": "2", "buyPrice": "-5"})

        assert response.status_code == 422
        stored = client.get("/portfolio/lots").json()[0]
        assert stored["quantity"] == 10
        assert stored["buyPrice"] == 100

    def test_update_rejects_amount_below_storage_precision(self, client, db):
        lot = create_lot(db, "AAPL", "10", "100")

        response = client.put(f"/portfolio/{lot.id}", json={"buyPrice": "0.000000001"})

        assert response.status_code == 422
        assert client.get("/portfolio/lots").json()[0]["buyPrice"] == 100

    def test_update_missing_lot(self, client):
        response = client.put("/portfolio/999", json={"quantity": "1"})

        assert response.status_code == 404
        assert response.json()["error"] == "LotNotFoundError"

    def test_update_changes_valuation(self, client, db, mock_provider):
        lot = create_lot(db, "AAPL", "10", "100")
        mock_provider.set_price("AAPL", "150")

        client.put(f"/portfolio/{lot.id}", json={"buyPrice": "120"})

        summary = client.get("/portfolio").json()["summary"]
        assert summary["totalCost"] == 1200
        assert summary["totalGainLoss"] == 300


# =============================================================================
# DELETE /portfolio/{id}
# =============================================================================

class TestDeleteLot:
    """Tests for DELETE /portfolio/{id}."""

    def test_delete_lot(self, client, db):
        lot = create_lot(db)

        response = client.delete(f"/portfolio/{lot.id}")

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": f"Lot {lot.id} deleted"}
        assert client.get("/portfolio/lots").json() == []

    def test_delete_twice(self, client, db):
        lot = create_lot(db)
        client.delete(f"/portfolio/{lot.id}")

        response = client.delete(f"/portfolio/{lot.id}")

        assert response.status_code == 404

    def test_non_integer_id(self, client):
        response = client.delete("/portfolio/abc")

        assert response.status_code == 422


# =============================================================================
# GET /portfolio/history/{period}
# =============================================================================

class TestPortfolioHistory:
    """Tests for GET /portfolio/history/{period}."""

    def test_invalid_period(self, client, mock_provider):
        response = client.get("/portfolio/history/5Y")

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "InvalidPeriodError"
        assert data["details"]["period"] == "5Y"
        assert data["details"]["valid_options"] == ["1M", "3M", "6M", "1Y", "2Y"]
        assert mock_provider.history_calls == []

    def test_empty_portfolio(self, client):
        response = client.get("/portfolio/history/1M")

        assert response.status_code == 200
        assert response.json() == []

    def test_value_series(self, client, db, mock_provider):
        today = date.today()
        bought = today - timedelta(days=10)
        days = weekdays(today - timedelta(days=20), today)
        mock_provider.set_history("AAPL", {d: Decimal("100") + i for i, d in enumerate(days)})
        create_lot(db, "AAPL", "2", "90", purchase_date=bought)

        response = client.get("/portfolio/history/1m")

        assert response.status_code == 200
        points = response.json()
        expected_days = [d for d in days if d >= bought]
        assert [p["date"] for p in points] == [d.isoformat() for d in expected_days]

        first_close = Decimal("100") + days.index(expected_days[0])
        assert points[0]["value"] == float(first_close * 2)

    def test_failed_symbol_left_out(self, client, db, mock_provider):
        today = date.today()
        days = weekdays(today - timedelta(days=10), today)
        mock_provider.set_history("AAPL", {d: "10" for d in days})
        create_lot(db, "AAPL", "1", "10", purchase_date=today - timedelta(days=20))
        create_lot(db, "TSLA", "1", "10", purchase_date=today - timedelta(days=20))

        response = client.get("/portfolio/history/1M")

        assert response.status_code == 200
        assert all(p["value"] == 10 for p in response.json())
