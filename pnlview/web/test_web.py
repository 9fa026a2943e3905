# Description: Test the web application

from unittest.mock import patch
from fastapi.testclient import TestClient
from pnlview.web.main import app
from pnlview.util import PnlviewException

client = TestClient(app)

snapshot = {
    "accounts": [
        {
            "name": "TFSA",
            "type": "tfsa",
            "currency": "cad",
            "cash": 10.5,
            "positions": [
                {
                    "security": {"symbol": "ABC", "currency": "cad", "lastPrice": 110},
                    "quantity": 10,
                    "bookValue": 1000,
                    "marketValue": 1100,
                    "gainAmount": 100,
                }
            ],
        },
        {
            "name": "US Margin",
            "type": "margin",
            "currency": "usd",
            "cash": 100,
            "positions": [
                {
                    "security": {"symbol": "XYZ", "currency": "usd", "lastPrice": 50},
                    "quantity": 10,
                    "bookValue": 600,
                    "marketValue": 500,
                    "gainAmount": -100,
                }
            ],
        },
    ],
    "transactions": [
        {
            "date": "2024-03-01",
            "symbol": "ABC",
            "originalType": "buy",
            "shares": 10,
            "amount": 1000,
            "currencyAmount": 1000,
            "account": "TFSA",
        }
    ],
    "currencyCache": {"2024-03-01": 1.35},
}


def test_read_main():
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["name"] == "pnlview"


def test_composition():
    response = client.post("/composition", json={"snapshot": snapshot, "drilldown": "CAD"})
    assert response.status_code == 200
    data = response.json()
    groups = data["composition"]["groups"]
    assert [g["name"] for g in groups] == ["CAD", "USD"]
    assert groups[1]["pnlColor"] == "red"
    assert data["holdings"]["name"] == "CAD"


def test_composition_without_rates():
    bad = dict(snapshot, currencyCache={})
    response = client.post("/composition", json={"snapshot": bad, "group": "currency"})
    assert response.status_code == 422


def test_activity():
    response = client.post("/activity", json={"snapshot": snapshot, "fromDate": "2024-01-01"})
    assert response.status_code == 200
    bought = response.json()["activity"]["bought"]
    assert bought[0]["symbol"] == "ABC"
    assert "lastPrice" in bought[0]


def test_composition_unknown_drilldown():
    response = client.post("/composition", json={"snapshot": snapshot, "drilldown": "GBP"})
    assert response.status_code == 422
    assert "GBP" in response.json()["detail"]


def test_activity_error():
    with patch("pnlview.web.main.activity_report", side_effect=PnlviewException("bad snapshot")):
        response = client.post("/activity", json={"snapshot": snapshot})
    assert response.status_code == 422
    assert response.json()["detail"] == "bad snapshot"
