# backend/tests/routers/test_holdings_api.py
"""
API layer tests for the reconstructed holdings endpoints.
"""

from datetime import date
from decimal import Decimal

from fastapi.testclient import TestClient

from tests.conftest import ACCOUNT_ID, seed_transaction

BASE_URL = f"/accounts/{ACCOUNT_ID}/holdings"


class TestHoldings:

    def test_rebuild_then_list(self, client: TestClient, db):
        seed_transaction(db, date(2024, 1, 5), credit="10")
        seed_transaction(db, date(2024, 2, 5), debit="3")

        rebuilt = client.post(f"{BASE_URL}/rebuild")
        listed = client.get(BASE_URL)

        assert rebuilt.status_code == 200
        assert rebuilt.json() == listed.json()
        holding = listed.json()["holdings"][0]
        assert holding["asset_name"] == "Acme"
        assert Decimal(holding["balance"]) == 7

    def test_empty_account(self, client: TestClient):
        response = client.get(BASE_URL)

        assert response.status_code == 200
        assert response.json() == {"account_id": str(ACCOUNT_ID), "holdings": []}


class TestMonthlySnapshots:

    def test_snapshots_per_month_end(self, client: TestClient, db, holdings_service):
        seed_transaction(db, date(2024, 1, 5), credit="10")
        seed_transaction(db, date(2024, 3, 5), debit="10")
        holdings_service.rebuild_all(db, ACCOUNT_ID)

        response = client.get(f"{BASE_URL}/monthly")

        assert response.status_code == 200
        snapshots = response.json()["snapshots"]
        assert [s["month_end_date"] for s in snapshots] == ["2024-01-31", "2024-02-29", "2024-03-31"]
        assert [Decimal(s["balance"]) for s in snapshots] == [10, 10, 0]

    def test_date_range(self, client: TestClient, db, holdings_service):
        seed_transaction(db, date(2024, 1, 5), credit="10")
        seed_transaction(db, date(2024, 3, 5), credit="1")
        holdings_service.rebuild_all(db, ACCOUNT_ID)

        response = client.get(f"{BASE_URL}/monthly", params={"from_date": "2024-02-01", "to_date": "2024-02-29"})

        assert [s["month_end_date"] for s in response.json()["snapshots"]] == ["2024-02-29"]

    def test_inverted_range_rejected(self, client: TestClient):
        response = client.get(f"{BASE_URL}/monthly", params={"from_date": "2024-03-01", "to_date": "2024-01-01"})

        assert response.status_code == 400
        assert response.json()["error"] == "ValidationError"
