"""API tests for the admin statistics endpoints."""

from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

import pytest

from app.core.config import settings
from app.core.store import get_store
from tests.utils.factories import create_transaction_factory, create_user_factory
from tests.utils.helpers import assert_error_response_valid, assert_stats_response_valid


@pytest.fixture
def failing_store(test_app):
    store = MagicMock()
    store.list_users.side_effect = ConnectionError("Firestore unavailable")
    test_app.dependency_overrides[get_store] = lambda: store
    return store


class TestServiceEndpoints:
    async def test_health(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "admin-stats-service"
        assert isinstance(data["firebaseInitialized"], bool)
        assert data["timestamp"].endswith("Z")

    async def test_root_lists_endpoints(self, test_client):
        response = await test_client.get("/")

        assert response.status_code == 200
        assert response.json()["endpoints"]["stats"] == "GET /stats"

    async def test_unknown_route(self, test_client):
        response = await test_client.get("/nope")
        assert_error_response_valid(response, 404, "Not found")


class TestStatsEndpoint:
    async def test_two_user_scenario(self, test_client, store):
        now = datetime.now(UTC)
        user_a = create_user_factory(store, last_active=now)
        user_b = create_user_factory(store)
        create_transaction_factory(
            store, user_a, amount=100, currency="usd", type="transfer", created_at=now
        )
        create_transaction_factory(
            store, user_b, amount=50, currency="USD", type="payout", created_at=now
        )

        response = await test_client.get("/stats")

        assert response.status_code == 200
        data = response.json()
        assert_stats_response_valid(data)
        assert data["totalVolume"] == 150
        assert data["totalPayouts"] == 50
        assert data["transactionCount"] == 2
        assert data["avgTransactionValue"] == 75
        assert data["totalUsers"] == 2
        assert data["activeUsers"] == 1
        assert data["growth"] == {"volume": 0, "activeUsers": 0, "payouts": 0, "avgValue": 0}

    async def test_currency_filter(self, test_client, store):
        user_id = create_user_factory(store)
        create_transaction_factory(store, user_id, amount=10, currency="EUR")
        create_transaction_factory(store, user_id, amount=90, currency="USD")

        response = await test_client.get("/stats", params={"currency": "EUR"})

        assert response.status_code == 200
        assert response.json()["totalVolume"] == 10

    async def test_map_typed_transaction_does_not_fail_request(self, test_client, store):
        odd = create_user_factory(store)
        normal = create_user_factory(store)
        create_transaction_factory(store, odd, amount=5, type={"kind": "payout"})
        create_transaction_factory(store, normal, amount=20)

        response = await test_client.get("/stats")

        assert response.status_code == 200
        data = response.json()
        assert data["totalVolume"] == 25
        assert data["totalPayouts"] == 0

    async def test_empty_store(self, test_client):
        response = await test_client.get("/stats")

        assert response.status_code == 200
        data = response.json()
        assert data["totalUsers"] == 0
        assert data["avgTransactionValue"] == 0

    async def test_invalid_start_date(self, test_client):
        response = await test_client.get("/stats", params={"startDate": "soon"})

        data = assert_error_response_valid(response, 400, "Invalid request")
        assert "startDate" in data["message"]

    async def test_store_failure_is_500_without_details(self, test_client, failing_store):
        response = await test_client.get("/stats")

        data = assert_error_response_valid(response, 500, "Failed to fetch dashboard statistics")
        assert data["message"] == "Firestore unavailable"
        assert "details" not in data

    async def test_store_failure_includes_stack_in_development(
        self, test_client, failing_store, monkeypatch
    ):
        monkeypatch.setattr(settings, "ENVIRONMENT", "development")

        response = await test_client.get("/stats")

        data = assert_error_response_valid(response, 500)
        assert "ConnectionError" in data["details"]


class TestVolumeOverTimeEndpoint:
    async def test_two_months(self, test_client, store):
        user_id = create_user_factory(store)
        create_transaction_factory(
            store, user_id, amount=10.6, created_at=datetime(2024, 1, 3, tzinfo=UTC)
        )

        response = await test_client.get(
            "/volume-over-time", params={"startDate": "2024-01-01", "endDate": "2024-02-29"}
        )

        assert response.status_code == 200
        assert response.json() == {
            "data": [
                {"month": "January 2024", "volume": 11, "payouts": 0},
                {"month": "February 2024", "volume": 0, "payouts": 0},
            ]
        }

    async def test_old_end_date_without_start_is_empty(self, test_client):
        response = await test_client.get("/volume-over-time", params={"endDate": "2020-01-01"})

        assert response.status_code == 200
        assert response.json() == {"data": []}

    async def test_defaults_to_last_twelve_months(self, test_client):
        response = await test_client.get("/volume-over-time")

        assert response.status_code == 200
        assert len(response.json()["data"]) == 13

    async def test_store_failure(self, test_client, failing_store):
        response = await test_client.get("/volume-over-time")
        assert_error_response_valid(response, 500, "Failed to fetch volume over time")


class TestTransactionsEndpoint:
    async def test_default_limit_is_ten(self, test_client, store):
        user_id = create_user_factory(store, name="Ada", email="ada@example.com")
        now = datetime.now(UTC)
        for minutes in range(15):
            create_transaction_factory(
                store, user_id, created_at=now - timedelta(minutes=minutes + 1)
            )

        response = await test_client.get("/transactions")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 10
        assert len(data["transactions"]) == 10
        row = data["transactions"][0]
        assert set(row) == {
            "id",
            "customer",
            "email",
            "amount",
            "currency",
            "status",
            "type",
            "date",
            "description",
        }
        assert row["customer"] == "Ada"
        dates = [tx["date"] for tx in data["transactions"]]
        assert dates == sorted(dates, reverse=True)

    async def test_limit_parameter(self, test_client, store):
        user_id = create_user_factory(store)
        for _ in range(5):
            create_transaction_factory(store, user_id)

        response = await test_client.get("/transactions", params={"limit": 3})

        assert response.json()["total"] == 3

    async def test_numeric_text_fields(self, test_client, store):
        store.add_user("u1", {"displayName": 42})
        create_transaction_factory(store, "u1", description=12345)

        response = await test_client.get("/transactions")

        assert response.status_code == 200
        [row] = response.json()["transactions"]
        assert row["customer"] == "42"
        assert row["description"] == "12345"

    @pytest.mark.parametrize("limit", ["0", "abc", "1000"])
    async def test_invalid_limit(self, test_client, limit):
        response = await test_client.get("/transactions", params={"limit": limit})
        assert_error_response_valid(response, 400, "Invalid request")

    async def test_store_failure(self, test_client, failing_store):
        response = await test_client.get("/transactions")
        assert_error_response_valid(response, 500, "Failed to fetch recent transactions")


class TestCurrencyDistributionEndpoint:
    async def test_five_currencies(self, test_client, store):
        for amount, code in [(500, "USD"), (400, "EUR"), (300, "GBP"), (200, "NGN"), (100, "KES")]:
            user_id = create_user_factory(store)
            create_transaction_factory(store, user_id, amount=amount, currency=code)

        response = await test_client.get("/currency-distribution")

        assert response.status_code == 200
        assert response.json()["data"] == [
            {"name": "USD", "value": 500},
            {"name": "EUR", "value": 400},
            {"name": "GBP", "value": 300},
            {"name": "NGN", "value": 200},
            {"name": "OTHER", "value": 100},
        ]

    async def test_four_currencies(self, test_client, store):
        user_id = create_user_factory(store)
        for code in ("USD", "EUR", "GBP", "NGN"):
            create_transaction_factory(store, user_id, amount=10, currency=code)

        response = await test_client.get("/currency-distribution")

        names = [item["name"] for item in response.json()["data"]]
        assert len(names) == 4
        assert "OTHER" not in names

    async def test_store_failure(self, test_client, failing_store):
        response = await test_client.get("/currency-distribution")
        assert_error_response_valid(response, 500, "Failed to fetch currency distribution")
