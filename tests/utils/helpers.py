from typing import Any

import httpx


def assert_error_response_valid(
    response: httpx.Response, status_code: int, error: str | None = None
) -> dict[str, Any]:
    """Assert that a non-2xx response uses the shared {error, message, details?} body."""
    assert response.status_code == status_code
    data: dict[str, Any] = response.json()
    assert "error" in data
    assert "message" in data
    assert set(data) <= {"error", "message", "details"}
    if error is not None:
        assert data["error"] == error
    return data


def assert_stats_response_valid(data: dict[str, Any]) -> None:
    for key in (
        "totalVolume",
        "activeUsers",
        "totalUsers",
        "totalPayouts",
        "avgTransactionValue",
        "transactionCount",
        "growth",
    ):
        assert key in data
    assert set(data["growth"]) == {"volume", "activeUsers", "payouts", "avgValue"}
