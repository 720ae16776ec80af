"""Statistics routes for the admin dashboard."""

from collections.abc import Callable
from typing import Any, TypeVar

from fastapi import APIRouter, Depends, Query
from starlette.concurrency import run_in_threadpool

from app.admin.schemas.admin_statistics import (
    CurrencyDistributionResponse,
    DashboardStatsResponse,
    RecentTransactionsResponse,
    VolumeOverTimeResponse,
)
from app.admin.services.statistics import (
    CurrencyService,
    DashboardService,
    TransactionsService,
    VolumeService,
    resolve_currency_filter,
    resolve_date_range,
    resolve_stats_params,
    resolve_volume_range,
)
from app.core.constants import DEFAULT_TRANSACTIONS_LIMIT, MAX_TRANSACTIONS_LIMIT
from app.core.exceptions import AppError, StatisticsError
from app.core.store import DocumentStore, get_store

router = APIRouter(tags=["admin-statistics"])

T = TypeVar("T")


async def _aggregate(error: str, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Run a blocking aggregation off the event loop.

    Any failure other than an AppError fails the whole request as a 500.
    """
    try:
        return await run_in_threadpool(func, *args, **kwargs)
    except AppError:
        raise
    except Exception as e:
        raise StatisticsError(error=error, message=str(e)) from e


@router.get("/stats", response_model=DashboardStatsResponse)
async def get_dashboard_stats(
    start_date: str | None = Query(None, alias="startDate", description="ISO start date"),
    end_date: str | None = Query(None, alias="endDate", description="ISO end date"),
    currency: str | None = Query(None, description="ISO currency code or ALL"),
    store: DocumentStore = Depends(get_store),
) -> DashboardStatsResponse:
    """
    Get dashboard KPIs across all users.

    Returns:
    - Total volume, payouts and transaction count for the period
    - Average transaction value
    - Active users (last 30 days) and total users
    - Growth percentages vs. the previous period
    """
    params = resolve_stats_params(start_date, end_date, currency)
    return await _aggregate(
        "Failed to fetch dashboard statistics", DashboardService.get_stats, store, params
    )


@router.get("/volume-over-time", response_model=VolumeOverTimeResponse)
async def get_volume_over_time(
    start_date: str | None = Query(
        None, alias="startDate", description="ISO start date, defaults to 12 months ago"
    ),
    end_date: str | None = Query(None, alias="endDate", description="ISO end date"),
    currency: str | None = Query(None, description="ISO currency code or ALL"),
    store: DocumentStore = Depends(get_store),
) -> VolumeOverTimeResponse:
    """
    Get monthly volume and payouts for the volume chart.

    One data point per calendar month in the range, labelled e.g. "January 2024".
    """
    start, end = resolve_volume_range(start_date, end_date)
    return await _aggregate(
        "Failed to fetch volume over time",
        VolumeService.get_volume_over_time,
        store,
        start,
        end,
        resolve_currency_filter(currency),
    )


@router.get("/transactions", response_model=RecentTransactionsResponse)
async def get_recent_transactions(
    limit: int = Query(
        DEFAULT_TRANSACTIONS_LIMIT,
        ge=1,
        le=MAX_TRANSACTIONS_LIMIT,
        description="Number of transactions to return",
    ),
    start_date: str | None = Query(None, alias="startDate", description="ISO start date"),
    end_date: str | None = Query(None, alias="endDate", description="ISO end date"),
    currency: str | None = Query(None, description="ISO currency code or ALL"),
    store: DocumentStore = Depends(get_store),
) -> RecentTransactionsResponse:
    """Get the most recent transactions across all users, newest first."""
    start, end = resolve_date_range(start_date, end_date)
    return await _aggregate(
        "Failed to fetch recent transactions",
        TransactionsService.get_recent_transactions,
        store,
        limit,
        start,
        end,
        resolve_currency_filter(currency),
    )


@router.get("/currency-distribution", response_model=CurrencyDistributionResponse)
async def get_currency_distribution(
    start_date: str | None = Query(None, alias="startDate", description="ISO start date"),
    end_date: str | None = Query(None, alias="endDate", description="ISO end date"),
    store: DocumentStore = Depends(get_store),
) -> CurrencyDistributionResponse:
    """
    Get transaction volume per currency.

    The top 4 currencies are returned individually, the rest as "OTHER".
    """
    start, end = resolve_date_range(start_date, end_date)
    return await _aggregate(
        "Failed to fetch currency distribution",
        CurrencyService.get_distribution,
        store,
        start,
        end,
    )
