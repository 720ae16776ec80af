"""Statistics module for the admin dashboard.

Every statistic is a single read-only pass over the document store:
resolve parameters, scan each user's transactions, fold them into
accumulators, derive metrics and shape the response.

- base: period resolution, transaction classification, metric helpers
- scanner: per-user scan with isolated failures
- dashboard_service: KPI totals and growth
- volume_service: monthly volume chart
- transactions_service: recent transactions table
- currency_service: currency distribution chart
"""

from app.admin.services.statistics.base import (
    StatsParams,
    calculate_average,
    calculate_growth,
    get_previous_period,
    resolve_currency_filter,
    resolve_date_range,
    resolve_stats_params,
    resolve_volume_range,
)
from app.admin.services.statistics.currency_service import CurrencyService
from app.admin.services.statistics.dashboard_service import DashboardService
from app.admin.services.statistics.scanner import CollectionScanner
from app.admin.services.statistics.transactions_service import TransactionsService
from app.admin.services.statistics.volume_service import VolumeService

__all__ = [
    # Base utilities
    "StatsParams",
    "resolve_stats_params",
    "resolve_date_range",
    "resolve_volume_range",
    "resolve_currency_filter",
    "get_previous_period",
    "calculate_average",
    "calculate_growth",
    # Services
    "CollectionScanner",
    "DashboardService",
    "VolumeService",
    "TransactionsService",
    "CurrencyService",
]
