"""Base utilities and helpers for statistics services."""

import calendar
import math
import re
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import structlog

from app.core.config import settings
from app.core.constants import (
    ALL_CURRENCIES,
    DEFAULT_CURRENCY,
    DEFAULT_PREVIOUS_PERIOD_END_DAYS,
    DEFAULT_PREVIOUS_PERIOD_START_DAYS,
    DEFAULT_VOLUME_MONTHS,
    PAYOUT_STATUS,
    PAYOUT_TYPES,
)
from app.core.datetime_utils import parse_flexible_timestamp, parse_iso_datetime
from app.core.exceptions import ValidationError
from app.core.store import TransactionRecord, UserRecord

logger = structlog.get_logger(__name__)

_NUMERIC_PREFIX = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


# ============ Periods ============


@dataclass(frozen=True)
class StatsParams:
    """Resolved query parameters for the dashboard stats aggregation.

    ``start`` is None when no lower bound was requested; the previous period
    is always bounded.
    """

    start: datetime | None
    end: datetime
    previous_start: datetime
    previous_end: datetime
    currency_filter: str | None


def parse_query_date(value: str | None, field: str) -> datetime | None:
    """Parse an optional ISO date query parameter.

    Raises:
        ValidationError: If the value is present but not a valid ISO date.
    """
    if value is None or not value.strip():
        return None
    parsed = parse_iso_datetime(value)
    if parsed is None:
        raise ValidationError(f"{field} must be an ISO-8601 date, got {value!r}", field=field)
    return parsed


def resolve_currency_filter(currency: str | None) -> str | None:
    """Return the upper-cased currency to filter on, or None for no filtering."""
    if currency is None or not currency.strip():
        return None
    normalized = currency.strip().upper()
    if normalized == ALL_CURRENCIES:
        return None
    return normalized


def _resolve_range(
    start_date: str | None, end_date: str | None, now: datetime
) -> tuple[datetime | None, datetime]:
    start = parse_query_date(start_date, "startDate")
    end = parse_query_date(end_date, "endDate") or now
    if start is not None and start > end:
        raise ValidationError("startDate must not be after endDate", field="startDate")
    return start, end


def get_previous_period(start: datetime, end: datetime) -> tuple[datetime, datetime]:
    """Get the contiguous previous period of the same length.

    The previous period ends one millisecond before ``start`` so that the two
    windows never share a transaction.
    """
    period_length = end - start
    previous_end = start - timedelta(milliseconds=1)
    return previous_end - period_length, previous_end


def get_default_previous_period(now: datetime) -> tuple[datetime, datetime]:
    """Comparison window used when no start date is given: days 31-60 before now."""
    return (
        now - timedelta(days=DEFAULT_PREVIOUS_PERIOD_START_DAYS),
        now - timedelta(days=DEFAULT_PREVIOUS_PERIOD_END_DAYS),
    )


def resolve_stats_params(
    start_date: str | None,
    end_date: str | None,
    currency: str | None,
    now: datetime | None = None,
) -> StatsParams:
    """Resolve the dashboard stats query into current and previous windows.

    Without a start date the current period has no lower bound while the
    previous period falls back to the fixed days 31-60 window.
    """
    now = now or datetime.now(UTC)
    start, end = _resolve_range(start_date, end_date, now)

    if start is not None:
        previous_start, previous_end = get_previous_period(start, end)
    else:
        previous_start, previous_end = get_default_previous_period(now)

    return StatsParams(
        start=start,
        end=end,
        previous_start=previous_start,
        previous_end=previous_end,
        currency_filter=resolve_currency_filter(currency),
    )


def resolve_date_range(
    start_date: str | None, end_date: str | None, now: datetime | None = None
) -> tuple[datetime | None, datetime]:
    """Resolve an optional (start, end] range; end defaults to now, start to no bound."""
    return _resolve_range(start_date, end_date, now or datetime.now(UTC))


def resolve_volume_range(
    start_date: str | None, end_date: str | None, now: datetime | None = None
) -> tuple[datetime, datetime]:
    """Resolve the volume chart range; start defaults to 12 months before now.

    An endDate older than the default start yields an empty range (start > end).
    """
    now = now or datetime.now(UTC)
    start, end = _resolve_range(start_date, end_date, now)
    if start is None:
        start = add_months(now, -DEFAULT_VOLUME_MONTHS)
    return start, end


# ============ Months ============


def add_months(value: datetime, months: int) -> datetime:
    """Shift by whole calendar months, clamping the day to the target month."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def month_start(value: datetime) -> datetime:
    return value.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def month_label(value: datetime) -> str:
    """Chart label for a month, e.g. 'January 2024'."""
    return f"{calendar.month_name[value.month]} {value.year}"


def get_month_buckets(start: datetime, end: datetime) -> list[datetime]:
    """First instant of every calendar month touched by [start, end]."""
    if start > end:
        return []
    buckets = []
    current = month_start(start)
    while current <= end:
        buckets.append(current)
        current = add_months(current, 1)
    return buckets


# ============ Transactions ============


def parse_amount(value: Any) -> float:
    """Parse an amount the permissive way the dashboard always has.

    Missing or falsy values are 0. Strings use their leading numeric prefix
    ("12.5 USD" is 12.5). Anything else that is not a number is NaN.
    """
    if not value:
        return 0.0
    if isinstance(value, bool):
        return math.nan
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        match = _NUMERIC_PREFIX.match(value.strip())
        if match is None:
            return math.nan
        try:
            return float(match.group())
        except OverflowError:
            return math.nan
    return math.nan


def transaction_amount(tx: TransactionRecord) -> float:
    """Amount of a transaction; unparsable or non-finite amounts count as 0."""
    raw = tx.data.get("amount")
    amount = parse_amount(raw)
    if not math.isfinite(amount):
        logger.warning("invalid_transaction_amount", transaction_id=tx.id, amount=repr(raw))
        return 0.0
    return amount


def normalize_currency(value: Any) -> str:
    if not value:
        return DEFAULT_CURRENCY
    return str(value).strip().upper()


def transaction_currency(tx: TransactionRecord) -> str:
    return normalize_currency(tx.data.get("currency"))


def matches_currency(tx: TransactionRecord, currency_filter: str | None) -> bool:
    """True when no filter is active or the normalized currency equals the filter."""
    return currency_filter is None or transaction_currency(tx) == currency_filter


def is_payout(tx: TransactionRecord) -> bool:
    """Payouts are outgoing transactions: payout/withdrawal types or status 'sent'.

    Non-string types (maps, arrays) are never payout types.
    """
    tx_type = tx.data.get("type")
    if isinstance(tx_type, str) and tx_type in PAYOUT_TYPES:
        return True
    return tx.data.get("status") == PAYOUT_STATUS


# ============ Users ============


def is_active_user(user: UserRecord, now: datetime, window_days: int | None = None) -> bool:
    """Whether the user's lastActive falls within the trailing activity window."""
    if window_days is None:
        window_days = settings.ACTIVE_USER_WINDOW_DAYS
    last_active = parse_flexible_timestamp(user.data.get("lastActive"))
    return last_active is not None and last_active >= now - timedelta(days=window_days)


# ============ Metrics ============


def calculate_average(total: float, count: int) -> float:
    return total / count if count > 0 else 0.0


def calculate_growth(current: float, previous: float) -> float:
    """Percentage change from previous to current.

    Returns 0.0 when previous is not positive, even if current is not 0.
    """
    if previous > 0:
        return (current - previous) / previous * 100
    return 0.0


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (2.5 -> 3, -2.5 -> -2)."""
    return math.floor(value + 0.5)
