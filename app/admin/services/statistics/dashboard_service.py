"""Dashboard KPI statistics service."""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime

import structlog

from app.admin.schemas.admin_statistics import DashboardStatsResponse, GrowthStats
from app.admin.services.statistics.base import (
    StatsParams,
    calculate_average,
    calculate_growth,
    is_active_user,
    is_payout,
    matches_currency,
    transaction_amount,
)
from app.admin.services.statistics.scanner import (
    CollectionScanner,
    QueryWindow,
    successful_batches,
)
from app.core.store import DocumentStore, TransactionRecord

logger = structlog.get_logger(__name__)


@dataclass
class PeriodTotals:
    """Running sums for one period."""

    volume: float = 0.0
    payouts: float = 0.0
    count: int = 0

    def add(self, tx: TransactionRecord) -> None:
        amount = transaction_amount(tx)
        self.count += 1
        self.volume += amount
        if is_payout(tx):
            self.payouts += amount

    @property
    def average(self) -> float:
        return calculate_average(self.volume, self.count)


def fold_transactions(
    totals: PeriodTotals,
    transactions: Iterable[TransactionRecord],
    currency_filter: str | None,
) -> PeriodTotals:
    """Accumulate the transactions matching the currency filter into ``totals``."""
    for tx in transactions:
        if matches_currency(tx, currency_filter):
            totals.add(tx)
    return totals


class DashboardService:
    """Service for the dashboard KPI cards."""

    @staticmethod
    def get_stats(
        store: DocumentStore,
        params: StatsParams,
        now: datetime | None = None,
        scanner: CollectionScanner | None = None,
    ) -> DashboardStatsResponse:
        """Aggregate volume, payouts and counts across all users.

        Args:
            store: Document store to read users and transactions from.
            params: Resolved current and previous periods plus currency filter.
            now: Reference time for the active users window.
            scanner: Optional scanner, e.g. with a different concurrency.

        Returns:
            DashboardStatsResponse with totals and growth vs. the previous period.
        """
        now = now or datetime.now(UTC)
        scanner = scanner or CollectionScanner(store)

        users = store.list_users()
        active_users = sum(1 for user in users if is_active_user(user, now))

        windows = [
            QueryWindow(start=params.start, end=params.end),
            QueryWindow(start=params.previous_start, end=params.previous_end),
        ]
        current = PeriodTotals()
        previous = PeriodTotals()
        for batch in successful_batches(scanner.scan(users, windows)):
            current_txs, previous_txs = batch.batches
            fold_transactions(current, current_txs, params.currency_filter)
            fold_transactions(previous, previous_txs, params.currency_filter)

        logger.info(
            "dashboard_stats_calculated",
            total_users=len(users),
            transaction_count=current.count,
            currency=params.currency_filter or "ALL",
        )

        return DashboardStatsResponse(
            total_volume=current.volume,
            active_users=active_users,
            total_users=len(users),
            total_payouts=current.payouts,
            avg_transaction_value=current.average,
            transaction_count=current.count,
            growth=GrowthStats(
                volume=calculate_growth(current.volume, previous.volume),
                # Previous-period active users are not tracked
                active_users=0,
                payouts=calculate_growth(current.payouts, previous.payouts),
                avg_value=calculate_growth(current.average, previous.average),
            ),
        )
