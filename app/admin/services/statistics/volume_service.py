"""Transaction volume over time, bucketed by calendar month."""

from datetime import datetime

import structlog

from app.admin.schemas.admin_statistics import VolumeDataPoint, VolumeOverTimeResponse
from app.admin.services.statistics.base import (
    get_month_buckets,
    is_payout,
    matches_currency,
    month_label,
    month_start,
    round_half_up,
    transaction_amount,
)
from app.admin.services.statistics.scanner import (
    CollectionScanner,
    QueryWindow,
    successful_batches,
)
from app.core.datetime_utils import parse_flexible_timestamp
from app.core.store import DocumentStore

logger = structlog.get_logger(__name__)


class VolumeService:
    """Service for the volume-over-time chart."""

    @staticmethod
    def get_volume_over_time(
        store: DocumentStore,
        start: datetime,
        end: datetime,
        currency_filter: str | None = None,
        scanner: CollectionScanner | None = None,
    ) -> VolumeOverTimeResponse:
        """Sum volume and payouts per month between start and end.

        Every month touched by the range gets a data point, even if empty.
        Transactions without a readable createdAt are ignored. An empty range
        (start after end) returns no data points.
        """
        buckets = get_month_buckets(start, end)
        if not buckets:
            logger.info(
                "volume_over_time_empty_range", start=start.isoformat(), end=end.isoformat()
            )
            return VolumeOverTimeResponse(data=[])

        scanner = scanner or CollectionScanner(store)
        volume: dict[datetime, float] = {bucket: 0.0 for bucket in buckets}
        payouts: dict[datetime, float] = {bucket: 0.0 for bucket in buckets}

        users = store.list_users()
        results = scanner.scan(users, [QueryWindow(start=start, end=end)])
        for batch in successful_batches(results):
            for tx in batch.batches[0]:
                if not matches_currency(tx, currency_filter):
                    continue
                created_at = parse_flexible_timestamp(tx.data.get("createdAt"))
                if created_at is None:
                    continue
                bucket = month_start(created_at)
                if bucket not in volume:
                    continue

                amount = transaction_amount(tx)
                volume[bucket] += amount
                if is_payout(tx):
                    payouts[bucket] += amount

        logger.info("volume_over_time_calculated", months=len(buckets), users=len(users))

        return VolumeOverTimeResponse(
            data=[
                VolumeDataPoint(
                    month=month_label(bucket),
                    volume=round_half_up(volume[bucket]),
                    payouts=round_half_up(payouts[bucket]),
                )
                for bucket in buckets
            ]
        )
