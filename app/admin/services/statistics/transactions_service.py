"""Recent transactions across all users."""

from datetime import UTC, datetime
from typing import Any

import structlog

from app.admin.schemas.admin_statistics import RecentTransaction, RecentTransactionsResponse
from app.admin.services.statistics.base import (
    matches_currency,
    transaction_amount,
    transaction_currency,
)
from app.admin.services.statistics.scanner import (
    CollectionScanner,
    QueryWindow,
    successful_batches,
)
from app.core.constants import (
    DEFAULT_TRANSACTION_STATUS,
    DEFAULT_TRANSACTION_TYPE,
    MISSING_EMAIL,
    TRANSACTIONS_FETCH_MULTIPLIER,
    UNKNOWN_CUSTOMER,
)
from app.core.datetime_utils import parse_flexible_timestamp, to_iso_string
from app.core.store import DocumentStore, TransactionRecord, UserRecord

logger = structlog.get_logger(__name__)


def _text(*values: Any, default: str) -> str:
    """First truthy value as a string, e.g. a numeric displayName becomes '42'."""
    for value in values:
        if value:
            return str(value)
    return default


def _to_row(
    user: UserRecord, tx: TransactionRecord, now: datetime
) -> tuple[datetime, RecentTransaction]:
    created_at = parse_flexible_timestamp(tx.data.get("createdAt")) or now
    row = RecentTransaction(
        id=tx.id,
        customer=_text(
            user.data.get("name"), user.data.get("displayName"), default=UNKNOWN_CUSTOMER
        ),
        email=_text(user.data.get("email"), default=MISSING_EMAIL),
        amount=transaction_amount(tx),
        currency=transaction_currency(tx),
        status=_text(tx.data.get("status"), default=DEFAULT_TRANSACTION_STATUS),
        type=_text(tx.data.get("type"), default=DEFAULT_TRANSACTION_TYPE),
        date=to_iso_string(created_at),
        description=_text(tx.data.get("description"), default=""),
    )
    return created_at, row


class TransactionsService:
    """Service for the recent transactions table."""

    @staticmethod
    def get_recent_transactions(
        store: DocumentStore,
        limit: int,
        start: datetime | None,
        end: datetime,
        currency_filter: str | None = None,
        now: datetime | None = None,
        scanner: CollectionScanner | None = None,
    ) -> RecentTransactionsResponse:
        """Return the newest ``limit`` transactions across all users.

        Each user contributes at most ``limit * 2`` newest transactions before
        currency filtering; the merged list is sorted newest first and cut.
        """
        now = now or datetime.now(UTC)
        scanner = scanner or CollectionScanner(store)
        window = QueryWindow(
            start=start,
            end=end,
            descending=True,
            limit=limit * TRANSACTIONS_FETCH_MULTIPLIER,
        )

        rows: list[tuple[datetime, RecentTransaction]] = []
        for batch in successful_batches(scanner.scan(store.list_users(), [window])):
            for tx in batch.batches[0]:
                if matches_currency(tx, currency_filter):
                    rows.append(_to_row(batch.user, tx, now))

        rows.sort(key=lambda item: item[0], reverse=True)
        transactions = [row for _, row in rows[:limit]]

        logger.info("recent_transactions_fetched", limit=limit, found=len(transactions))

        return RecentTransactionsResponse(transactions=transactions, total=len(transactions))
