"""Currency distribution of transaction volume."""

from datetime import datetime

import structlog

from app.admin.schemas.admin_statistics import CurrencyDistributionResponse, CurrencyShare
from app.admin.services.statistics.base import (
    round_half_up,
    transaction_amount,
    transaction_currency,
)
from app.admin.services.statistics.scanner import (
    CollectionScanner,
    QueryWindow,
    successful_batches,
)
from app.core.constants import OTHER_CURRENCY_BUCKET, TOP_CURRENCIES_COUNT
from app.core.store import DocumentStore

logger = structlog.get_logger(__name__)


def collapse_currency_totals(
    totals: dict[str, float], top_n: int = TOP_CURRENCIES_COUNT
) -> list[CurrencyShare]:
    """Keep the top ``top_n`` currencies by volume and sum the rest into OTHER.

    OTHER only appears when the remainder is positive.
    """
    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    shares = [
        CurrencyShare(name=code, value=round_half_up(value)) for code, value in ranked[:top_n]
    ]

    other_total = sum(value for _, value in ranked[top_n:])
    if other_total > 0:
        shares.append(CurrencyShare(name=OTHER_CURRENCY_BUCKET, value=round_half_up(other_total)))
    return shares


class CurrencyService:
    """Service for the currency distribution chart."""

    @staticmethod
    def get_distribution(
        store: DocumentStore,
        start: datetime | None,
        end: datetime,
        scanner: CollectionScanner | None = None,
    ) -> CurrencyDistributionResponse:
        scanner = scanner or CollectionScanner(store)
        totals: dict[str, float] = {}

        results = scanner.scan(store.list_users(), [QueryWindow(start=start, end=end)])
        for batch in successful_batches(results):
            for tx in batch.batches[0]:
                currency = transaction_currency(tx)
                totals[currency] = totals.get(currency, 0.0) + transaction_amount(tx)

        logger.info("currency_distribution_calculated", currencies=len(totals))

        return CurrencyDistributionResponse(data=collapse_currency_totals(totals))
