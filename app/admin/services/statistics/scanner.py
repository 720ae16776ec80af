"""Per-user scan of the transactions sub-collections.

Every user yields exactly one ``ScanResult``: either a ``UserBatch`` with one
list of transactions per requested window, or a ``ScanError``. A failing
user never aborts the scan of the others; callers fold the batches and
treat errors as zero transactions.
"""

from collections.abc import Iterable, Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime

import structlog

from app.core.config import settings
from app.core.store import DocumentStore, TransactionRecord, UserRecord

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class QueryWindow:
    """One range query to run against every user's transactions."""

    start: datetime | None
    end: datetime
    descending: bool = False
    limit: int | None = None


@dataclass
class UserBatch:
    user: UserRecord
    batches: list[list[TransactionRecord]] = field(default_factory=list)


@dataclass
class ScanError:
    user: UserRecord
    error: Exception


ScanResult = UserBatch | ScanError


class CollectionScanner:
    """Runs the same set of windowed queries for each user."""

    def __init__(self, store: DocumentStore, concurrency: int | None = None) -> None:
        self._store = store
        if concurrency is None:
            concurrency = settings.SCAN_CONCURRENCY
        self._concurrency = max(1, concurrency)

    def scan_user(self, user: UserRecord, windows: Sequence[QueryWindow]) -> ScanResult:
        try:
            batches = [
                self._store.query_transactions(
                    user.id,
                    window.start,
                    window.end,
                    descending=window.descending,
                    limit=window.limit,
                )
                for window in windows
            ]
        except Exception as e:
            # Usually a user without a transactions sub-collection
            logger.info("user_scan_failed", user_id=user.id, error=str(e))
            return ScanError(user=user, error=e)
        return UserBatch(user=user, batches=batches)

    def scan(self, users: Sequence[UserRecord], windows: Sequence[QueryWindow]) -> list[ScanResult]:
        """Scan all users; results are in the same order as ``users``."""
        if self._concurrency == 1 or len(users) <= 1:
            results = [self.scan_user(user, windows) for user in users]
        else:
            with ThreadPoolExecutor(max_workers=self._concurrency) as pool:
                results = list(pool.map(lambda user: self.scan_user(user, windows), users))

        failed = sum(1 for result in results if isinstance(result, ScanError))
        if failed:
            logger.info("scan_completed_with_errors", users=len(users), failed=failed)
        return results


def successful_batches(results: Iterable[ScanResult]) -> Iterator[UserBatch]:
    """Yield the successful batches, skipping users whose scan failed."""
    for result in results:
        if isinstance(result, UserBatch):
            yield result
