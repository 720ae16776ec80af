from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

from google.cloud.firestore_v1.base_query import FieldFilter

from app.core.config import settings
from app.core.constants import CREATED_AT_FIELD, TRANSACTIONS_SUBCOLLECTION, USERS_COLLECTION
from app.core.datetime_utils import parse_flexible_timestamp
from app.core.firebase import get_firestore_client


@dataclass
class UserRecord:
    """A user document: its id and raw data."""

    id: str
    data: dict[str, Any] = field(default_factory=dict)


@dataclass
class TransactionRecord:
    """A document from a user's transactions sub-collection."""

    id: str
    data: dict[str, Any] = field(default_factory=dict)


class DocumentStore(Protocol):
    def list_users(self) -> list[UserRecord]:
        """Return every user document."""
        ...

    def query_transactions(
        self,
        user_id: str,
        start: datetime | None,
        end: datetime,
        *,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[TransactionRecord]:
        """Return a user's transactions with start <= createdAt <= end.

        A None start means no lower bound. With descending=True results are
        ordered newest first; limit caps the number returned.
        """
        ...


class InMemoryStore:
    """Dictionary-backed store for local development and tests."""

    def __init__(
        self,
        users: dict[str, dict[str, Any]] | None = None,
        transactions: dict[str, dict[str, dict[str, Any]]] | None = None,
    ) -> None:
        self._users: dict[str, dict[str, Any]] = dict(users or {})
        self._transactions: dict[str, dict[str, dict[str, Any]]] = {
            user_id: dict(docs) for user_id, docs in (transactions or {}).items()
        }

    def add_user(self, user_id: str, data: dict[str, Any] | None = None) -> None:
        self._users[user_id] = dict(data or {})

    def add_transaction(self, user_id: str, transaction_id: str, data: dict[str, Any]) -> None:
        self._transactions.setdefault(user_id, {})[transaction_id] = dict(data)

    def list_users(self) -> list[UserRecord]:
        return [UserRecord(id=user_id, data=dict(data)) for user_id, data in self._users.items()]

    def query_transactions(
        self,
        user_id: str,
        start: datetime | None,
        end: datetime,
        *,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[TransactionRecord]:
        matched: list[tuple[datetime, TransactionRecord]] = []
        for tx_id, data in self._transactions.get(user_id, {}).items():
            # Documents without a comparable createdAt never match a range query
            created_at = parse_flexible_timestamp(data.get(CREATED_AT_FIELD))
            if created_at is None or created_at > end:
                continue
            if start is not None and created_at < start:
                continue
            matched.append((created_at, TransactionRecord(id=tx_id, data=dict(data))))

        if descending:
            matched.sort(key=lambda item: item[0], reverse=True)
        records = [record for _, record in matched]
        if limit is not None:
            records = records[:limit]
        return records


class FirestoreStore:
    """Cloud Firestore via the Firebase Admin SDK."""

    def __init__(self, client: Any | None = None) -> None:
        self._client = client

    @property
    def client(self) -> Any:
        # Resolved on first use so a missing Firebase app surfaces as a request error
        if self._client is None:
            self._client = get_firestore_client()
        return self._client

    def list_users(self) -> list[UserRecord]:
        snapshots = self.client.collection(USERS_COLLECTION).get()
        return [UserRecord(id=snap.id, data=snap.to_dict() or {}) for snap in snapshots]

    def query_transactions(
        self,
        user_id: str,
        start: datetime | None,
        end: datetime,
        *,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[TransactionRecord]:
        query = (
            self.client.collection(USERS_COLLECTION)
            .document(user_id)
            .collection(TRANSACTIONS_SUBCOLLECTION)
        )
        if start is not None:
            query = query.where(filter=FieldFilter(CREATED_AT_FIELD, ">=", start))
        query = query.where(filter=FieldFilter(CREATED_AT_FIELD, "<=", end))
        if descending:
            query = query.order_by(CREATED_AT_FIELD, direction="DESCENDING")
        if limit is not None:
            query = query.limit(limit)

        return [TransactionRecord(id=snap.id, data=snap.to_dict() or {}) for snap in query.get()]


_store_instance: DocumentStore | None = None


def get_store() -> DocumentStore:
    """Return the configured document store (FastAPI dependency)."""
    global _store_instance
    if _store_instance is None:
        if settings.STORE_BACKEND == "memory":
            _store_instance = InMemoryStore()
        else:
            _store_instance = FirestoreStore()
    return _store_instance


def reset_store() -> None:
    global _store_instance
    _store_instance = None
