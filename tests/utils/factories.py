import uuid
from datetime import UTC, datetime
from typing import Any

from faker import Faker

from app.core.store import InMemoryStore

fake = Faker()


def create_user_factory(
    store: InMemoryStore,
    user_id: str | None = None,
    email: str | None = None,
    name: str | None = None,
    last_active: Any = None,
    **extra: Any,
) -> str:
    """
    Factory function to create test users.

    Args:
        store: In-memory store to add the user to
        user_id: Document id (generates random if None)
        email: User email (generates random if None)
        name: Display name (generates random if None)
        last_active: Raw lastActive value, in any supported encoding

    Returns:
        The user document id
    """
    user_id = user_id or str(uuid.uuid4())
    data: dict[str, Any] = {"email": email or fake.email(), "displayName": name or fake.name()}
    if last_active is not None:
        data["lastActive"] = last_active
    data.update(extra)
    store.add_user(user_id, data)
    return user_id


def create_transaction_factory(
    store: InMemoryStore,
    user_id: str,
    amount: Any = 100,
    created_at: Any = None,
    currency: str | None = "USD",
    type: str | None = "transfer",
    status: str | None = "completed",
    transaction_id: str | None = None,
    **extra: Any,
) -> str:
    """
    Factory function to create test transactions under a user.

    ``None`` values are left out of the document, as in legacy records.

    Returns:
        The transaction document id
    """
    transaction_id = transaction_id or str(uuid.uuid4())
    data: dict[str, Any] = {
        "amount": amount,
        "createdAt": created_at if created_at is not None else datetime.now(UTC),
        "currency": currency,
        "type": type,
        "status": status,
    }
    data.update(extra)
    store.add_transaction(
        user_id, transaction_id, {key: value for key, value in data.items() if value is not None}
    )
    return transaction_id
