"""Timestamp normalization shared by the store and the statistics services.

Transaction and user documents carry timestamps in several legacy
encodings: native Firestore timestamps, serialized ``{"_seconds": ...}``
objects and ISO-8601 strings. Everything is normalized to timezone-aware
UTC datetimes here.
"""

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _from_seconds(seconds: Any, nanoseconds: Any = 0) -> datetime | None:
    try:
        total = float(seconds) + float(nanoseconds or 0) / 1_000_000_000
        return datetime.fromtimestamp(total, tz=UTC)
    except (TypeError, ValueError, OverflowError, OSError):
        return None


def parse_iso_datetime(value: str) -> datetime | None:
    """Parse an ISO-8601 date or datetime string.

    Date-only strings are midnight UTC; a trailing ``Z`` is accepted.
    Returns None for anything that does not parse.
    """
    text = value.strip()
    if not text:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return _as_utc(datetime.fromisoformat(text))
    except ValueError:
        return None


def parse_flexible_timestamp(value: Any) -> datetime | None:
    """Normalize a stored timestamp to an aware UTC datetime.

    Accepts native datetimes (including Firestore's ``DatetimeWithNanoseconds``),
    objects with a ``to_datetime()`` method, mappings with ``_seconds`` or
    ``seconds``, and ISO strings. Returns None for missing or invalid input.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, str):
        return parse_iso_datetime(value)
    if isinstance(value, Mapping):
        if value.get("_seconds") is not None:
            return _from_seconds(value["_seconds"], value.get("_nanoseconds"))
        if value.get("seconds") is not None:
            return _from_seconds(value["seconds"], value.get("nanoseconds"))
        return None

    to_datetime = getattr(value, "to_datetime", None)
    if callable(to_datetime):
        converted = to_datetime()
        if isinstance(converted, datetime):
            return _as_utc(converted)
    return None


def to_iso_string(value: datetime) -> str:
    """Format as ``2024-01-31T12:00:00.000Z``, the shape the dashboard expects."""
    value = _as_utc(value)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"
