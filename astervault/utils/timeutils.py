"""Datetime helpers for the JSON boundary.

Columns hold naive UTC datetimes; values leaving the store are re-tagged as
UTC and rendered as ISO-8601.
"""

from datetime import datetime, timezone

from ..errors import ValidationError


def utcnow() -> datetime:
    """Current time as a naive UTC datetime, ready for a DateTime column."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_datetime(value: datetime | str) -> datetime:
    """Parse an ISO-8601 string (``Z`` suffix allowed) or pass a datetime through."""
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Expected ISO-8601 datetime string, got {type(value).__name__}")
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def to_storage(value: datetime | str, operation: str | None = None) -> datetime:
    """Convert to the store's native form: naive datetime in UTC.

    Naive inputs are assumed to already be UTC. With ``operation`` set, an
    unparseable value raises ``ValidationError`` naming that operation.
    """
    try:
        dt = parse_datetime(value)
    except ValueError as exc:
        if operation is None:
            raise
        raise ValidationError(operation, f"invalid datetime {value!r}: expected ISO-8601") from exc
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def to_iso(value: datetime | None) -> str | None:
    """Render a stored datetime as an ISO-8601 UTC string."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()
