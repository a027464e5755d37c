"""Shared helpers for webhook delivery models."""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import uuid4


def generate_id(prefix: str, length: int = 12) -> str:
    """Generate a unique ID with the given prefix.

    Examples:
        generate_id("whk") -> "whk_a1b2c3d4e5f6"
        generate_id("dlv", length=32) -> "dlv_<full uuid4 hex>"
    """
    return f"{prefix}_{uuid4().hex[:length]}"


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def isoformat_utc(moment: datetime) -> str:
    """Render a datetime as ISO-8601 UTC with millisecond precision.

    Naive datetimes are taken to be UTC already.

    Examples:
        isoformat_utc(datetime(2024, 5, 1, 9, 30, tzinfo=UTC))
            -> "2024-05-01T09:30:00.000Z"
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    else:
        moment = moment.astimezone(UTC)
    return moment.replace(tzinfo=None).isoformat(timespec="milliseconds") + "Z"
