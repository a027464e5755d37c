"""Storage boundaries used by the delivery engine.

The engine never owns persistence. It reads subscriptions through a
SubscriptionStore and writes attempts, outcomes and last-triggered
updates through a DeliveryRecorder.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from presto_webhooks.models import DeliveryAttempt, DeliveryRecord, Subscription


@runtime_checkable
class DeliveryRecorder(Protocol):
    """Write-only sink for delivery observability."""

    async def record_attempt(self, attempt: DeliveryAttempt) -> None:
        """Append one attempt of a running sequence."""
        ...

    async def record_outcome(self, record: DeliveryRecord) -> None:
        """Persist the final record of a finished sequence."""
        ...

    async def touch_subscription(self, subscription_id: str, triggered_at: datetime) -> None:
        """Set the subscription's last-triggered time. Last write wins."""
        ...


@runtime_checkable
class SubscriptionStore(Protocol):
    """Read access to subscriber records."""

    async def get_subscription(self, subscription_id: str) -> Subscription | None:
        """Return the subscription, or None if it does not exist."""
        ...


__all__ = ["DeliveryRecorder", "SubscriptionStore"]
