"""In-process subscription store and delivery recorder.

Keeps everything in dictionaries. Suitable for tests, demos and single
process deployments where delivery history does not need to survive a
restart.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from datetime import datetime

from presto_webhooks.models import DeliveryAttempt, DeliveryRecord, Subscription


class InMemoryStore:
    """Dictionary-backed SubscriptionStore and DeliveryRecorder.

    Example:
        ```python
        store = InMemoryStore([subscription])
        orchestrator = DeliveryOrchestrator(transport, recorder=store)
        outcome = await orchestrator.deliver(subscription, notification)
        assert store.records[-1].attempts == outcome.attempts
        ```
    """

    def __init__(self, subscriptions: list[Subscription] | None = None) -> None:
        self._subscriptions: dict[str, Subscription] = {}
        self._lock = asyncio.Lock()
        self.attempts: dict[str, list[DeliveryAttempt]] = defaultdict(list)
        self.records: list[DeliveryRecord] = []
        for subscription in subscriptions or []:
            self.add_subscription(subscription)

    def add_subscription(self, subscription: Subscription) -> None:
        """Register or replace a subscription."""
        self._subscriptions[subscription.id] = subscription

    async def get_subscription(self, subscription_id: str) -> Subscription | None:
        return self._subscriptions.get(subscription_id)

    async def record_attempt(self, attempt: DeliveryAttempt) -> None:
        async with self._lock:
            self.attempts[attempt.delivery_id].append(attempt)

    async def record_outcome(self, record: DeliveryRecord) -> None:
        async with self._lock:
            self.records.append(record)

    async def touch_subscription(self, subscription_id: str, triggered_at: datetime) -> None:
        async with self._lock:
            current = self._subscriptions.get(subscription_id)
            if current is None:
                return
            # Subscriptions are frozen; swap in an updated copy
            self._subscriptions[subscription_id] = current.model_copy(
                update={"last_triggered_at": triggered_at}
            )


__all__ = ["InMemoryStore"]
