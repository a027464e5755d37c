"""Delivery service: the inbound trigger over the delivery engine.

Looks up the subscription named by a trigger request and hands the
notification to the orchestrator.

Example:
    ```python
    from presto_webhooks.service import DeliveryService

    async with DeliveryService.create(store=store) as service:
        outcome = await service.trigger(
            subscription_id="whk_abc123",
            event_type="checkin.created",
            data={"attendee_id": "att_42"},
        )
        print(outcome.summary())
    ```
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from presto_webhooks.config import Settings
from presto_webhooks.exceptions import NotFoundError
from presto_webhooks.models import DeliveryOutcome, EventNotification
from presto_webhooks.storage import DeliveryRecorder, InMemoryStore, SubscriptionStore
from presto_webhooks.webhooks import DeliveryOrchestrator, HttpTransport


@dataclass
class DeliveryService:
    """Subscription lookup plus delivery orchestration.

    Attributes:
        store: Where subscriptions are read from.
        orchestrator: Runs delivery sequences.
        transport: Transport owned by this service, closed on close().
        settings: Configuration settings.
    """

    store: SubscriptionStore
    orchestrator: DeliveryOrchestrator
    settings: Settings
    transport: HttpTransport | None = None

    @classmethod
    def create(
        cls,
        settings: Settings | None = None,
        store: SubscriptionStore | None = None,
        recorder: DeliveryRecorder | None = None,
    ) -> DeliveryService:
        """Create a DeliveryService with an HTTP transport.

        Args:
            settings: Optional settings. Uses environment if None.
            store: Subscription store. An empty InMemoryStore if None.
            recorder: Delivery recorder. Defaults to the store when it
                also implements DeliveryRecorder.

        Returns:
            Configured DeliveryService instance.
        """
        if settings is None:
            settings = Settings()
        if store is None:
            store = InMemoryStore()
        if recorder is None and isinstance(store, DeliveryRecorder):
            recorder = store

        transport = HttpTransport(
            user_agent=settings.user_agent,
            max_response_bytes=settings.max_response_bytes,
        )
        return cls(
            store=store,
            orchestrator=DeliveryOrchestrator.from_settings(settings, transport, recorder),
            settings=settings,
            transport=transport,
        )

    async def trigger(
        self,
        subscription_id: str,
        event_type: str,
        data: dict[str, Any] | None = None,
    ) -> DeliveryOutcome:
        """Deliver an event to one subscription.

        Raises:
            NotFoundError: No subscription with that ID.
            RejectedDelivery: Subscription inactive or event not subscribed.
            SigningError: The subscription secret is unusable.
        """
        subscription = await self.store.get_subscription(subscription_id)
        if subscription is None:
            raise NotFoundError("subscription", subscription_id)

        notification = EventNotification(event_type=event_type, data=data or {})
        return await self.orchestrator.deliver(subscription, notification)

    async def close(self) -> None:
        """Release the HTTP transport."""
        if self.transport is not None:
            await self.transport.aclose()

    async def __aenter__(self) -> DeliveryService:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


__all__ = ["DeliveryService"]
