#!/usr/bin/env python3
"""Webhook delivery demonstration.

This example delivers one event to a flaky receiver that fails twice
before accepting it. No network is used: the receiver is an
httpx.MockTransport that also verifies the signature header, exactly as
a real receiver would.

Backoff is shortened to milliseconds so the demo finishes quickly.

Usage:
    python examples/local/delivery_demo.py
"""

import asyncio

import httpx

from presto_webhooks.models import EventNotification, Subscription
from presto_webhooks.storage import InMemoryStore
from presto_webhooks.webhooks import (
    SIGNATURE_HEADER,
    BackoffPolicy,
    DeliveryOrchestrator,
    HttpTransport,
    verify_signature,
)

SECRET = b"demo-shared-secret"


def make_receiver() -> httpx.MockTransport:
    """Receiver that answers 503 twice, then 200."""
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        valid = verify_signature(SECRET, request.content, request.headers[SIGNATURE_HEADER])
        print(f"  receiver: call {calls}, signature valid={valid}")
        if calls < 3:
            return httpx.Response(503, text="try again later")
        return httpx.Response(200, text="accepted")

    return httpx.MockTransport(handler)


async def main() -> None:
    """Run the delivery demo."""
    print("=" * 60)
    print("Presto Webhook Delivery Demo")
    print("=" * 60)

    subscription = Subscription(
        url="https://receiver.example.com/hooks",
        secret=SECRET,
        events={"checkin.created"},
        timeout_seconds=5.0,
        max_attempts=3,
    )
    store = InMemoryStore([subscription])
    notification = EventNotification(
        event_type="checkin.created",
        data={"attendee_id": "att_42", "event_id": "evt_7"},
    )

    client = httpx.AsyncClient(transport=make_receiver())
    async with HttpTransport(client=client) as transport:
        orchestrator = DeliveryOrchestrator(
            transport,
            recorder=store,
            backoff=BackoffPolicy(base_seconds=0.01, cap_seconds=0.1),
        )
        print("\n📤 Delivering checkin.created...")
        outcome = await orchestrator.deliver(subscription, notification)
    await client.aclose()

    print(f"\n{'─' * 60}")
    print(f"  success:  {outcome.success}")
    print(f"  status:   {outcome.status_code}")
    print(f"  attempts: {outcome.attempts}")
    for attempt in store.attempts[outcome.delivery_id]:
        print(f"    #{attempt.attempt}: HTTP {attempt.status_code} in {attempt.elapsed_ms:.1f}ms")

    touched = await store.get_subscription(subscription.id)
    print(f"  last triggered: {touched.last_triggered_at if touched else None}")


if __name__ == "__main__":
    asyncio.run(main())
