"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest

from presto_webhooks.models import AttemptResult, EventNotification, Subscription
from presto_webhooks.storage import InMemoryStore

# Add tests directory to path so helpers can be imported
tests_dir = Path(__file__).parent
if str(tests_dir) not in sys.path:
    sys.path.insert(0, str(tests_dir))

FIXED_NOW = datetime(2024, 5, 1, 9, 30, tzinfo=UTC)

ScriptStep = AttemptResult | Callable[[], Awaitable[AttemptResult]]


def response(status_code: int, body: str = "") -> AttemptResult:
    """Attempt result for a receiver that answered."""
    return AttemptResult(status_code=status_code, kind="response", response_body=body)


def timed_out() -> AttemptResult:
    """Attempt result for a receiver that never answered in time."""
    return AttemptResult(kind="timeout", error="Request timed out after 5.0s")


def refused() -> AttemptResult:
    """Attempt result for a receiver that refused the connection."""
    return AttemptResult(kind="network_error", error="Connection refused")


class ScriptedTransport:
    """Transport that replays scripted results, repeating the last one.

    Each step is either an AttemptResult or a coroutine function that
    produces one, for steps that need to block or observe cancellation.
    """

    def __init__(self, *steps: ScriptStep) -> None:
        self._steps = list(steps)
        self.calls: list[dict[str, Any]] = []

    async def attempt(
        self,
        url: str,
        payload: bytes,
        signature: str,
        timestamp: str,
        timeout: float,
        *,
        delivery_id: str | None = None,
        event_type: str | None = None,
    ) -> AttemptResult:
        self.calls.append(
            {
                "url": url,
                "payload": payload,
                "signature": signature,
                "timestamp": timestamp,
                "timeout": timeout,
                "delivery_id": delivery_id,
                "event_type": event_type,
            }
        )
        step = self._steps[min(len(self.calls), len(self._steps)) - 1]
        if isinstance(step, AttemptResult):
            return step
        return await step()


class RecordingSleep:
    """Backoff sleep that returns immediately and remembers each delay."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await asyncio.sleep(0)


@pytest.fixture
def subscription() -> Subscription:
    """Active subscription with three attempts and a 5s timeout."""
    return Subscription(
        id="whk_test123",
        url="https://receiver.example.com/hooks",
        secret=b"test_secret_16chars",
        events={"checkin.created", "checkin.deleted"},
        timeout_seconds=5.0,
        max_attempts=3,
    )


@pytest.fixture
def notification() -> EventNotification:
    """A check-in notification."""
    return EventNotification(
        event_type="checkin.created",
        data={"attendee_id": "att_42", "event_id": "evt_7"},
        occurred_at=FIXED_NOW,
    )


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def clock() -> Callable[[], datetime]:
    return lambda: FIXED_NOW


@pytest.fixture
def store(subscription: Subscription) -> InMemoryStore:
    return InMemoryStore([subscription])
