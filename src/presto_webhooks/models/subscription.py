"""Subscription and event notification models.

A Subscription is owned by an external management collaborator and is
read-only to the delivery engine. An EventNotification is the unit of
work submitted for delivery.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, SecretBytes

from .base import generate_id, utc_now


class Subscription(BaseModel):
    """A registered webhook receiver.

    Attributes:
        id: Unique identifier for this subscription.
        url: Endpoint that receives signed POST callbacks.
        secret: Shared secret for HMAC-SHA256 signatures. Masked in repr and dumps.
        events: Event type names this subscription receives.
        timeout_seconds: Per-attempt timeout (None: engine default, 30s).
        max_attempts: Maximum delivery attempts per notification (None: engine default, 3).
        active: Whether deliveries are allowed at all.
        last_triggered_at: When a delivery sequence last ran against this receiver.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str = Field(default_factory=lambda: generate_id("whk"))
    url: HttpUrl = Field(description="Endpoint to receive events")
    secret: SecretBytes = Field(description="Shared secret for HMAC-SHA256 signatures")
    events: frozenset[str] = Field(
        default_factory=frozenset,
        description="Event types to deliver",
    )
    timeout_seconds: float | None = Field(
        default=None,
        gt=0.0,
        le=300.0,
        description="Per-attempt timeout; the engine default applies when unset",
    )
    max_attempts: int | None = Field(
        default=None,
        ge=1,
        le=10,
        description="Maximum delivery attempts; the engine default applies when unset",
    )
    active: bool = Field(default=True, description="Whether the subscription is active")
    last_triggered_at: datetime | None = Field(
        default=None,
        description="When a delivery sequence last ran",
    )

    def subscribes_to(self, event_type: str) -> bool:
        """Check if this subscription is active and receives the given event type."""
        return self.active and event_type in self.events


class EventNotification(BaseModel):
    """A domain event to deliver.

    Attributes:
        event_type: Event type name, e.g. "checkin.created".
        data: Event-specific payload.
        occurred_at: When the event happened at its origin.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    event_type: str = Field(min_length=1, description="Event type name")
    data: dict[str, Any] = Field(default_factory=dict, description="Event-specific payload")
    occurred_at: datetime = Field(
        default_factory=utc_now,
        description="When the event occurred",
    )


__all__ = ["EventNotification", "Subscription"]
