"""Pydantic schemas for API request/response models."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class DeliveryRequest(BaseModel):
    """Request body for triggering a webhook delivery.

    Attributes:
        subscription_id: Subscription to deliver to.
        event_type: Event type name, e.g. "checkin.created".
        data: Event payload delivered to the receiver.
    """

    model_config = ConfigDict(extra="forbid")

    subscription_id: str = Field(min_length=1, description="Target subscription ID")
    event_type: str = Field(min_length=1, description="Event type name")
    data: dict[str, Any] = Field(default_factory=dict, description="Event payload")


class DeliveryResponse(BaseModel):
    """Summary of a finished delivery sequence.

    Attributes:
        success: Whether the receiver answered with a 2xx.
        status: Final HTTP status (0 if no response was received).
        attempts: Number of attempts made.
        subscription_id: Target subscription.
        delivery_id: ID sent to the receiver as the payload "id".
    """

    model_config = ConfigDict(extra="forbid")

    success: bool
    status: int
    attempts: int
    subscription_id: str
    delivery_id: str


class HealthResponse(BaseModel):
    """Response for health check endpoint.

    Attributes:
        status: Service status.
        version: API version.
    """

    model_config = ConfigDict(extra="forbid")

    status: Literal["healthy", "unhealthy"]
    version: str
