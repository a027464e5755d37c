"""Delivery models: canonical payload, attempts, outcomes and records.

The canonical payload is serialized exactly once. The same bytes are
signed and sent, so nothing downstream may re-serialize it.
"""

from __future__ import annotations

import json
from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from presto_webhooks.exceptions import DeliveryExhausted

from .base import generate_id, isoformat_utc, utc_now
from .subscription import EventNotification

# Transport result kinds. Only "response" carries a real HTTP status.
AttemptKind = Literal["response", "timeout", "network_error"]

NO_RESPONSE_STATUS = 0


class DeliveryState(str, Enum):
    """Lifecycle of one delivery sequence."""

    PENDING = "pending"
    ATTEMPTING = "attempting"
    BACKING_OFF = "backing_off"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"
    CANCELLED = "cancelled"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATES


_TERMINAL_STATES = frozenset(
    {
        DeliveryState.SUCCEEDED,
        DeliveryState.EXHAUSTED,
        DeliveryState.CANCELLED,
        DeliveryState.REJECTED,
    }
)


def is_success_status(status_code: int) -> bool:
    """Only 2xx responses count as a delivered webhook."""
    return 200 <= status_code < 300


class CanonicalPayload(BaseModel):
    """The exact bytes that are both signed and transmitted.

    Build instances with CanonicalPayload.build(); the constructor does
    not serialize anything.

    Attributes:
        delivery_id: Delivery-unique identifier (sent as "id").
        event_type: Event type name.
        data: Event payload.
        timestamp: ISO-8601 UTC timestamp, also sent as a header.
        webhook_id: Subscription identity.
        body: Serialized JSON bytes.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    delivery_id: str
    event_type: str
    data: dict[str, Any]
    timestamp: str
    webhook_id: str
    body: bytes = Field(repr=False)

    @classmethod
    def build(
        cls,
        subscription_id: str,
        notification: EventNotification,
        delivery_id: str | None = None,
        sent_at: datetime | None = None,
    ) -> CanonicalPayload:
        """Assign a delivery id and timestamp, then serialize once."""
        delivery_id = delivery_id or generate_id("dlv", length=32)
        timestamp = isoformat_utc(sent_at or utc_now())
        document = {
            "id": delivery_id,
            "event_type": notification.event_type,
            "data": notification.data,
            "timestamp": timestamp,
            "webhook_id": subscription_id,
        }
        body = json.dumps(
            document, separators=(",", ":"), ensure_ascii=False, default=str
        ).encode("utf-8")
        return cls(
            delivery_id=delivery_id,
            event_type=notification.event_type,
            data=notification.data,
            timestamp=timestamp,
            webhook_id=subscription_id,
            body=body,
        )

    def as_transmitted(self) -> dict[str, Any]:
        """Decode the transmitted bytes back into a JSON object."""
        return json.loads(self.body)  # type: ignore[no-any-return]


class AttemptResult(BaseModel):
    """Result of a single HTTP exchange, uninterpreted.

    Attributes:
        status_code: HTTP status, or 0 when no response arrived.
        kind: How the exchange ended.
        response_body: Response text, bounded by the transport.
        elapsed_ms: Wall time spent on the exchange.
        error: Error description for timeouts and network failures.
    """

    model_config = ConfigDict(extra="forbid")

    status_code: int = Field(default=NO_RESPONSE_STATUS, ge=0)
    kind: AttemptKind = "response"
    response_body: str = ""
    elapsed_ms: float = Field(default=0.0, ge=0.0)
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.kind == "response" and is_success_status(self.status_code)


class DeliveryAttempt(AttemptResult):
    """One recorded attempt within a delivery sequence."""

    delivery_id: str
    subscription_id: str
    attempt: int = Field(ge=1, description="1-based attempt index")
    attempted_at: datetime = Field(default_factory=utc_now)

    @classmethod
    def from_result(
        cls,
        result: AttemptResult,
        delivery_id: str,
        subscription_id: str,
        attempt: int,
        attempted_at: datetime,
    ) -> DeliveryAttempt:
        return cls(
            delivery_id=delivery_id,
            subscription_id=subscription_id,
            attempt=attempt,
            attempted_at=attempted_at,
            **result.model_dump(),
        )


class DeliveryRecord(BaseModel):
    """Persisted shape of a finished delivery sequence."""

    model_config = ConfigDict(extra="forbid")

    subscription_id: str
    event_type: str
    payload: dict[str, Any] | None
    response_status: int
    response_body: str
    attempts: int
    delivered_at: datetime | None = None


class DeliveryOutcome(BaseModel):
    """Final result of one notification delivered to one subscription.

    Attributes:
        delivery_id: ID shared by the payload, attempts and record.
        subscription_id: Target subscription.
        event_type: Delivered event type.
        state: Terminal sequence state.
        success: True iff an attempt received a 2xx response.
        status_code: Final HTTP status, 0 if the final attempt got no response.
        response_body: Final response body, or the last error message.
        attempts: Number of attempts actually made.
        attempt_log: Every attempt in order.
        payload: Payload as transmitted (None when nothing was built).
        delivered_at: Completion time, present only on success.
    """

    model_config = ConfigDict(extra="forbid")

    delivery_id: str
    subscription_id: str
    event_type: str
    state: DeliveryState
    success: bool = False
    status_code: int = NO_RESPONSE_STATUS
    response_body: str = ""
    attempts: int = 0
    attempt_log: list[DeliveryAttempt] = Field(default_factory=list)
    payload: dict[str, Any] | None = None
    delivered_at: datetime | None = None

    def raise_for_status(self) -> DeliveryOutcome:
        """Raise DeliveryExhausted unless the delivery succeeded."""
        if not self.success:
            raise DeliveryExhausted(self.delivery_id, self.attempts, self.status_code)
        return self

    def to_record(self) -> DeliveryRecord:
        """Shape the record handed to the delivery recorder."""
        return DeliveryRecord(
            subscription_id=self.subscription_id,
            event_type=self.event_type,
            payload=self.payload,
            response_status=self.status_code,
            response_body=self.response_body,
            attempts=self.attempts,
            delivered_at=self.delivered_at if self.success else None,
        )

    def summary(self) -> dict[str, object]:
        """Short result returned to the caller that triggered the delivery."""
        return {
            "success": self.success,
            "status": self.status_code,
            "attempts": self.attempts,
            "subscription_id": self.subscription_id,
            "delivery_id": self.delivery_id,
        }


__all__ = [
    "NO_RESPONSE_STATUS",
    "AttemptKind",
    "AttemptResult",
    "CanonicalPayload",
    "DeliveryAttempt",
    "DeliveryOutcome",
    "DeliveryRecord",
    "DeliveryState",
    "is_success_status",
]
