"""Data models for webhook delivery.

Subscription Types:
    - Subscription: A registered receiver (read-only to the engine)
    - EventNotification: The unit of work submitted for delivery

Delivery Types:
    - CanonicalPayload: The exact bytes that are signed and transmitted
    - AttemptResult / DeliveryAttempt: One HTTP exchange
    - DeliveryOutcome: Final result of a delivery sequence
    - DeliveryRecord: Persisted shape of an outcome
"""

from .base import generate_id, isoformat_utc, utc_now
from .delivery import (
    NO_RESPONSE_STATUS,
    AttemptKind,
    AttemptResult,
    CanonicalPayload,
    DeliveryAttempt,
    DeliveryOutcome,
    DeliveryRecord,
    DeliveryState,
    is_success_status,
)
from .subscription import EventNotification, Subscription

__all__ = [
    # Helpers
    "generate_id",
    "isoformat_utc",
    "utc_now",
    # Subscriptions
    "EventNotification",
    "Subscription",
    # Delivery
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
