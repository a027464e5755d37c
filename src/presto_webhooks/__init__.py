"""Presto webhooks: signed event notifications with durable delivery.

When a domain event occurs, registered subscribers receive an HMAC-signed
HTTP callback. Deliveries retry with exponential backoff, enforce a hard
per-attempt timeout, and leave a delivery record behind.

Quick Start:
    from presto_webhooks import EventNotification, Subscription
    from presto_webhooks.webhooks import deliver_webhook

    subscription = Subscription(
        url="https://example.com/hooks",
        secret=b"shared-secret",
        events={"checkin.created"},
    )
    outcome = await deliver_webhook(
        subscription,
        EventNotification(event_type="checkin.created", data={"attendee_id": "att_42"}),
    )
    print(outcome.success, outcome.attempts)

Receivers verify the X-Webhook-Signature header with
presto_webhooks.webhooks.verify_signature.
"""

__version__ = "1.0.0"

# Configuration
from .config import Settings, settings

# Exceptions
from .exceptions import (
    AttemptFailure,
    ConfigurationError,
    DeliveryExhausted,
    InvalidTransitionError,
    NotFoundError,
    PrestoError,
    RejectedDelivery,
    SigningError,
    StorageError,
)

# Logging
from .logging import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    logger,
    unbind_context,
)

# Models
from .models import (
    AttemptResult,
    CanonicalPayload,
    DeliveryAttempt,
    DeliveryOutcome,
    DeliveryRecord,
    DeliveryState,
    EventNotification,
    Subscription,
)

__all__ = [
    # Version
    "__version__",
    # Configuration
    "Settings",
    "settings",
    # Exceptions
    "PrestoError",
    "RejectedDelivery",
    "SigningError",
    "AttemptFailure",
    "DeliveryExhausted",
    "InvalidTransitionError",
    "NotFoundError",
    "StorageError",
    "ConfigurationError",
    # Logging
    "configure_logging",
    "get_logger",
    "logger",
    "bind_context",
    "clear_context",
    "unbind_context",
    # Models
    "Subscription",
    "EventNotification",
    "CanonicalPayload",
    "AttemptResult",
    "DeliveryAttempt",
    "DeliveryOutcome",
    "DeliveryRecord",
    "DeliveryState",
]
