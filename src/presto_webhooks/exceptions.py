"""Presto webhook exception hierarchy.

Provides structured exceptions for the delivery engine and its API.
All exceptions inherit from PrestoError for easy catching.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from presto_webhooks.models import DeliveryOutcome

RejectionReason = Literal["inactive", "event_not_subscribed"]


class PrestoError(Exception):
    """Base exception for all Presto webhook errors.

    Attributes:
        message: Human-readable error description.
        code: Machine-readable error code for API responses.
    """

    code: str = "presto_error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, object]:
        """Convert exception to API-friendly dictionary."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
            }
        }


class RejectedDelivery(PrestoError):
    """Delivery refused before any attempt was made.

    Raised when the subscription is inactive or does not subscribe to the
    notification's event type. Never retried.

    Attributes:
        subscription_id: Subscription the notification was aimed at.
        reason: Why the delivery was refused.
        outcome: Terminal failed outcome with zero attempts, if one was built.
    """

    code: str = "delivery_rejected"

    def __init__(
        self,
        subscription_id: str,
        reason: RejectionReason,
        outcome: DeliveryOutcome | None = None,
    ) -> None:
        self.subscription_id = subscription_id
        self.reason = reason
        self.outcome = outcome
        if reason == "inactive":
            message = f"Subscription is inactive: {subscription_id}"
        else:
            message = f"Event type not subscribed by {subscription_id}"
        super().__init__(message)

    def to_dict(self) -> dict[str, object]:
        """Convert exception to API-friendly dictionary."""
        return {
            "error": {
                "code": self.code,
                "reason": self.reason,
                "subscription_id": self.subscription_id,
                "message": self.message,
            }
        }


class SigningError(PrestoError):
    """Signature could not be computed.

    Raised when the secret is empty or cannot be used as an HMAC key.
    Fatal for the delivery sequence: no attempt is made.
    """

    code: str = "signing_error"


class AttemptFailure(PrestoError):
    """A single delivery attempt did not get a 2xx response.

    Recovered locally by the retry loop; never raised out of a delivery.

    Attributes:
        attempt: 1-based attempt index.
        status_code: HTTP status, or 0 when no response was received.
        kind: Attempt result kind (response, timeout, network_error).
    """

    code: str = "attempt_failed"

    def __init__(self, attempt: int, status_code: int, kind: str, detail: str | None) -> None:
        self.attempt = attempt
        self.status_code = status_code
        self.kind = kind
        if kind == "response":
            message = f"Attempt {attempt} got HTTP {status_code}"
        else:
            message = f"Attempt {attempt} failed ({kind}): {detail or 'no detail'}"
        super().__init__(message)


class DeliveryExhausted(PrestoError):
    """Delivery sequence ended without a 2xx response.

    Only raised by DeliveryOutcome.raise_for_status(); the orchestrator
    itself reports exhaustion through the outcome's success flag.

    Attributes:
        delivery_id: ID of the failed delivery.
        attempts: Number of attempts made.
        status_code: Final status code (0 if no response).
    """

    code: str = "delivery_exhausted"

    def __init__(self, delivery_id: str, attempts: int, status_code: int) -> None:
        self.delivery_id = delivery_id
        self.attempts = attempts
        self.status_code = status_code
        super().__init__(
            f"Delivery {delivery_id} failed after {attempts} attempt(s) "
            f"(last status {status_code})"
        )

    def to_dict(self) -> dict[str, object]:
        """Convert exception to API-friendly dictionary."""
        return {
            "error": {
                "code": self.code,
                "delivery_id": self.delivery_id,
                "attempts": self.attempts,
                "status_code": self.status_code,
                "message": self.message,
            }
        }


class InvalidTransitionError(PrestoError):
    """Delivery sequence was asked to make an illegal state change."""

    code: str = "invalid_transition"

    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Cannot move delivery from {current} to {target}")


class NotFoundError(PrestoError):
    """Resource not found.

    Attributes:
        resource_type: Type of resource (e.g., "subscription").
        resource_id: ID of the missing resource.
    """

    code: str = "not_found"

    def __init__(self, resource_type: str, resource_id: str) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(f"{resource_type} not found: {resource_id}")

    def to_dict(self) -> dict[str, object]:
        """Convert exception to API-friendly dictionary."""
        return {
            "error": {
                "code": self.code,
                "resource_type": self.resource_type,
                "resource_id": self.resource_id,
                "message": self.message,
            }
        }


class StorageError(PrestoError):
    """Recorder or subscription store operation failed."""

    code: str = "storage_error"


class ConfigurationError(PrestoError):
    """Required configuration is missing or invalid."""

    code: str = "configuration_error"


__all__ = [
    "AttemptFailure",
    "ConfigurationError",
    "DeliveryExhausted",
    "InvalidTransitionError",
    "NotFoundError",
    "PrestoError",
    "RejectedDelivery",
    "RejectionReason",
    "SigningError",
    "StorageError",
]
