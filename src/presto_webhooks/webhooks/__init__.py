"""Webhook delivery engine.

Provides HMAC-signed webhook delivery with bounded retries and
exponential backoff.

Example:
    ```python
    from presto_webhooks.webhooks import DeliveryOrchestrator, HttpTransport

    async with HttpTransport() as transport:
        orchestrator = DeliveryOrchestrator(transport, recorder=store)
        outcome = await orchestrator.deliver(subscription, notification)
    ```
"""

from .backoff import BackoffPolicy
from .delivery import DeliveryOrchestrator, DeliverySequence, deliver_webhook
from .signing import SIGNATURE_ALGORITHM, sign, signature_header, verify_signature
from .transport import (
    DELIVERY_ID_HEADER,
    EVENT_HEADER,
    SIGNATURE_HEADER,
    TIMESTAMP_HEADER,
    HttpTransport,
    Transport,
)

__all__ = [
    "DELIVERY_ID_HEADER",
    "EVENT_HEADER",
    "SIGNATURE_ALGORITHM",
    "SIGNATURE_HEADER",
    "TIMESTAMP_HEADER",
    "BackoffPolicy",
    "DeliveryOrchestrator",
    "DeliverySequence",
    "HttpTransport",
    "Transport",
    "deliver_webhook",
    "sign",
    "signature_header",
    "verify_signature",
]
