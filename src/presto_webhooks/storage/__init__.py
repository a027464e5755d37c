"""Storage boundaries for webhook delivery.

Example:
    ```python
    from presto_webhooks.storage import InMemoryStore

    store = InMemoryStore([subscription])
    subscription = await store.get_subscription("whk_abc123")
    ```
"""

from .base import DeliveryRecorder, SubscriptionStore
from .memory import InMemoryStore
from .retry import recorder_retry

__all__ = [
    "DeliveryRecorder",
    "InMemoryStore",
    "SubscriptionStore",
    "recorder_retry",
]
