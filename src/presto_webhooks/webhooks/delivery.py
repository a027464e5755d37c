"""Webhook delivery orchestration with bounded retries.

One delivery sequence takes one notification to one subscription:

    PENDING -> ATTEMPTING -> (BACKING_OFF -> ATTEMPTING)* -> SUCCEEDED
                                                          -> EXHAUSTED
                                                          -> CANCELLED
    PENDING -> REJECTED

Only the backoff sleep and the network call suspend a sequence. Both are
raced against an optional cancellation event, which is also checked
before each of them starts.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from datetime import datetime
from typing import TYPE_CHECKING, Any, TypeVar

from presto_webhooks.exceptions import (
    AttemptFailure,
    ConfigurationError,
    InvalidTransitionError,
    RejectedDelivery,
    SigningError,
    StorageError,
)
from presto_webhooks.models import (
    NO_RESPONSE_STATUS,
    AttemptResult,
    CanonicalPayload,
    DeliveryAttempt,
    DeliveryOutcome,
    DeliveryState,
    EventNotification,
    Subscription,
    generate_id,
    utc_now,
)
from presto_webhooks.storage.retry import recorder_retry

from .backoff import BackoffPolicy
from .signing import sign
from .transport import HttpTransport, Transport

if TYPE_CHECKING:
    from presto_webhooks.config import Settings
    from presto_webhooks.storage import DeliveryRecorder

logger = logging.getLogger(__name__)

T = TypeVar("T")

SleepFunc = Callable[[float], Awaitable[Any]]
Clock = Callable[[], datetime]

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_ATTEMPTS = 3

_TRANSITIONS: dict[DeliveryState, frozenset[DeliveryState]] = {
    DeliveryState.PENDING: frozenset(
        {DeliveryState.ATTEMPTING, DeliveryState.REJECTED, DeliveryState.CANCELLED}
    ),
    DeliveryState.ATTEMPTING: frozenset(
        {
            DeliveryState.BACKING_OFF,
            DeliveryState.SUCCEEDED,
            DeliveryState.EXHAUSTED,
            DeliveryState.CANCELLED,
        }
    ),
    DeliveryState.BACKING_OFF: frozenset({DeliveryState.ATTEMPTING, DeliveryState.CANCELLED}),
}


class _Cancelled:
    """Marker returned when the cancellation event wins a race."""


_CANCELLED = _Cancelled()


class DeliverySequence:
    """Mutable state of one delivery sequence.

    Owned by a single deliver() call; never shared between sequences.
    """

    def __init__(
        self,
        subscription: Subscription,
        notification: EventNotification,
        max_attempts: int,
        timeout_seconds: float,
    ) -> None:
        self.subscription = subscription
        self.notification = notification
        self.max_attempts = max_attempts
        self.timeout_seconds = timeout_seconds
        self.delivery_id = generate_id("dlv", length=32)
        self.state = DeliveryState.PENDING
        self.payload: CanonicalPayload | None = None
        self.attempts: list[DeliveryAttempt] = []
        self.delivered_at: datetime | None = None
        # Set once a network call has started, even if it is later aborted
        self.contacted = False

    def transition(self, target: DeliveryState) -> None:
        if target not in _TRANSITIONS.get(self.state, frozenset()):
            raise InvalidTransitionError(self.state.value, target.value)
        self.state = target

    @property
    def next_attempt(self) -> int:
        return len(self.attempts) + 1

    @property
    def has_attempts_left(self) -> bool:
        return len(self.attempts) < self.max_attempts

    def to_outcome(self) -> DeliveryOutcome:
        """Freeze the sequence into a DeliveryOutcome."""
        last = self.attempts[-1] if self.attempts else None
        success = self.state == DeliveryState.SUCCEEDED
        if last is None:
            status_code, response_body = NO_RESPONSE_STATUS, ""
        elif last.kind == "response":
            status_code, response_body = last.status_code, last.response_body
        else:
            status_code, response_body = NO_RESPONSE_STATUS, last.error or "Unknown error"
        return DeliveryOutcome(
            delivery_id=self.delivery_id,
            subscription_id=self.subscription.id,
            event_type=self.notification.event_type,
            state=self.state,
            success=success,
            status_code=status_code,
            response_body=response_body,
            attempts=len(self.attempts),
            attempt_log=list(self.attempts),
            payload=self.payload.as_transmitted() if self.payload else None,
            delivered_at=self.delivered_at if success else None,
        )


class DeliveryOrchestrator:
    """Drives signed webhook deliveries through retries and backoff.

    Handles:
    - Rejecting inactive or unsubscribed targets before any network call
    - Building and signing the canonical payload once
    - Attempting delivery with exponential backoff between failures
    - Recording every attempt and the final outcome
    - Fanning one notification out to many subscriptions

    Example:
        ```python
        async with HttpTransport() as transport:
            orchestrator = DeliveryOrchestrator(transport, recorder=store)
            outcome = await orchestrator.deliver(subscription, notification)
            if not outcome.success:
                ...
        ```
    """

    def __init__(
        self,
        transport: Transport,
        recorder: DeliveryRecorder | None = None,
        backoff: BackoffPolicy | None = None,
        *,
        default_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        default_max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        max_concurrent: int = 10,
        sleep: SleepFunc = asyncio.sleep,
        clock: Clock = utc_now,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            transport: Performs single delivery attempts.
            recorder: Sink for attempts and outcomes. Nothing is recorded if None.
            backoff: Delay schedule between attempts.
            default_timeout_seconds: Timeout for subscriptions without one.
            default_max_attempts: Attempt budget for subscriptions without one.
            max_concurrent: Maximum concurrent sequences during dispatch().
            sleep: Coroutine function used for backoff waits.
            clock: Source of timestamps.

        Raises:
            ConfigurationError: A default budget or the concurrency limit is not positive.
        """
        if default_timeout_seconds <= 0:
            raise ConfigurationError(
                f"default_timeout_seconds must be positive, got {default_timeout_seconds}"
            )
        if default_max_attempts < 1:
            raise ConfigurationError(
                f"default_max_attempts must be at least 1, got {default_max_attempts}"
            )
        if max_concurrent < 1:
            raise ConfigurationError(f"max_concurrent must be at least 1, got {max_concurrent}")

        self._transport = transport
        self._recorder = recorder
        self._backoff = backoff or BackoffPolicy()
        self._default_timeout = default_timeout_seconds
        self._default_max_attempts = default_max_attempts
        self._max_concurrent = max_concurrent
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._sleep = sleep
        self._clock = clock

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: Transport,
        recorder: DeliveryRecorder | None = None,
    ) -> DeliveryOrchestrator:
        """Create an orchestrator using configured defaults and backoff."""
        return cls(
            transport,
            recorder=recorder,
            backoff=BackoffPolicy(
                base_seconds=settings.backoff_base_seconds,
                cap_seconds=settings.backoff_cap_seconds,
            ),
            default_timeout_seconds=settings.default_timeout_seconds,
            default_max_attempts=settings.default_max_attempts,
            max_concurrent=settings.max_concurrent_deliveries,
        )

    async def deliver(
        self,
        subscription: Subscription,
        notification: EventNotification,
        cancel_event: asyncio.Event | None = None,
    ) -> DeliveryOutcome:
        """Deliver one notification to one subscription.

        Args:
            subscription: Target receiver.
            notification: Event to deliver.
            cancel_event: When set, stops the sequence at the next
                suspension point and aborts an in-flight request.

        Returns:
            The terminal DeliveryOutcome. Exhaustion and cancellation are
            reported through outcome.success, not raised.

        Raises:
            RejectedDelivery: Subscription inactive or event not subscribed.
            SigningError: The secret cannot be used for signing.
        """
        sequence = DeliverySequence(
            subscription,
            notification,
            max_attempts=subscription.max_attempts or self._default_max_attempts,
            timeout_seconds=subscription.timeout_seconds or self._default_timeout,
        )
        self._check_preconditions(sequence)

        payload = CanonicalPayload.build(
            subscription.id,
            notification,
            delivery_id=sequence.delivery_id,
            sent_at=self._clock(),
        )
        try:
            signature = sign(subscription.secret, payload.body)
        except SigningError:
            logger.error(
                "Cannot sign webhook %s for subscription %s",
                sequence.delivery_id,
                subscription.id,
            )
            raise
        sequence.payload = payload

        await self._run(sequence, payload, signature, cancel_event)

        outcome = sequence.to_outcome()
        await self._finish(outcome, contacted=sequence.contacted)
        return outcome

    async def dispatch(
        self,
        notification: EventNotification,
        subscriptions: Iterable[Subscription],
        cancel_event: asyncio.Event | None = None,
    ) -> list[DeliveryOutcome]:
        """Deliver a notification to every subscription that wants it.

        Inactive and unsubscribed subscriptions are skipped. Deliveries run
        concurrently, at most max_concurrent at a time.

        Returns:
            Outcomes of the sequences that ran, in subscription order.
        """
        targets = [s for s in subscriptions if s.subscribes_to(notification.event_type)]
        if not targets:
            logger.debug("No subscriptions for event %s", notification.event_type)
            return []

        async def _bounded(subscription: Subscription) -> DeliveryOutcome:
            async with self._semaphore:
                return await self.deliver(subscription, notification, cancel_event)

        results = await asyncio.gather(
            *(_bounded(subscription) for subscription in targets),
            return_exceptions=True,
        )

        outcomes: list[DeliveryOutcome] = []
        for subscription, result in zip(targets, results, strict=True):
            if isinstance(result, DeliveryOutcome):
                outcomes.append(result)
            elif isinstance(result, Exception):
                logger.error("Webhook delivery to %s failed: %s", subscription.id, result)
            else:
                raise result
        return outcomes

    def _check_preconditions(self, sequence: DeliverySequence) -> None:
        subscription = sequence.subscription
        event_type = sequence.notification.event_type
        if not subscription.active:
            reason = "inactive"
        elif event_type not in subscription.events:
            reason = "event_not_subscribed"
        else:
            return

        sequence.transition(DeliveryState.REJECTED)
        logger.info(
            "Webhook %s rejected for subscription %s: %s",
            event_type,
            subscription.id,
            reason,
        )
        raise RejectedDelivery(subscription.id, reason, outcome=sequence.to_outcome())

    async def _run(
        self,
        sequence: DeliverySequence,
        payload: CanonicalPayload,
        signature: str,
        cancel_event: asyncio.Event | None,
    ) -> None:
        subscription = sequence.subscription

        while sequence.has_attempts_left:
            index = sequence.next_attempt

            if index > 1:
                if _is_set(cancel_event):
                    sequence.transition(DeliveryState.CANCELLED)
                    break
                delay = self._backoff.delay_before_attempt(index)
                sequence.transition(DeliveryState.BACKING_OFF)
                logger.info(
                    "Waiting %.1fs before attempt %d/%d to %s",
                    delay,
                    index,
                    sequence.max_attempts,
                    subscription.url,
                )
                slept = await self._race(self._sleep(delay), cancel_event)
                if isinstance(slept, _Cancelled):
                    sequence.transition(DeliveryState.CANCELLED)
                    break

            if _is_set(cancel_event):
                sequence.transition(DeliveryState.CANCELLED)
                break

            sequence.transition(DeliveryState.ATTEMPTING)
            attempted_at = self._clock()
            logger.info(
                "Webhook delivery attempt %d/%d to %s",
                index,
                sequence.max_attempts,
                subscription.url,
            )
            sequence.contacted = True
            result = await self._race(
                self._attempt(sequence, payload, signature),
                cancel_event,
            )
            if isinstance(result, _Cancelled):
                sequence.transition(DeliveryState.CANCELLED)
                break

            attempt = DeliveryAttempt.from_result(
                result,
                delivery_id=sequence.delivery_id,
                subscription_id=subscription.id,
                attempt=index,
                attempted_at=attempted_at,
            )
            sequence.attempts.append(attempt)
            await self._record_attempt(attempt)

            if attempt.succeeded:
                sequence.delivered_at = self._clock()
                sequence.transition(DeliveryState.SUCCEEDED)
                logger.info(
                    "Webhook delivered: %s to %s (status %d, attempt %d)",
                    payload.event_type,
                    subscription.url,
                    attempt.status_code,
                    index,
                )
                return

            failure = AttemptFailure(index, attempt.status_code, attempt.kind, attempt.error)
            logger.warning("Webhook delivery to %s failed: %s", subscription.url, failure)
        else:
            sequence.transition(DeliveryState.EXHAUSTED)
            logger.warning(
                "Webhook max attempts exceeded: %s to %s after %d attempts",
                payload.event_type,
                subscription.url,
                len(sequence.attempts),
            )
            return

        logger.info(
            "Webhook delivery %s cancelled after %d attempts",
            sequence.delivery_id,
            len(sequence.attempts),
        )

    async def _attempt(
        self,
        sequence: DeliverySequence,
        payload: CanonicalPayload,
        signature: str,
    ) -> AttemptResult:
        """Make one transport attempt; a raising transport counts as a network error."""
        try:
            return await self._transport.attempt(
                str(sequence.subscription.url),
                payload.body,
                signature,
                payload.timestamp,
                sequence.timeout_seconds,
                delivery_id=sequence.delivery_id,
                event_type=payload.event_type,
            )
        except Exception as e:
            logger.warning(
                "Transport raised on attempt %d of %s",
                sequence.next_attempt,
                sequence.delivery_id,
                exc_info=True,
            )
            return AttemptResult(kind="network_error", error=str(e) or type(e).__name__)

    async def _race(
        self,
        work: Awaitable[T],
        cancel_event: asyncio.Event | None,
    ) -> T | _Cancelled:
        """Await work unless the cancellation event fires first."""
        if cancel_event is None:
            return await work

        work_task = asyncio.ensure_future(work)
        cancel_task = asyncio.ensure_future(cancel_event.wait())
        try:
            await asyncio.wait({work_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            cancel_task.cancel()
            if not work_task.done():
                work_task.cancel()
                await asyncio.wait({work_task})

        if work_task.cancelled():
            return _CANCELLED
        return work_task.result()

    async def _record_attempt(self, attempt: DeliveryAttempt) -> None:
        if self._recorder is None:
            return
        try:
            await _write(self._recorder.record_attempt, attempt)
        except StorageError as e:
            logger.error(
                "Could not record attempt %d of %s: %s", attempt.attempt, attempt.delivery_id, e
            )

    async def _finish(self, outcome: DeliveryOutcome, contacted: bool) -> None:
        """Persist the final record and touch the subscription."""
        if self._recorder is None:
            return
        try:
            await _write(self._recorder.record_outcome, outcome.to_record())
        except StorageError as e:
            logger.error("Could not record outcome of %s: %s", outcome.delivery_id, e)

        # last-triggered moves once the receiver was contacted, successful or not
        if not contacted:
            return
        try:
            await _write(self._recorder.touch_subscription, outcome.subscription_id, self._clock())
        except StorageError as e:
            logger.error("Could not update subscription %s: %s", outcome.subscription_id, e)


@recorder_retry
async def _write(call: Callable[..., Awaitable[None]], *args: Any) -> None:
    await call(*args)


def _is_set(cancel_event: asyncio.Event | None) -> bool:
    return cancel_event is not None and cancel_event.is_set()


async def deliver_webhook(
    subscription: Subscription,
    notification: EventNotification,
    recorder: DeliveryRecorder | None = None,
    settings: Settings | None = None,
) -> DeliveryOutcome:
    """Convenience function to deliver one notification with a fresh transport.

    Args:
        subscription: Target receiver.
        notification: Event to deliver.
        recorder: Optional sink for attempts and outcomes.
        settings: Settings for defaults and backoff. Uses environment if None.

    Returns:
        The terminal DeliveryOutcome.
    """
    from presto_webhooks.config import Settings

    settings = settings or Settings()
    async with HttpTransport(
        user_agent=settings.user_agent,
        max_response_bytes=settings.max_response_bytes,
    ) as transport:
        orchestrator = DeliveryOrchestrator.from_settings(settings, transport, recorder)
        return await orchestrator.deliver(subscription, notification)


__all__ = [
    "DeliveryOrchestrator",
    "DeliverySequence",
    "deliver_webhook",
]
