"""Retry utilities for recorder writes.

Recorder implementations raise StorageError for transient failures. The
orchestrator wraps its recorder calls with recorder_retry so that a brief
storage hiccup does not lose delivery history.
"""

from __future__ import annotations

import logging

from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from presto_webhooks.exceptions import StorageError

logger = logging.getLogger(__name__)


def _log_retry(retry_state: RetryCallState) -> None:
    """Log retry attempts with context.

    Args:
        retry_state: Current retry state from tenacity.
    """
    logger.warning(
        "Retrying recorder write",
        extra={
            "attempt": retry_state.attempt_number,
            "fn_name": retry_state.fn.__name__ if retry_state.fn else "unknown",
            "exception": str(retry_state.outcome.exception()) if retry_state.outcome else None,
        },
    )


# Only storage errors are retried; anything else is a bug in the recorder
recorder_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
    retry=retry_if_exception_type(StorageError),
    before_sleep=_log_retry,
    reraise=True,
)


__all__ = ["recorder_retry"]
