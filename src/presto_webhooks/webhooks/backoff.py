"""Exponential backoff between delivery attempts."""

from __future__ import annotations

from dataclasses import dataclass

# 2**32 base units already exceeds any sane cap
_MAX_EXPONENT = 32


@dataclass(frozen=True)
class BackoffPolicy:
    """Deterministic exponential backoff without jitter.

    The delay before attempt n (n >= 2) is min(2**(n-1) * base, cap).
    With the defaults: attempt 2 waits 2s, attempt 3 waits 4s, attempt 4
    waits 8s, and nothing ever waits longer than 30s.

    Attributes:
        base_seconds: Base unit of the exponential schedule.
        cap_seconds: Upper bound on any single delay.
    """

    base_seconds: float = 1.0
    cap_seconds: float = 30.0

    def __post_init__(self) -> None:
        if self.base_seconds <= 0:
            raise ValueError(f"base_seconds must be positive, got {self.base_seconds}")
        if self.cap_seconds < self.base_seconds:
            raise ValueError(
                f"cap_seconds ({self.cap_seconds}) must be at least "
                f"base_seconds ({self.base_seconds})"
            )

    def delay_before_attempt(self, attempt: int) -> float:
        """Seconds to wait before the given 1-based attempt."""
        if attempt <= 1:
            return 0.0
        exponent = min(attempt - 1, _MAX_EXPONENT)
        return float(min((2**exponent) * self.base_seconds, self.cap_seconds))

    def total_delay(self, max_attempts: int) -> float:
        """Sum of every backoff delay in a sequence of max_attempts attempts."""
        return sum(self.delay_before_attempt(n) for n in range(2, max_attempts + 1))

    def worst_case_seconds(self, max_attempts: int, timeout_seconds: float) -> float:
        """Upper bound on how long a whole delivery sequence can run."""
        return max_attempts * timeout_seconds + self.total_delay(max_attempts)


__all__ = ["BackoffPolicy"]
