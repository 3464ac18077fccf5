"""Retry schedules for individual and batched translation requests.

Responsibilities:
- Describe the bounded exponential backoff used for individual requests.
- Describe the fixed single-retry schedule used for batch requests.
- Keep retry arithmetic independent from transport and gateway code.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Attempt and wall-clock budget for one individual translation.

    Attributes:
        max_attempts: Total attempts including the first one.
        base_delay_ms: Backoff after the first failed attempt.
        max_delay_ms: Upper bound for a single backoff.
        budget_ms: Wall-clock budget measured from the first attempt.
    """

    max_attempts: int = 5
    base_delay_ms: float = 100.0
    max_delay_ms: float = 1600.0
    budget_ms: float = 5000.0

    def backoff_ms(self, attempt: int) -> float:
        """Return the uncapped-by-budget delay after 0-based `attempt` failed."""

        return min(self.base_delay_ms * (2**attempt), self.max_delay_ms)

    def remaining_ms(self, elapsed_ms: float) -> float:
        return max(self.budget_ms - elapsed_ms, 0.0)

    def is_exhausted(self, attempt: int, elapsed_ms: float) -> bool:
        """Return whether no further attempt may follow 0-based `attempt`."""

        return attempt >= self.max_attempts - 1 or elapsed_ms >= self.budget_ms

    def delay_ms(self, attempt: int, elapsed_ms: float) -> float:
        """Return the sleep before the next attempt, shortened to fit the remaining budget."""

        return min(self.backoff_ms(attempt), self.remaining_ms(elapsed_ms))


@dataclass(frozen=True, slots=True)
class BatchRetryPolicy:
    """Fixed-delay retry schedule for one batch request.

    Attributes:
        max_attempts: Total attempts including the first one.
        retry_delay_ms: Delay before each retry.
    """

    max_attempts: int = 2
    retry_delay_ms: float = 500.0

    def should_retry(self, attempt: int) -> bool:
        """Return whether another attempt may follow the 1-based `attempt`."""

        return attempt < self.max_attempts
