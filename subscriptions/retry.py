"""Retry policy for subscription downloads."""
from dataclasses import dataclass, field
from typing import Callable, Iterator

from .constants import BACKOFF_BASE, LAST_RETRYABLE_CLIENT_STATUS, MAX_ATTEMPTS, MAX_BACKOFF


def default_retryable_status(status: int) -> bool:
    """Statuses worth another attempt: up to 404 and server errors. 405..499 fail straight away."""
    return status <= LAST_RETRYABLE_CLIENT_STATUS or status >= 500


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded exponential backoff."""

    max_attempts: int = MAX_ATTEMPTS
    base: float = BACKOFF_BASE
    max_backoff: float = MAX_BACKOFF
    retryable_status: Callable[[int], bool] = field(default=default_retryable_status)

    def attempts(self) -> Iterator[int]:
        return iter(range(self.max_attempts))

    def backoff(self, attempt: int) -> float:
        """Seconds to wait before `attempt` (0-based). The first attempt never waits."""
        if attempt <= 0:
            return 0.0
        return float(min(self.base**attempt, self.max_backoff))

    def is_last(self, attempt: int) -> bool:
        return attempt >= self.max_attempts - 1

    def total_backoff(self) -> float:
        """Worst-case time spent waiting when every attempt fails"""
        return sum(self.backoff(attempt) for attempt in range(self.max_attempts))
