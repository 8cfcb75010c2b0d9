"""
Subscription manager.

Fetches remote engine configuration documents on cron schedules, validates
them and swaps them into place atomically with backup and rollback.

Only leaf modules are re-exported here; import the manager, scheduler and
engine from their own modules.
"""

from .errors import (
    ApplyError,
    BootstrapError,
    ConfigError,
    DocumentRejected,
    FetchCancelled,
    FetchError,
    FetchRejected,
    SubscriptionError,
)
from .retry import RetryPolicy, default_retryable_status

__all__ = [
    # Errors
    "ApplyError",
    "BootstrapError",
    "ConfigError",
    "DocumentRejected",
    "FetchCancelled",
    "FetchError",
    "FetchRejected",
    "SubscriptionError",
    # Retry
    "RetryPolicy",
    "default_retryable_status",
]
