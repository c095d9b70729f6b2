"""Resilience patterns for calls to the persistent store

Retry with exponential backoff for transient HTTP failures.
"""

from habit_quest.resilience.retry import retry_with_backoff, with_retry, is_retryable_error

__all__ = [
    "retry_with_backoff",
    "with_retry",
    "is_retryable_error",
]
