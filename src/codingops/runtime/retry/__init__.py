"""Retry with exponential backoff for network calls."""

from .backoff import Backoff, ExponentialBackoff
from .policy import RetryPolicy, execute_with_retry, is_retryable_error

__all__ = ["Backoff", "ExponentialBackoff", "RetryPolicy", "execute_with_retry", "is_retryable_error"]
