"""Retry support for outbound HTTP calls."""

from aiworks.resilience.retry import RetryPolicy, RetryStrategy

__all__ = [
    "RetryStrategy",
    "RetryPolicy",
]
