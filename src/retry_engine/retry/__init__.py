"""
Retry Engine - Retry Logic.

Attempt loop with constant or exponential backoff and jitter.
"""

from .backoff import (
    DEFAULT_JITTER,
    Backoff,
    RandomSource,
    apply_jitter,
    exponential_backoff,
    jitter_up,
    linear_backoff,
    shared_random,
)
from .config import (
    Option,
    RetryConfig,
    RetryStrategy,
    with_attempts,
    with_backoff,
    with_exponential,
    with_jitter,
    with_max_delay,
    with_random,
)
from .engine import Outcome, Operation, AsyncOperation, OnRetry, Retry, do, async_do
from .decorators import with_retry, async_with_retry

__all__ = [
    "DEFAULT_JITTER",
    "Backoff",
    "RandomSource",
    "apply_jitter",
    "exponential_backoff",
    "jitter_up",
    "linear_backoff",
    "shared_random",
    "Option",
    "RetryConfig",
    "RetryStrategy",
    "with_attempts",
    "with_backoff",
    "with_exponential",
    "with_jitter",
    "with_max_delay",
    "with_random",
    "Outcome",
    "Operation",
    "AsyncOperation",
    "OnRetry",
    "Retry",
    "do",
    "async_do",
    "with_retry",
    "async_with_retry",
]
