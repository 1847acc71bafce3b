"""
Retry Engine - Retry with Backoff.

Calls a fallible operation until it succeeds, runs out of attempts or is
cancelled, waiting a constant, exponential or jittered delay in between.
"""

from .exceptions import (
    RetryError,
    NoAttemptsLeftError,
    CancelledError,
    DeadlineExceededError,
    InvalidPolicyError,
    OperationError,
    TransientError,
    PermanentError,
)
from .signals import (
    CancellationSignal,
    AsyncCancellationSignal,
    CancelToken,
    AsyncCancelToken,
    background,
)
from .retry import (
    DEFAULT_JITTER,
    Retry,
    RetryConfig,
    RetryStrategy,
    do,
    async_do,
    with_attempts,
    with_backoff,
    with_exponential,
    with_jitter,
    with_max_delay,
    with_random,
    with_retry,
    async_with_retry,
)

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Exceptions
    "RetryError",
    "NoAttemptsLeftError",
    "CancelledError",
    "DeadlineExceededError",
    "InvalidPolicyError",
    "OperationError",
    "TransientError",
    "PermanentError",
    # Signals
    "CancellationSignal",
    "AsyncCancellationSignal",
    "CancelToken",
    "AsyncCancelToken",
    "background",
    # Retry
    "DEFAULT_JITTER",
    "Retry",
    "RetryConfig",
    "RetryStrategy",
    "do",
    "async_do",
    "with_attempts",
    "with_backoff",
    "with_exponential",
    "with_jitter",
    "with_max_delay",
    "with_random",
    "with_retry",
    "async_with_retry",
]
