"""
Retry Engine - Cancellation Signals.

Cooperative cancellation observed between attempts.
"""

from .token import (
    CancellationSignal,
    AsyncCancellationSignal,
    CancelToken,
    AsyncCancelToken,
    background,
)

__all__ = [
    "CancellationSignal",
    "AsyncCancellationSignal",
    "CancelToken",
    "AsyncCancelToken",
    "background",
]
