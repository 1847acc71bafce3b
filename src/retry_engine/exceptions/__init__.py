"""
Retry Engine - Exception Hierarchy.

Errors raised by the retry engine and retry-aware operation errors.
"""

from .base import (
    RetryError,
    NoAttemptsLeftError,
    CancelledError,
    DeadlineExceededError,
    InvalidPolicyError,
    OperationError,
    TransientError,
    PermanentError,
)

__all__ = [
    "RetryError",
    "NoAttemptsLeftError",
    "CancelledError",
    "DeadlineExceededError",
    "InvalidPolicyError",
    "OperationError",
    "TransientError",
    "PermanentError",
]
