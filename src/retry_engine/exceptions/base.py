"""
Base exception classes for retry execution.

Errors raised by the engine itself (exhaustion, cancellation, bad policy)
and the retry-aware errors an operation may raise through the decorator
adapters share one root, `RetryError`.
"""


class RetryError(Exception):
    """Base exception for all retry engine errors."""


class NoAttemptsLeftError(RetryError):
    """
    Raised when the attempt budget is consumed without success.

    Wraps the last transient failure, if the last outcome carried one.
    """

    def __init__(self, reason: BaseException | None = None):
        super().__init__(reason)
        self.reason = reason

    def unwrap(self) -> BaseException | None:
        """Return the wrapped cause of the last failed attempt."""
        return self.reason

    def __str__(self) -> str:
        if self.reason is not None:
            return f"no attempts left: {self.reason}"
        return "no attempts left"


class CancelledError(RetryError):
    """Raised when a cancellation signal was cancelled without a reason."""

    def __init__(self, message: str = "context canceled"):
        super().__init__(message)
        self.message = message


class DeadlineExceededError(CancelledError):
    """Raised when a cancellation signal's deadline passes."""

    def __init__(self, message: str = "context deadline exceeded"):
        super().__init__(message)


class InvalidPolicyError(RetryError, ValueError):
    """Raised when a retry policy is built from invalid values."""


class OperationError(RetryError):
    """
    Base exception for failures raised by retried operations.

    The `retryable` flag tells the decorator adapters whether the call
    can be safely repeated with the same arguments.
    """

    def __init__(self, message: str, *, retryable: bool = False):
        super().__init__(message)
        self.message = message
        self.retryable = retryable

    def __str__(self) -> str:
        return self.message


class TransientError(OperationError):
    """Raised for temporary failures. Always retryable."""

    def __init__(self, message: str = "Temporary failure"):
        super().__init__(message, retryable=True)


class PermanentError(OperationError):
    """Raised for failures that will not go away on retry. Not retryable."""

    def __init__(self, message: str = "Permanent failure"):
        super().__init__(message, retryable=False)
