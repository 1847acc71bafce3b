"""
Retry decorators for exception-raising callables.

Adapts ordinary functions to the (should_retry, error) operation contract:
an OperationError is retried when its `retryable` flag is set, any other
exception propagates on the first occurrence.
"""

import functools
import logging
from typing import Awaitable, Callable, ParamSpec, TypeVar

from .config import RetryConfig
from .engine import OnRetry, Outcome, Retry
from ..exceptions import OperationError
from ..signals import AsyncCancellationSignal, CancellationSignal

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


def _resolve(policy: Retry | RetryConfig | None) -> Retry:
    if policy is None:
        policy = RetryConfig()
    if isinstance(policy, RetryConfig):
        return Retry.from_config(policy)
    return policy


def _log_retry(policy: Retry, func: Callable) -> OnRetry:
    name = getattr(func, "__qualname__", type(func).__name__)

    def on_retry(attempt: int, error: BaseException | None, delay: float) -> None:
        logger.warning(
            f"[{name}] Retry {attempt + 1}/{policy.max_attempts - 1}: {error}, "
            f"waiting {delay:.1f}s"
        )

    return on_retry


def with_retry(
    policy: Retry | RetryConfig | None = None,
    *,
    signal: CancellationSignal | None = None,
    on_retry: OnRetry | None = None,
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """
    Decorator for synchronous functions with retry logic.

    Args:
        policy: Retry policy or config (default: RetryConfig())
        signal: Cancellation signal shared by every call of the decorated function
        on_retry: Optional callback(attempt, error, delay) called before each retry,
            defaults to logging a warning

    Returns:
        Decorated function returning the first successful result
    """
    retry = _resolve(policy)

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        callback = on_retry or _log_retry(retry, func)

        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            result: list[T] = []

            def call() -> Outcome:
                try:
                    result.append(func(*args, **kwargs))
                except OperationError as e:
                    return e.retryable, e
                return False, None

            retry.do(signal, call, on_retry=callback)
            return result[0]

        return wrapper

    return decorator


def async_with_retry(
    policy: Retry | RetryConfig | None = None,
    *,
    signal: AsyncCancellationSignal | None = None,
    on_retry: OnRetry | None = None,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """
    Decorator for async functions with retry logic.

    Args:
        policy: Retry policy or config (default: RetryConfig())
        signal: Async cancellation signal
        on_retry: Optional callback(attempt, error, delay) called before each retry

    Returns:
        Decorated async function returning the first successful result
    """
    retry = _resolve(policy)

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        callback = on_retry or _log_retry(retry, func)

        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            result: list[T] = []

            async def call() -> Outcome:
                try:
                    result.append(await func(*args, **kwargs))
                except OperationError as e:
                    return e.retryable, e
                return False, None

            await retry.async_do(signal, call, on_retry=callback)
            return result[0]

        return wrapper

    return decorator
