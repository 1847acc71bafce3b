"""
Retry policy and attempt loop.

`Retry.do` calls an operation until:
1. the operation returns (False, ...)
2. the operation returns (True, ...) but attempts are exhausted
3. the cancellation signal fires
"""

from dataclasses import dataclass, replace
from typing import Awaitable, Callable

from .backoff import Backoff, RandomSource
from .config import Option, RetryConfig, RetryStrategy
from ..exceptions import InvalidPolicyError, NoAttemptsLeftError
from ..signals import AsyncCancellationSignal, AsyncCancelToken, CancellationSignal, background

# (should_retry, error):
# (False, None) on success, (True, error) when the error is temporary,
# (False, error) when the error is permanent.
Outcome = tuple[bool, BaseException | None]
Operation = Callable[[], Outcome]
AsyncOperation = Callable[[], Awaitable[Outcome]]
OnRetry = Callable[[int, BaseException | None, float], None]


def _unpack(outcome: Outcome) -> Outcome:
    try:
        retry, error = outcome
    except (TypeError, ValueError):
        raise TypeError(
            f"Operation must return a (should_retry, error) pair, got {outcome!r}"
        ) from None
    if error is not None and not isinstance(error, BaseException):
        raise TypeError(f"Operation error must be an exception or None, got {error!r}")
    return bool(retry), error


@dataclass(frozen=True)
class Retry:
    """
    Immutable retry policy.

    Attributes:
        max_attempts: Max number of operation calls, the first one included
        backoff_fn: Delay in seconds after the failed call with a given
            zero-based index; None means no delay

    Example:
        >>> Retry.attempts(5).exponential_jitter_backoff(0.1, 0.25).do(None, call)
    """

    max_attempts: int
    backoff_fn: Backoff | None = None

    def __post_init__(self) -> None:
        if isinstance(self.max_attempts, bool) or not isinstance(self.max_attempts, int):
            raise InvalidPolicyError(
                f"max_attempts must be an int, got {self.max_attempts!r}"
            )
        if self.backoff_fn is not None and not callable(self.backoff_fn):
            raise InvalidPolicyError(
                f"backoff_fn must be callable or None, got {self.backoff_fn!r}"
            )

    @classmethod
    def attempts(cls, attempts: int) -> "Retry":
        """Start a policy with the max number of calls and no backoff."""
        return cls(max_attempts=attempts)

    @classmethod
    def from_config(cls, config: RetryConfig) -> "Retry":
        """Freeze a RetryConfig into a policy."""
        return cls(max_attempts=config.attempts, backoff_fn=config.backoff_sequence())

    def _with_config(self, config: RetryConfig) -> "Retry":
        return replace(self, backoff_fn=config.backoff_sequence())

    def backoff(self, duration: float) -> "Retry":
        """Constant delay between calls."""
        return self.jitter_backoff(duration, 0)

    def exponential_backoff(self, duration: float, *, max_delay: float | None = None) -> "Retry":
        """
        Exponential delay between calls: duration * 2 ** attempt.

        For a 100ms duration: 100ms after the first attempt, 800ms after
        the fourth, 1600ms after the fifth.
        """
        return self.exponential_jitter_backoff(duration, 0, max_delay=max_delay)

    def jitter_backoff(
        self,
        duration: float,
        jitter: float,
        *,
        rng: RandomSource | None = None,
    ) -> "Retry":
        """
        Constant delay with jitter between calls.

        A non-positive duration disables backoff. Jitter is expected in
        [0.0, 1.0); out of range values fall back to DEFAULT_JITTER.
        """
        return self._with_config(RetryConfig(backoff=duration, jitter=jitter, rng=rng))

    def exponential_jitter_backoff(
        self,
        duration: float,
        jitter: float,
        *,
        max_delay: float | None = None,
        rng: RandomSource | None = None,
    ) -> "Retry":
        """Exponential delay with jitter between calls, see jitter_backoff."""
        return self._with_config(
            RetryConfig(
                backoff=duration,
                strategy=RetryStrategy.EXPONENTIAL,
                jitter=jitter,
                max_delay=max_delay,
                rng=rng,
            )
        )

    def do(
        self,
        signal: CancellationSignal | None,
        call: Operation,
        *,
        on_retry: OnRetry | None = None,
    ) -> None:
        """
        Call `call` until it succeeds, fails permanently, runs out of
        attempts or `signal` is cancelled.

        A call already in progress is never interrupted; cancellation is
        observed before each call (no backoff) or during the delay.

        Args:
            signal: Cancellation signal (default: never cancelled)
            call: Zero-argument operation returning (should_retry, error)
            on_retry: Optional callback(attempt, error, delay) called before each retry

        Raises:
            The operation's error on permanent failure, NoAttemptsLeftError
            when attempts are exhausted, `signal.error` on cancellation
        """
        if signal is None:
            signal = background()
        if self.backoff_fn is None or self.max_attempts < 2:
            self._do(signal, call, on_retry)
        else:
            self._do_with_backoff(signal, call, on_retry)

    def _do(self, signal: CancellationSignal, call: Operation, on_retry: OnRetry | None) -> None:
        error: BaseException | None = None
        last = self.max_attempts - 1

        for attempt in range(self.max_attempts):
            if signal.cancelled():
                raise signal.error
            retry, error = _unpack(call())
            if not retry:
                if error is not None:
                    raise error
                return
            if on_retry is not None and attempt < last:
                on_retry(attempt, error, 0.0)

        raise NoAttemptsLeftError(error) from error

    def _do_with_backoff(
        self, signal: CancellationSignal, call: Operation, on_retry: OnRetry | None
    ) -> None:
        error: BaseException | None = None
        last = self.max_attempts - 1

        for attempt in range(self.max_attempts):
            retry, error = _unpack(call())
            if not retry:
                if error is not None:
                    raise error
                return

            # no delay after the last attempt
            if attempt == last:
                break

            delay = max(0.0, self.backoff_fn(attempt))
            if on_retry is not None:
                on_retry(attempt, error, delay)
            if signal.wait(delay):
                raise signal.error

        raise NoAttemptsLeftError(error) from error

    async def async_do(
        self,
        signal: AsyncCancellationSignal | None,
        call: AsyncOperation,
        *,
        on_retry: OnRetry | None = None,
    ) -> None:
        """Async version of `do` for an awaitable operation."""
        if signal is None:
            signal = AsyncCancelToken()
        error: BaseException | None = None
        last = self.max_attempts - 1
        with_backoff = self.backoff_fn is not None and self.max_attempts >= 2

        for attempt in range(self.max_attempts):
            if not with_backoff and signal.cancelled():
                raise signal.error
            retry, error = _unpack(await call())
            if not retry:
                if error is not None:
                    raise error
                return
            if attempt == last:
                break

            delay = max(0.0, self.backoff_fn(attempt)) if with_backoff else 0.0
            if on_retry is not None:
                on_retry(attempt, error, delay)
            if with_backoff and await signal.wait(delay):
                raise signal.error

        raise NoAttemptsLeftError(error) from error


def do(
    signal: CancellationSignal | None,
    call: Operation,
    *options: Option,
    on_retry: OnRetry | None = None,
) -> None:
    """Same as Retry.do, with the policy built from functional options."""
    return _build(options).do(signal, call, on_retry=on_retry)


async def async_do(
    signal: AsyncCancellationSignal | None,
    call: AsyncOperation,
    *options: Option,
    on_retry: OnRetry | None = None,
) -> None:
    """Same as Retry.async_do, with the policy built from functional options."""
    return await _build(options).async_do(signal, call, on_retry=on_retry)


def _build(options: tuple[Option, ...]) -> Retry:
    config = RetryConfig()
    for option in options:
        option(config)
    return Retry.from_config(config)
