"""
Cancellation signals observed by the retry engine.

A signal is checked synchronously before a call (`cancelled()`) and raced
against the backoff delay (`wait(timeout)`). Once fired it exposes its
terminal reason as `error`.
"""

import asyncio
import threading
import time
from typing import Iterator, Protocol, runtime_checkable

from ..exceptions import CancelledError, DeadlineExceededError

# Longest single Event wait; longer delays are waited out in slices.
_WAIT_SLICE = 3600.0


@runtime_checkable
class CancellationSignal(Protocol):
    """Cancellation signal for the synchronous engine."""

    @property
    def error(self) -> BaseException | None:
        """Terminal reason once the signal fired, None before."""
        ...

    def cancelled(self) -> bool:
        """Return True if the signal already fired."""
        ...

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the signal fires or timeout elapses. True if fired."""
        ...


@runtime_checkable
class AsyncCancellationSignal(Protocol):
    """Cancellation signal for the async engine."""

    @property
    def error(self) -> BaseException | None: ...

    def cancelled(self) -> bool: ...

    async def wait(self, timeout: float | None = None) -> bool: ...


def _slices(timeout: float) -> Iterator[float]:
    """Split a timeout, possibly huge or infinite, into bounded waits."""
    end = time.monotonic() + timeout
    while True:
        remaining = end - time.monotonic()
        if remaining <= 0:
            return
        yield min(remaining, _WAIT_SLICE)


class _Deadline:
    """Shared deadline bookkeeping for both token flavours."""

    def __init__(self, timeout: float | None):
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def remaining(self) -> float | None:
        """Seconds left until the deadline, None when there is none."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    def bound(self, timeout: float | None) -> tuple[float | None, bool]:
        """
        Clamp a wait timeout to the deadline.

        Returns:
            (timeout to wait, whether the deadline is what ends the wait)
        """
        remaining = self.remaining()
        if remaining is None:
            return timeout, False
        if timeout is None or remaining <= timeout:
            return remaining, True
        return timeout, False


class CancelToken:
    """
    Thread-safe cancellation signal backed by `threading.Event`.

    Cancel it from any thread with `cancel()`, or give it a deadline:
    once `timeout` seconds pass the token fires with
    `DeadlineExceededError`. The first reason recorded wins.
    """

    def __init__(self, timeout: float | None = None):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._error: BaseException | None = None
        self._deadline = _Deadline(timeout)

    def cancel(self, reason: BaseException | None = None) -> bool:
        """
        Fire the signal.

        Args:
            reason: Terminal reason (default: CancelledError)

        Returns:
            True if this call fired the signal, False if it had already fired
        """
        with self._lock:
            if self._event.is_set():
                return False
            self._error = reason if reason is not None else CancelledError()
            self._event.set()
            return True

    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        if self._deadline.expired():
            self.cancel(DeadlineExceededError())
            return True
        return False

    @property
    def error(self) -> BaseException | None:
        self.cancelled()
        return self._error

    def remaining(self) -> float | None:
        """Seconds left until the deadline, None when there is none."""
        return self._deadline.remaining()

    def wait(self, timeout: float | None = None) -> bool:
        timeout, until_deadline = self._deadline.bound(timeout)
        if self._wait_event(timeout):
            return True
        if until_deadline:
            self.cancel(DeadlineExceededError())
            return True
        return False

    def _wait_event(self, timeout: float | None) -> bool:
        if timeout is None:
            return self._event.wait()
        for step in _slices(timeout):
            if self._event.wait(step):
                return True
        return self._event.is_set()


class AsyncCancelToken:
    """
    Cancellation signal backed by `asyncio.Event`.

    Same contract as CancelToken, with an awaitable `wait`. Must be
    cancelled from the event loop thread.
    """

    def __init__(self, timeout: float | None = None):
        self._event = asyncio.Event()
        self._error: BaseException | None = None
        self._deadline = _Deadline(timeout)

    def cancel(self, reason: BaseException | None = None) -> bool:
        if self._event.is_set():
            return False
        self._error = reason if reason is not None else CancelledError()
        self._event.set()
        return True

    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        if self._deadline.expired():
            self.cancel(DeadlineExceededError())
            return True
        return False

    @property
    def error(self) -> BaseException | None:
        self.cancelled()
        return self._error

    def remaining(self) -> float | None:
        return self._deadline.remaining()

    async def wait(self, timeout: float | None = None) -> bool:
        if self._event.is_set():
            return True
        timeout, until_deadline = self._deadline.bound(timeout)
        if await self._wait_event(timeout):
            return True
        if until_deadline:
            self.cancel(DeadlineExceededError())
            return True
        return False

    async def _wait_event(self, timeout: float | None) -> bool:
        if timeout is None:
            await self._event.wait()
            return True
        for step in _slices(timeout):
            try:
                await asyncio.wait_for(self._event.wait(), step)
                return True
            except asyncio.TimeoutError:
                continue
        return self._event.is_set()


def background() -> CancelToken:
    """Return a signal that is never cancelled unless the caller does so."""
    return CancelToken()
