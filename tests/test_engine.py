"""Tests for the retry engine - behavior focused."""

import math
import threading
import time

import pytest
from retry_engine import (
    CancelledError,
    CancelToken,
    DeadlineExceededError,
    NoAttemptsLeftError,
    Retry,
    do,
    with_attempts,
    with_backoff,
)


# --- Helpers ---


class ScriptedOperation:
    """Operation replaying a list of outcomes, repeating the last one."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0

    def __call__(self):
        outcome = self.outcomes[min(self.calls, len(self.outcomes) - 1)]
        self.calls += 1
        return outcome


class RecordingSignal:
    """Signal that records waits and can fire on the n-th wait."""

    def __init__(self, cancel_on_wait: int | None = None, cancelled: bool = False):
        self.waits: list[float] = []
        self.cancel_on_wait = cancel_on_wait
        self._cancelled = cancelled
        self.error = CancelledError() if cancelled else None

    def cancelled(self) -> bool:
        return self._cancelled

    def wait(self, timeout=None) -> bool:
        self.waits.append(timeout)
        if self.cancel_on_wait is not None and len(self.waits) >= self.cancel_on_wait:
            self._cancelled = True
            self.error = CancelledError()
            return True
        return False


POLICIES = [
    pytest.param(Retry.attempts(4), id="no-backoff"),
    pytest.param(Retry.attempts(4).backoff(0.001), id="linear"),
    pytest.param(Retry.attempts(4).exponential_backoff(0.001), id="exponential"),
    pytest.param(Retry.attempts(4).exponential_jitter_backoff(0.001, 0.5), id="jitter"),
]


# --- Outcome handling ---


class TestOutcomes:
    """Test the engine's reaction to each outcome kind."""

    @pytest.mark.parametrize("policy", POLICIES)
    def test_success_on_first_call(self, policy):
        """(False, None) first time: one call, no error."""
        operation = ScriptedOperation((False, None))
        signal = RecordingSignal()

        policy.do(signal, operation)

        assert operation.calls == 1
        assert signal.waits == []

    @pytest.mark.parametrize("policy", POLICIES)
    @pytest.mark.parametrize("n", [1, 2, 4])
    def test_always_retry_exhausts_budget(self, policy, n):
        """(True, err) forever: exactly n calls, exhaustion wraps err."""
        policy = Retry(max_attempts=n, backoff_fn=policy.backoff_fn)
        cause = RuntimeError("temporary")
        operation = ScriptedOperation((True, cause))

        with pytest.raises(NoAttemptsLeftError) as exc_info:
            policy.do(RecordingSignal(), operation)

        assert operation.calls == n
        assert exc_info.value.reason is cause
        assert exc_info.value.__cause__ is cause

    @pytest.mark.parametrize("policy", POLICIES)
    def test_permanent_failure_raised_verbatim(self, policy):
        """(False, err) on call k: k calls, err raised unwrapped."""
        cause = ValueError("bad input")
        operation = ScriptedOperation(
            (True, RuntimeError("temporary")),
            (True, RuntimeError("temporary")),
            (False, cause),
        )

        with pytest.raises(ValueError) as exc_info:
            policy.do(RecordingSignal(), operation)

        assert exc_info.value is cause
        assert operation.calls == 3

    def test_retry_without_cause_exhausts_without_reason(self):
        """(True, None) is tolerated; exhaustion carries no cause."""
        operation = ScriptedOperation((True, None))

        with pytest.raises(NoAttemptsLeftError) as exc_info:
            Retry.attempts(2).backoff(0.001).do(None, operation)

        assert exc_info.value.reason is None
        assert str(exc_info.value) == "no attempts left"
        assert operation.calls == 2

    @pytest.mark.parametrize("attempts", [0, -3])
    def test_no_attempts_never_calls(self, attempts):
        """max_attempts < 1: no call, exhaustion without cause."""
        operation = ScriptedOperation((False, None))

        with pytest.raises(NoAttemptsLeftError) as exc_info:
            Retry.attempts(attempts).backoff(1.0).do(None, operation)

        assert operation.calls == 0
        assert exc_info.value.reason is None

    def test_malformed_outcome_rejected(self):
        """Anything but a (bool, error) pair is a TypeError."""
        with pytest.raises(TypeError):
            Retry.attempts(2).do(None, lambda: None)

    def test_non_exception_error_rejected(self):
        """The error half must be an exception or None."""
        with pytest.raises(TypeError):
            Retry.attempts(2).do(None, lambda: (True, "boom"))

    def test_policy_reusable_across_invocations(self):
        """Invocations share nothing through the policy."""
        policy = Retry.attempts(3).backoff(0.001)
        first = ScriptedOperation((True, RuntimeError("x")), (False, None))
        second = ScriptedOperation((False, None))

        policy.do(None, first)
        policy.do(None, second)

        assert (first.calls, second.calls) == (2, 1)


# --- Scenarios ---


class TestScenarios:
    """End-to-end scenarios."""

    def test_two_attempts_single_wait(self):
        """2 attempts, 1ms linear backoff: 2 calls, exactly one ~1ms wait."""
        cause = RuntimeError("x")
        operation = ScriptedOperation((True, cause))
        signal = RecordingSignal()

        with pytest.raises(NoAttemptsLeftError) as exc_info:
            Retry.attempts(2).jitter_backoff(0.001, 0).do(signal, operation)

        assert operation.calls == 2
        assert signal.waits == [0.001]
        assert exc_info.value.unwrap() is cause
        assert str(exc_info.value) == "no attempts left: x"

    def test_no_backoff_success_on_third_call(self):
        """5 attempts, no backoff, success on call 3: 3 calls, no error."""
        operation = ScriptedOperation(
            (True, RuntimeError("y")),
            (True, RuntimeError("y")),
            (False, None),
        )

        do(None, operation, with_attempts(5))

        assert operation.calls == 3

    def test_exponential_waits_double(self):
        """Waits before attempts follow d * 2 ** i."""
        operation = ScriptedOperation((True, RuntimeError("x")))
        signal = RecordingSignal()

        with pytest.raises(NoAttemptsLeftError):
            Retry.attempts(5).exponential_backoff(0.1).do(signal, operation)

        assert signal.waits == pytest.approx([0.1, 0.2, 0.4, 0.8])

    def test_real_wait_elapses(self):
        """With a real token the engine actually sleeps between calls."""
        operation = ScriptedOperation((True, RuntimeError("x")))
        started = time.monotonic()

        with pytest.raises(NoAttemptsLeftError):
            do(CancelToken(), operation, with_attempts(3), with_backoff(0.02))

        assert time.monotonic() - started >= 0.035
        assert operation.calls == 3


# --- Cancellation ---


class TestCancellation:
    """Test cooperative cancellation."""

    def test_cancelled_before_first_call_without_backoff(self):
        """Already-cancelled signal: zero calls, the signal's reason raised."""
        operation = ScriptedOperation((False, None))
        token = CancelToken()
        reason = RuntimeError("shutting down")
        token.cancel(reason)

        with pytest.raises(RuntimeError) as exc_info:
            Retry.attempts(3).do(token, operation)

        assert exc_info.value is reason
        assert operation.calls == 0

    def test_cancellation_checked_between_calls_without_backoff(self):
        """Cancelling inside an attempt stops the next one."""
        token = CancelToken()

        def operation():
            token.cancel()
            return True, RuntimeError("x")

        with pytest.raises(CancelledError):
            Retry.attempts(5).do(token, operation)

    def test_cancellation_during_wait_stops_retrying(self):
        """Cancellation during the only wait: the second call never happens."""
        operation = ScriptedOperation((True, RuntimeError("x")))
        signal = RecordingSignal(cancel_on_wait=1)

        with pytest.raises(CancelledError):
            Retry.attempts(3).exponential_backoff(0.01).do(signal, operation)

        assert operation.calls == 1
        assert signal.waits == [0.01]

    def test_backoff_path_ignores_cancellation_before_first_call(self):
        """With backoff the first call is unconditional."""
        operation = ScriptedOperation((False, None))
        token = CancelToken()
        token.cancel()

        Retry.attempts(3).backoff(0.01).do(token, operation)

        assert operation.calls == 1

    def test_cancel_from_another_thread_interrupts_wait(self):
        """A long delay is cut short by cancel() from another thread."""
        operation = ScriptedOperation((True, RuntimeError("x")))
        token = CancelToken()
        timer = threading.Timer(0.05, token.cancel)
        timer.start()
        started = time.monotonic()

        try:
            with pytest.raises(CancelledError):
                Retry.attempts(3).backoff(10.0).do(token, operation)
        finally:
            timer.cancel()

        assert time.monotonic() - started < 5.0
        assert operation.calls == 1

    def test_deadline_interrupts_wait(self):
        """A token deadline shorter than the delay ends the wait."""
        operation = ScriptedOperation((True, RuntimeError("x")))

        with pytest.raises(DeadlineExceededError):
            Retry.attempts(3).backoff(10.0).do(CancelToken(timeout=0.05), operation)

        assert operation.calls == 1

    def test_cancel_during_huge_delay(self):
        """A delay too large for a single timed wait still yields to cancel()."""
        operation = ScriptedOperation((True, RuntimeError("x")))
        token = CancelToken()
        threading.Timer(0.05, token.cancel).start()

        with pytest.raises(CancelledError):
            Retry.attempts(3).backoff(1e12).do(token, operation)

        assert operation.calls == 1

    def test_cancel_during_infinite_delay(self):
        """A custom sequence returning infinity waits until cancelled."""
        operation = ScriptedOperation((True, RuntimeError("x")))
        token = CancelToken()
        threading.Timer(0.05, token.cancel).start()

        with pytest.raises(CancelledError):
            Retry(max_attempts=3, backoff_fn=lambda attempt: math.inf).do(token, operation)

        assert operation.calls == 1


# --- on_retry hook ---


class TestOnRetry:
    """Test the on_retry callback."""

    def test_called_before_each_wait(self):
        """Receives attempt index, error and delay; never after the last call."""
        cause = RuntimeError("x")
        seen = []

        with pytest.raises(NoAttemptsLeftError):
            Retry.attempts(3).exponential_backoff(0.001).do(
                RecordingSignal(),
                ScriptedOperation((True, cause)),
                on_retry=lambda *args: seen.append(args),
            )

        assert seen == [(0, cause, 0.001), (1, cause, 0.002)]

    def test_called_with_zero_delay_without_backoff(self):
        """Without backoff the reported delay is 0."""
        seen = []

        do(
            None,
            ScriptedOperation((True, RuntimeError("x")), (False, None)),
            with_attempts(3),
            on_retry=lambda *args: seen.append(args[2]),
        )

        assert seen == [0.0]
