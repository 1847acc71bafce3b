"""
Backoff sequences and jitter.

A backoff sequence maps a zero-based attempt index (the number of failed
attempts so far, minus one) to a delay in seconds.
"""

import math
import random
import threading
import time
from typing import Callable, Protocol

DEFAULT_JITTER: float = 0.1

Backoff = Callable[[int], float]


class RandomSource(Protocol):
    """Anything with a `random()` returning a float in [0.0, 1.0)."""

    def random(self) -> float: ...


# Process-wide jitter source. Created lazily on first use, seeded from the
# clock and then shared by every retry in the process: cheap to set up,
# but draws are not independent per invocation. Pass `rng` to the jitter
# helpers for a private or deterministic source.
_randomizer: random.Random | None = None
_seed_lock = threading.Lock()


def shared_random() -> random.Random:
    """Return the process-wide jitter source, creating it on first call."""
    global _randomizer
    if _randomizer is None:
        with _seed_lock:
            if _randomizer is None:
                _randomizer = random.Random(time.time_ns())
    return _randomizer


def linear_backoff(duration: float) -> Backoff:
    """Constant delay for every attempt."""

    def backoff(attempt: int) -> float:
        return duration

    return backoff


def exponential_backoff(duration: float, max_delay: float | None = None) -> Backoff:
    """
    Delay doubling with each attempt: duration * 2 ** attempt.

    For a 100ms duration: 100ms after the first attempt, 200ms after the
    second, 800ms after the fourth.

    Args:
        duration: Delay in seconds after the first attempt
        max_delay: Optional cap in seconds (default: uncapped)
    """

    def backoff(attempt: int) -> float:
        try:
            delay = math.ldexp(duration, attempt)
        except OverflowError:
            delay = math.inf
        if max_delay is not None:
            delay = min(delay, max_delay)
        return delay

    return backoff


def jitter_up(duration: float, jitter: float, rng: RandomSource | None = None) -> float:
    """Scale duration by a multiplier drawn from (1 - jitter, 1 + jitter)."""
    source = rng if rng is not None else shared_random()
    multiplier = 1 + jitter * (source.random() * 2 - 1)
    return duration * multiplier


def apply_jitter(
    backoff: Backoff,
    jitter: float,
    rng: RandomSource | None = None,
) -> Backoff:
    """
    Wrap a backoff sequence with jitter.

    Args:
        backoff: Sequence to randomize
        jitter: Fraction in [0.0, 1.0); anything else falls back to DEFAULT_JITTER
        rng: Random source (default: the shared process-wide source)

    Returns:
        The same sequence when jitter is 0, otherwise a jittered one
    """
    if not 0 <= jitter < 1:
        jitter = DEFAULT_JITTER

    if jitter == 0:
        return backoff

    def jittered(attempt: int) -> float:
        return jitter_up(backoff(attempt), jitter, rng)

    return jittered
