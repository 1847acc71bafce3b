"""
Retry configuration and strategy definitions.
"""

import math
from dataclasses import dataclass
from enum import Enum
from numbers import Real
from typing import Callable

from .backoff import Backoff, RandomSource, apply_jitter, exponential_backoff, linear_backoff
from ..exceptions import InvalidPolicyError


class RetryStrategy(str, Enum):
    """Available backoff strategies."""

    LINEAR = "linear"  # delay = base
    EXPONENTIAL = "exponential"  # delay = base * (2 ** attempt)


@dataclass
class RetryConfig:
    """
    Configuration for retry behavior.

    Attributes:
        attempts: Maximum number of calls, the first one included (default: 3)
        backoff: Delay in seconds after a failed call; <= 0 disables backoff (default: 0.0)
        strategy: Backoff strategy to use (default: linear)
        jitter: Jitter fraction in [0.0, 1.0), out of range means 0.1 (default: 0.0)
        max_delay: Cap for exponential delays in seconds (default: uncapped)
        rng: Random source for jitter (default: shared process-wide source)
    """

    attempts: int = 3
    backoff: float = 0.0
    strategy: RetryStrategy = RetryStrategy.LINEAR
    jitter: float = 0.0
    max_delay: float | None = None
    rng: RandomSource | None = None

    def backoff_sequence(self) -> Backoff | None:
        """Build the delay sequence described by this config, None if disabled."""
        for name in ("backoff", "jitter", "max_delay"):
            value = getattr(self, name)
            if name == "max_delay" and value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, Real):
                raise InvalidPolicyError(f"{name} must be a number, got {value!r}")
            # out of range jitter, NaN included, falls back to DEFAULT_JITTER
            if name != "jitter" and not math.isfinite(value):
                raise InvalidPolicyError(f"{name} must be finite, got {value!r}")
        try:
            strategy = RetryStrategy(self.strategy)
        except ValueError:
            raise InvalidPolicyError(f"Unknown retry strategy: {self.strategy!r}") from None

        if self.backoff <= 0:
            return None
        if strategy == RetryStrategy.EXPONENTIAL:
            base = exponential_backoff(self.backoff, self.max_delay)
        else:
            base = linear_backoff(self.backoff)
        return apply_jitter(base, self.jitter, self.rng)

    @classmethod
    def aggressive(cls) -> "RetryConfig":
        """Preset for aggressive retry (more attempts, longer delays)."""
        return cls(
            attempts=10,
            backoff=2.0,
            strategy=RetryStrategy.EXPONENTIAL,
            jitter=0.25,
            max_delay=120.0,
        )

    @classmethod
    def conservative(cls) -> "RetryConfig":
        """Preset for conservative retry (fewer attempts, shorter delays)."""
        return cls(
            attempts=3,
            backoff=0.5,
            strategy=RetryStrategy.EXPONENTIAL,
            jitter=0.1,
            max_delay=10.0,
        )

    @classmethod
    def no_retry(cls) -> "RetryConfig":
        """Preset for no retry (single attempt only)."""
        return cls(attempts=1)


Option = Callable[[RetryConfig], None]


def with_attempts(attempts: int) -> Option:
    """Set the max number of calls."""

    def option(config: RetryConfig) -> None:
        config.attempts = attempts

    return option


def with_backoff(duration: float) -> Option:
    """Set the delay in seconds after a failed call."""

    def option(config: RetryConfig) -> None:
        config.backoff = duration

    return option


def with_exponential() -> Option:
    """Make the backoff exponential, see RetryStrategy.EXPONENTIAL."""

    def option(config: RetryConfig) -> None:
        config.strategy = RetryStrategy.EXPONENTIAL

    return option


def with_jitter(jitter: float) -> Option:
    """Apply jitter to the backoff, see RetryConfig.jitter."""

    def option(config: RetryConfig) -> None:
        config.jitter = jitter

    return option


def with_max_delay(max_delay: float) -> Option:
    """Cap exponential delays."""

    def option(config: RetryConfig) -> None:
        config.max_delay = max_delay

    return option


def with_random(rng: RandomSource) -> Option:
    """Use a private random source for jitter."""

    def option(config: RetryConfig) -> None:
        config.rng = rng

    return option
