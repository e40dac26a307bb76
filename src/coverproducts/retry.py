"""Retry with exponential backoff and repeated-cause detection.

``RetryPolicy`` is a small state machine over ``(attempt, last_cause)``.
A failure whose cause equals the cause of the previous failure is
treated as deterministic and stops retrying early.
"""

from __future__ import annotations

import enum
import logging
import random
import time
from collections.abc import Callable
from typing import TypeVar

from coverproducts.config import RetryStrategy
from coverproducts.exceptions import RetryExhaustedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryDecision(enum.Enum):
    """Outcome of recording a failure."""

    RETRY = "retry"
    STOP = "stop"


class RetryPolicy:
    """Decide whether a failed operation should be attempted again.

    Args:
        strategy: Attempt budget and backoff shape.

    Example:
        >>> policy = RetryPolicy(RetryStrategy(max_attempts=3))
        >>> policy.record_failure("disk full")
        <RetryDecision.RETRY: 'retry'>
        >>> policy.record_failure("disk full")
        <RetryDecision.STOP: 'stop'>
    """

    def __init__(self, strategy: RetryStrategy) -> None:
        self._strategy = strategy
        self.attempts = 0
        self.last_cause: str | None = None
        self.stop_reason = ""

    def record_failure(self, cause: str) -> RetryDecision:
        """Record a failed attempt and decide what to do next.

        Args:
            cause: Identifier of the failure cause.

        Returns:
            ``RETRY`` if another attempt should be made, ``STOP`` if the
            budget is used up or *cause* repeats the previous cause.
        """
        repeated = self.last_cause is not None and cause == self.last_cause
        self.attempts += 1
        self.last_cause = cause
        if repeated:
            self.stop_reason = "same cause on consecutive attempts"
            return RetryDecision.STOP
        if self.attempts >= self._strategy.max_attempts:
            self.stop_reason = f"{self.attempts} attempts exhausted"
            return RetryDecision.STOP
        return RetryDecision.RETRY

    def next_delay(self) -> float:
        """Return the delay in seconds before the next attempt.

        Grows exponentially with the number of recorded failures, is
        capped at ``max_delay``, and adds random jitter.
        """
        s = self._strategy
        retry_index = max(self.attempts - 1, 0)
        base_delay: float = min(
            s.initial_delay * (s.multiplier**retry_index), s.max_delay
        )
        jitter: float = random.uniform(0, base_delay * s.jitter)  # noqa: S311
        return float(base_delay + jitter)


def failure_cause(exc: BaseException) -> str:
    """Return the cause identifier used to compare consecutive failures.

    Library errors carry a ``cause``; anything else is identified by its
    type and message.
    """
    cause = getattr(exc, "cause", "")
    if isinstance(cause, str) and cause:
        return cause
    return f"{type(exc).__name__}: {exc}"


def with_retries(
    operation: Callable[[], T],
    strategy: RetryStrategy,
    description: str = "operation",
    sleep: Callable[[float], None] | None = None,
) -> T:
    """Run *operation*, retrying failures according to *strategy*.

    Args:
        operation: Zero-argument callable to run.
        strategy: Attempt budget and backoff shape.
        description: Name used in log messages and errors.
        sleep: Function used to wait between attempts; defaults to
            ``time.sleep``.

    Returns:
        The result of the first successful attempt.

    Raises:
        RetryExhaustedError: When the policy stops retrying. The last
            failure is chained as ``__cause__``.
    """
    policy = RetryPolicy(strategy)
    while True:
        try:
            return operation()
        except Exception as exc:
            cause = failure_cause(exc)
            if policy.record_failure(cause) is RetryDecision.STOP:
                logger.error(
                    "Giving up on %s after %d attempt(s): %s",
                    description,
                    policy.attempts,
                    policy.stop_reason,
                )
                raise RetryExhaustedError(
                    what=f"{description} failed after retries",
                    cause=f"{cause} ({policy.stop_reason})",
                    fix="Check the storage backend and re-run the chip",
                ) from exc
            delay = policy.next_delay()
            logger.warning(
                "%s failed (%s, attempt %d/%d), retrying in %.1fs...",
                description,
                cause,
                policy.attempts,
                strategy.max_attempts,
                delay,
            )
            (sleep or time.sleep)(delay)
