"""Bounded retry loop for flaky playlist mutation calls."""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

from .errors import TransientCatalogError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 10
DEFAULT_DELAY_SECONDS = 0.5


@dataclass
class RetryOutcome(Generic[T]):
    """Result of a retried call: either a value or the exhausted error."""

    succeeded: bool
    attempts: int
    value: Optional[T] = None
    last_error: Optional[Exception] = None
    cancelled: bool = False

    @property
    def exhausted(self) -> bool:
        return not self.succeeded


def call_with_retry(
    func: Callable[[], T],
    *,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    delay: float = DEFAULT_DELAY_SECONDS,
    retry_on: tuple[type[Exception], ...] = (TransientCatalogError,),
    cancel_event: Optional[threading.Event] = None,
    description: str = "",
) -> RetryOutcome[T]:
    """Call ``func`` until it succeeds or the attempts are used up.

    Only exceptions listed in ``retry_on`` are retried; anything else
    propagates. The wait between attempts is interrupted as soon as
    ``cancel_event`` is set.

    Args:
        func: Zero-argument callable to run.
        max_attempts: Maximum number of calls.
        delay: Fixed delay between two calls in seconds.
        retry_on: Exception types that trigger another attempt.
        cancel_event: Optional event that stops further attempts.
        description: Label used in log messages.

    Returns:
        RetryOutcome describing the final state.
    """
    label = description or getattr(func, "__name__", "call")
    cancel_event = cancel_event or threading.Event()
    last_error: Optional[Exception] = None

    for attempt in range(1, max_attempts + 1):
        try:
            value = func()
            if attempt > 1:
                logger.debug(f"{label} succeeded on attempt {attempt}")
            return RetryOutcome(succeeded=True, attempts=attempt, value=value)
        except retry_on as e:
            last_error = e
            logger.debug(f"{label} attempt {attempt}/{max_attempts} failed: {e}")

        if attempt < max_attempts and cancel_event.wait(delay):
            logger.info(f"{label} cancelled after {attempt} attempt(s)")
            return RetryOutcome(
                succeeded=False,
                attempts=attempt,
                last_error=last_error,
                cancelled=True,
            )

    logger.warning(f"{label} failed after {max_attempts} attempts: {last_error}")
    return RetryOutcome(succeeded=False, attempts=max_attempts, last_error=last_error)
