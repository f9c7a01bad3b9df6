"""
Retry policy with exponential backoff for the HackMD API client.

This module decides which attempt outcomes are worth retrying and how long
to wait between attempts. The retry loop itself is driven by Tenacity.
"""

import asyncio
import logging
import random
from dataclasses import dataclass, replace
from typing import Awaitable, Callable, Optional

from tenacity import AsyncRetrying, RetryCallState

from .classifier import AttemptOutcome, RetryableFailure, TransportFailure

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY = 0.1


def should_retry(outcome: AttemptOutcome, attempt: int, max_attempts: int) -> bool:
    """
    Determine if a request should be retried.

    Only server errors presumed transient and transient transport failures
    are retried. Rate-limited responses never are: the caller decides how
    to back off from a 429.

    Args:
        outcome: Outcome of the attempt that just finished
        attempt: Number of attempts made so far (1-indexed)
        max_attempts: Total attempts allowed, including the first

    Returns:
        True if another attempt should be made, False otherwise
    """
    if attempt >= max_attempts:
        return False
    if isinstance(outcome, RetryableFailure):
        return True
    if isinstance(outcome, TransportFailure):
        return outcome.transient
    return False


def delay_for(attempt: int, base_delay: float) -> float:
    """
    Calculate the exponential backoff delay before a retry.

    ``attempt`` is 1 for the first retry, so the first retry waits
    ``base_delay``, the second ``2 * base_delay`` and so on.
    """
    return base_delay * (2 ** (attempt - 1))


@dataclass(frozen=True)
class RetryConfig:
    """
    Configuration for retry behavior.

    Attributes:
        max_attempts: Maximum number of attempts, including the first one
        base_delay: Delay before the first retry, in seconds
        max_delay: Optional cap on any single delay, in seconds
        jitter: Fraction of symmetric random jitter applied to each delay
            (0.1 means +/- 10%); 0 disables jitter
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    base_delay: float = DEFAULT_BASE_DELAY
    max_delay: Optional[float] = None
    jitter: float = 0.0

    def __post_init__(self):
        """Validate retry configuration."""
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must not be negative")
        if self.max_delay is not None and self.max_delay < 0:
            raise ValueError("max_delay must not be negative")
        if not 0.0 <= self.jitter < 1.0:
            raise ValueError("jitter must be in [0, 1)")

    def merge(
        self,
        max_attempts: Optional[int] = None,
        base_delay: Optional[float] = None,
    ) -> "RetryConfig":
        """Return a copy with the given per-call overrides applied."""
        return replace(
            self,
            max_attempts=self.max_attempts if max_attempts is None else max_attempts,
            base_delay=self.base_delay if base_delay is None else base_delay,
        )

    def backoff(self, attempt: int) -> float:
        """
        Calculate the actual wait before retry number ``attempt``.

        Applies ``max_delay`` and jitter on top of ``delay_for``. Jitter is
        symmetric, so the expected delay still doubles with each attempt.
        """
        delay = delay_for(attempt, self.base_delay)
        if self.max_delay is not None:
            delay = min(delay, self.max_delay)

        # Add jitter to prevent thundering herd
        if self.jitter and delay > 0:
            spread = delay * self.jitter
            delay = max(0.0, delay + random.uniform(-spread, spread))

        return delay


class RetryHandler:
    """Handler for driving request attempts with retry logic using Tenacity."""

    def __init__(
        self,
        config: RetryConfig,
        deadline: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Initialize retry handler.

        Args:
            config: Retry configuration
            deadline: Optional overall time budget for all attempts, in seconds
            sleep: Coroutine used to wait between attempts
        """
        self.config = config
        self.deadline = deadline
        self.sleep = sleep

    def _should_retry_state(self, retry_state: RetryCallState) -> bool:
        """Check if the last outcome should trigger a retry."""
        if retry_state.outcome is None or retry_state.outcome.failed:
            return False
        return should_retry(
            retry_state.outcome.result(),
            retry_state.attempt_number,
            self.config.max_attempts,
        )

    def _wait(self, retry_state: RetryCallState) -> float:
        return self.config.backoff(retry_state.attempt_number)

    def _should_stop(self, retry_state: RetryCallState) -> bool:
        """Stop when the next wait would run into the overall deadline."""
        if self.deadline is None:
            return False
        # idle_for also covers injected sleeps that leave the clock alone
        elapsed = max(retry_state.seconds_since_start or 0.0, retry_state.idle_for)
        return elapsed + (retry_state.upcoming_sleep or 0.0) >= self.deadline

    def _log_retry_attempt(self, retry_state: RetryCallState):
        """Log retry attempts."""
        outcome = retry_state.outcome.result()
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        if isinstance(outcome, TransportFailure):
            reason = f"{type(outcome.cause).__name__}: {outcome.cause}"
        else:
            reason = f"status {outcome.status}"
        logger.warning(
            f"Request failed with {reason}, retrying in {delay:.2f}s "
            f"(attempt {retry_state.attempt_number}/{self.config.max_attempts})..."
        )

    @staticmethod
    def _last_outcome(retry_state: RetryCallState) -> AttemptOutcome:
        return retry_state.outcome.result()

    async def execute_async(
        self,
        func: Callable[[], Awaitable[AttemptOutcome]],
    ) -> AttemptOutcome:
        """
        Execute request attempts until one is final or retries run out.

        Args:
            func: Async function performing one attempt and classifying it

        Returns:
            The outcome of the last attempt made

        Raises:
            Exception: Anything ``func`` raises is propagated unchanged,
                including ``asyncio.CancelledError``
        """
        retrying = AsyncRetrying(
            retry=self._should_retry_state,
            stop=self._should_stop,
            wait=self._wait,
            sleep=self.sleep,
            before_sleep=self._log_retry_attempt,
            retry_error_callback=self._last_outcome,
        )
        return await retrying(func)
