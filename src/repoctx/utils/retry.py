"""Bounded retry policy for operations that can fail transiently.

Used around directory cleanup (files briefly held by the OS or by a
just-killed child process) and around update commands.
"""

import logging
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)


def _failed(ok: bool) -> bool:
    return not ok


@dataclass(frozen=True)
class RetryPolicy:
    """Explicit retry policy: attempts, pause and backoff.

    Attributes:
        max_attempts: Total attempts including the first one
        delay: Pause before the second attempt, in seconds
        backoff: Multiplier applied to the pause after every attempt
        max_delay: Upper bound on a single pause (None for unbounded)
        sleep: Sleep function (injectable for tests)
    """

    max_attempts: int = 3
    delay: float = 0.5
    backoff: float = 1.0
    max_delay: float | None = None
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1 (got {self.max_attempts})")
        if self.delay < 0:
            raise ValueError(f"delay must not be negative (got {self.delay})")
        if self.backoff < 1:
            raise ValueError(f"backoff must be >= 1 (got {self.backoff})")

    def wait_strategy(self) -> wait_exponential:
        """Exponential wait: delay * backoff ** (attempt - 1), capped at max_delay."""
        if self.max_delay is None:
            return wait_exponential(multiplier=self.delay, exp_base=self.backoff)
        return wait_exponential(multiplier=self.delay, max=self.max_delay, exp_base=self.backoff)

    def delays(self) -> Iterator[float]:
        """Yield the pause taken after each failed attempt except the last."""
        wait = self.wait_strategy()
        state = RetryCallState(retry_object=None, fn=None, args=(), kwargs={})
        for attempt in range(1, self.max_attempts):
            state.attempt_number = attempt
            yield wait(state)

    def run(self, operation: Callable[[], bool], description: str = "operation") -> bool:
        """Call ``operation`` until it returns True or attempts run out.

        Exceptions raised by ``operation`` are not caught: an operation
        that can fail transiently reports it by returning False.

        Returns:
            True if any attempt succeeded
        """

        def log_retry(state: RetryCallState) -> None:
            logger.warning(
                "Attempt %d/%d of %s failed, retrying in %.2fs",
                state.attempt_number,
                self.max_attempts,
                description,
                state.next_action.sleep if state.next_action else 0.0,
            )

        def give_up(state: RetryCallState) -> bool:
            logger.warning("%s failed after %d attempt(s)", description, state.attempt_number)
            return False

        retryer = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=self.wait_strategy(),
            retry=retry_if_result(_failed),
            before_sleep=log_retry,
            retry_error_callback=give_up,
            sleep=self.sleep,
        )
        succeeded = retryer(operation)
        attempts = retryer.statistics.get("attempt_number", 1)
        if succeeded and attempts > 1:
            logger.debug("%s succeeded on attempt %d", description, attempts)
        return bool(succeeded)
