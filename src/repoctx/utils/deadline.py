"""Caller-supplied deadlines.

A Deadline maps a caller's overall time budget onto per-command timeouts
and onto the ranking scan, so no single step can outlive the request.
"""

import time
from collections.abc import Callable


class Deadline:
    """Absolute point in (monotonic) time by which work should stop.

    Usage:
        deadline = Deadline.after(30)
        runner.execute(cmd, cwd, timeout=deadline.clamp(300))
    """

    def __init__(self, expires_at: float | None, clock: Callable[[], float] = time.monotonic) -> None:
        self._expires_at = expires_at
        self._clock = clock

    @classmethod
    def after(cls, seconds: float | None, clock: Callable[[], float] = time.monotonic) -> "Deadline":
        """Create a deadline ``seconds`` from now (None means no deadline)."""
        if seconds is None:
            return cls(None, clock)
        return cls(clock() + max(seconds, 0.0), clock)

    @classmethod
    def none(cls) -> "Deadline":
        return cls(None)

    @property
    def is_bounded(self) -> bool:
        return self._expires_at is not None

    def remaining(self) -> float | None:
        """Seconds left, floored at zero (None if unbounded)."""
        if self._expires_at is None:
            return None
        return max(self._expires_at - self._clock(), 0.0)

    @property
    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def clamp(self, timeout: float) -> float:
        """Bound a per-step timeout by the time left."""
        remaining = self.remaining()
        if remaining is None:
            return timeout
        return min(timeout, remaining)

    def __repr__(self) -> str:
        return f"Deadline(remaining={self.remaining()!r})"
