"""Fixed-interval polling with a deadline.

The poll loop sleeps between checks instead of busy-waiting. Time is read
through a ``Clock`` so the loop can run against the real clock or against a
fake one that advances on ``sleep``.
"""

import time
from typing import Callable, Protocol, TypeVar

from tenantctl.core.exceptions import PollTimeoutError

T = TypeVar("T")


class Clock(Protocol):
    """Source of monotonic time and blocking sleep."""

    def monotonic(self) -> float: ...

    def sleep(self, seconds: float) -> None: ...


class SystemClock:
    """Clock backed by the time module."""

    def monotonic(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        time.sleep(seconds)


class Deadline:
    """Tracks elapsed time against a fixed budget, measured from creation."""

    def __init__(self, seconds: float, clock: Clock):
        self._seconds = seconds
        self._clock = clock
        self._started = clock.monotonic()

    @property
    def elapsed(self) -> float:
        return self._clock.monotonic() - self._started

    @property
    def expired(self) -> bool:
        return self.elapsed > self._seconds


def poll_until(
    check: Callable[[], T | None],
    interval: float,
    timeout: float,
    clock: Clock | None = None,
) -> T:
    """Call ``check`` every ``interval`` seconds until it returns a value.

    The deadline is tested after every sleep, so no check runs once
    ``timeout`` seconds have elapsed. ``check`` may raise to end the loop
    early; the exception propagates unchanged.

    Args:
        check: Returns None to keep polling, anything else to stop
        interval: Delay between checks in seconds
        timeout: Maximum total wait in seconds
        clock: Clock to use, defaults to the system clock

    Returns:
        The first non-None value returned by ``check``

    Raises:
        PollTimeoutError: If the deadline passes first
    """
    clock = clock or SystemClock()
    deadline = Deadline(timeout, clock)

    while True:
        clock.sleep(interval)
        if deadline.expired:
            raise PollTimeoutError(
                f"Maximum wait time of {timeout:g}s exceeded",
                timeout_seconds=timeout,
            )

        result = check()
        if result is not None:
            return result
