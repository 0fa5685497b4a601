"""
Fixed-interval tick driver with a cancel handle.
"""

import threading
from typing import Callable, Optional


class Ticker:
    """
    Call a function every ``interval`` seconds until cancelled.

    The first call happens one interval after ``run`` starts. ``sleep`` is
    injectable so tests can drive ticks without waiting on the wall clock.
    """

    def __init__(
        self,
        interval: float,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        if interval < 0:
            raise ValueError("interval must not be negative")
        self.interval = interval
        self._sleep = sleep
        self._cancelled = threading.Event()
        self.ticks = 0

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        """Stop the loop; the current tick finishes, no further tick fires."""
        self._cancelled.set()

    def _wait(self) -> None:
        if self._sleep is not None:
            self._sleep(self.interval)
        else:
            # Wakes early on cancel()
            self._cancelled.wait(self.interval)

    def run(self, tick: Callable[[], None]) -> None:
        """Block, calling ``tick`` once per interval until cancelled."""
        while not self.cancelled:
            self._wait()
            if self.cancelled:
                break
            self.ticks += 1
            tick()


def ticker_for(poll_interval_ms: int) -> Ticker:
    """Build a Ticker from a millisecond interval."""
    return Ticker(poll_interval_ms / 1000.0)
