"""Server-side timestamps in epoch milliseconds."""

import time
from collections.abc import Callable

Clock = Callable[[], int]


def wall_clock_ms() -> int:
    return time.time_ns() // 1_000_000


class MonotonicClock:
    """Wall-clock milliseconds that never go backwards within the process.

    If the system clock steps back, the last returned value is repeated until
    wall time catches up.

    Args:
        source: Underlying time source, ``wall_clock_ms`` by default.
    """

    def __init__(self, source: Clock = wall_clock_ms) -> None:
        self._source = source
        self._last = 0

    def __call__(self) -> int:
        now = self._source()
        if now < self._last:
            return self._last
        self._last = now
        return now
