"""A wait group with an optional timeout."""

from __future__ import annotations

import threading
from datetime import timedelta


class WaitGroup:
    """Counts outstanding tasks; wait() blocks until the count reaches zero."""

    def __init__(self) -> None:
        self._count = 0
        self._cond = threading.Condition()

    def add(self, delta: int = 1) -> None:
        with self._cond:
            count = self._count + delta
            if count < 0:
                raise ValueError("negative WaitGroup counter")
            self._count = count
            if count == 0:
                self._cond.notify_all()

    def done(self) -> None:
        self.add(-1)

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the count is zero; return False if the timeout ran out."""
        with self._cond:
            return self._cond.wait_for(lambda: self._count == 0, timeout)


def wait_timeout(wait_group: WaitGroup, timeout: float | timedelta) -> bool:
    """Wait for the group for at most timeout seconds; True if it finished."""
    if isinstance(timeout, timedelta):
        timeout = timeout.total_seconds()
    return wait_group.wait(timeout)