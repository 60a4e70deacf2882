"""Delay collaborators."""

from __future__ import annotations

import time
from datetime import timedelta


class SleepDelay:
    """Blocks the calling thread with :func:`time.sleep`.

    Zero and negative durations return immediately.
    """

    def delay(self, duration: timedelta) -> None:
        seconds = duration.total_seconds()
        if seconds <= 0:
            return
        time.sleep(seconds)
