"""Capability protocols consumed by the sampler.

Each protocol carries exactly one method so that production collaborators
and test doubles can be swapped without touching :class:`~queue_profiler.sampler.Sampler`.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Protocol, runtime_checkable


@runtime_checkable
class DepthSource(Protocol):
    """Reports the number of pending items in a named queue."""

    def get_depth(self, queue_name: str) -> int:
        """Return the current depth of ``queue_name``; raise on any failure."""


@runtime_checkable
class DelayProvider(Protocol):
    """Suspends the caller between samples."""

    def delay(self, duration: timedelta) -> None:
        """Block for approximately ``duration``; interpretation of zero or negative values is up to the implementation."""


@runtime_checkable
class SampleStore(Protocol):
    """Persists depth samples."""

    def save(self, queue_name: str, observed_at: datetime, depth: int) -> None:
        """Persist one sample; raise on any failure."""
