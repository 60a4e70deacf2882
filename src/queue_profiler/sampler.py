"""Bounded queue depth sampling loop."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

from .interfaces import DelayProvider, DepthSource, SampleStore

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


class Sampler:
    """Samples the depth of one queue a fixed number of times.

    Every collaborator failure propagates to the caller of :meth:`run`
    unchanged; the sampler never retries and never skips an iteration.
    Samples saved before a failure are left in the store.
    """

    def __init__(
        self,
        depth_source: DepthSource,
        delay_provider: DelayProvider,
        sample_store: SampleStore,
        queue_name: str,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._depth_source = depth_source
        self._delay_provider = delay_provider
        self._sample_store = sample_store
        self._queue_name = queue_name
        self._clock = clock or utc_now

    @property
    def queue_name(self) -> str:
        return self._queue_name

    def run(self, execution_count: int, delay_between_executions: timedelta) -> None:
        """Take ``execution_count`` samples, delaying only between them."""
        for index in range(execution_count):
            depth = self._depth_source.get_depth(self._queue_name)
            observed_at = self._clock()
            self._sample_store.save(self._queue_name, observed_at, depth)
            logger.debug(
                "queue %s sample %d/%d: depth=%s at %s",
                self._queue_name,
                index + 1,
                execution_count,
                depth,
                observed_at.isoformat(),
            )
            if index + 1 < execution_count:
                self._delay_provider.delay(delay_between_executions)
