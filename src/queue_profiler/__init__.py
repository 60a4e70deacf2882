"""Queue depth profiling toolkit."""

from __future__ import annotations

from .exceptions import (
    DelayError,
    PersistenceError,
    QueueProfilerError,
    SourceUnavailableError,
    ValidationError,
)
from .interfaces import DelayProvider, DepthSource, SampleStore
from .models import DepthSample
from .sampler import Sampler

__version__ = "0.1.0"

__all__ = [
    "DelayError",
    "DelayProvider",
    "DepthSample",
    "DepthSource",
    "PersistenceError",
    "QueueProfilerError",
    "SampleStore",
    "Sampler",
    "SourceUnavailableError",
    "ValidationError",
    "__version__",
]
