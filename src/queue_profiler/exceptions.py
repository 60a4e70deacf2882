"""Custom exception hierarchy."""

from __future__ import annotations


class QueueProfilerError(Exception):
    """Base exception for the queue_profiler package."""


class ValidationError(QueueProfilerError):
    """Raised when profile or input validation fails."""


class SourceUnavailableError(QueueProfilerError):
    """Raised when a depth source cannot report the depth of a queue."""


class PersistenceError(QueueProfilerError):
    """Raised when a sample store fails to save or load samples."""


class DelayError(QueueProfilerError):
    """Raised when the delay mechanism fails."""
