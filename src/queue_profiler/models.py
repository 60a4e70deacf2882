"""Data models for queue_profiler."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, List, Mapping


@dataclass(frozen=True, slots=True)
class DepthSample:
    queue_name: str
    observed_at: datetime
    depth: int

    def to_record(self) -> Dict[str, Any]:
        return {
            "queue": self.queue_name,
            "observed_at": self.observed_at.isoformat(),
            "depth": self.depth,
        }

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "DepthSample":
        return cls(
            queue_name=str(record["queue"]),
            observed_at=datetime.fromisoformat(str(record["observed_at"])),
            depth=int(record["depth"]),
        )


@dataclass(slots=True)
class SamplingSettings:
    executions: int
    delay: timedelta

    @property
    def delay_ms(self) -> float:
        return self.delay.total_seconds() * 1000


@dataclass(slots=True)
class SourceSettings:
    type: str
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class StoreSettings:
    type: str
    path: Path


@dataclass(slots=True)
class ProfileDefinition:
    metadata: Mapping[str, Any]
    queues: List[str]
    source: SourceSettings
    store: StoreSettings
    sampling: SamplingSettings
