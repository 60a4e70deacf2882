"""Run artifact layout."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

from .utils import dump_json


def timestamp_now() -> str:
    return datetime.now(tz=timezone.utc).isoformat()


@dataclass(slots=True)
class RunPaths:
    run_id: str
    base_dir: Path

    @property
    def run_dir(self) -> Path:
        return self.base_dir / self.run_id

    @property
    def summary_path(self) -> Path:
        return self.run_dir / "summary.json"


def write_summary(path: Path, payload: Dict[str, Any]) -> None:
    dump_json(payload, path)
