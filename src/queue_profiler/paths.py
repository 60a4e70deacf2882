"""Shared project path helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Final

PROJECT_ROOT: Final[Path] = (
    Path(os.environ["QUEUE_PROFILER_HOME"]).expanduser().resolve()
    if "QUEUE_PROFILER_HOME" in os.environ
    else Path.cwd()
)


def profiles_dir() -> Path:
    return PROJECT_ROOT / "profiles"


def runs_dir() -> Path:
    return PROJECT_ROOT / "runs"


def templates_dir() -> Path:
    return PROJECT_ROOT / "templates"


def resolve_path(path: Path) -> Path:
    """Resolve ``path`` against the project root unless it is absolute."""
    path = path.expanduser()
    if path.is_absolute():
        return path
    return PROJECT_ROOT / path
