"""Sample stores writing line-delimited JSON or SQLite."""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from datetime import datetime
from pathlib import Path
from typing import List, Union

from .exceptions import PersistenceError, ValidationError
from .models import DepthSample

logger = logging.getLogger(__name__)

LDJSON_SUFFIXES = frozenset({".ldjson", ".jsonl", ".ndjson"})
SQLITE_SUFFIXES = frozenset({".db", ".sqlite", ".sqlite3"})


def _ensure_parent(path: Path) -> None:
    if not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
        logger.info("Created sample directory: %s", path.parent)


class LDJSONSampleStore:
    """Appends one JSON object per sample to a file."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def save(self, queue_name: str, observed_at: datetime, depth: int) -> None:
        record = DepthSample(queue_name, observed_at, depth).to_record()
        try:
            with self._lock:
                _ensure_parent(self._path)
                with self._path.open("a", encoding="utf-8") as handle:
                    handle.write(json.dumps(record))
                    handle.write("\n")
        except OSError as exc:
            raise PersistenceError(f"failed to append sample to {self._path}: {exc}") from exc

    def load(self, queue_name: str | None = None) -> List[DepthSample]:
        if not self._path.exists():
            return []
        samples: List[DepthSample] = []
        try:
            with self._path.open("r", encoding="utf-8") as handle:
                for line_number, line in enumerate(handle, start=1):
                    if not line.strip():
                        continue
                    try:
                        sample = DepthSample.from_record(json.loads(line))
                    except (KeyError, TypeError, ValueError) as exc:
                        raise PersistenceError(
                            f"{self._path}:{line_number}: malformed sample record"
                        ) from exc
                    if queue_name is None or sample.queue_name == queue_name:
                        samples.append(sample)
        except OSError as exc:
            raise PersistenceError(f"failed to read samples from {self._path}: {exc}") from exc
        return samples


class SQLiteSampleStore:
    """Stores samples in a ``depth_samples`` table.

    A connection is opened per operation so that samplers running on
    different threads can share one store.
    """

    _SCHEMA = (
        "CREATE TABLE IF NOT EXISTS depth_samples ("
        " id INTEGER PRIMARY KEY AUTOINCREMENT,"
        " queue_name TEXT NOT NULL,"
        " observed_at TEXT NOT NULL,"
        " depth INTEGER NOT NULL"
        ")",
        "CREATE INDEX IF NOT EXISTS idx_depth_samples_queue_time"
        " ON depth_samples (queue_name, observed_at)",
    )

    def __init__(self, path: Path, busy_timeout_ms: int = 5000) -> None:
        self._path = path
        self._busy_timeout_ms = busy_timeout_ms

    @property
    def path(self) -> Path:
        return self._path

    def _connect(self) -> sqlite3.Connection:
        _ensure_parent(self._path)
        conn = sqlite3.connect(self._path)
        try:
            conn.execute(f"PRAGMA busy_timeout={int(self._busy_timeout_ms)}")
            conn.execute("PRAGMA journal_mode=WAL")
            for statement in self._SCHEMA:
                conn.execute(statement)
            conn.commit()
        except BaseException:
            conn.close()
            raise
        return conn

    def save(self, queue_name: str, observed_at: datetime, depth: int) -> None:
        try:
            conn = self._connect()
            try:
                conn.execute(
                    "INSERT INTO depth_samples (queue_name, observed_at, depth) VALUES (?, ?, ?)",
                    (queue_name, observed_at.isoformat(), depth),
                )
                conn.commit()
            finally:
                conn.close()
        except (sqlite3.Error, OSError, OverflowError) as exc:
            raise PersistenceError(f"failed to save sample to {self._path}: {exc}") from exc

    def load(self, queue_name: str | None = None) -> List[DepthSample]:
        if not self._path.exists():
            return []
        query = "SELECT queue_name, observed_at, depth FROM depth_samples"
        params: tuple = ()
        if queue_name is not None:
            query += " WHERE queue_name = ?"
            params = (queue_name,)
        query += " ORDER BY observed_at, id"
        try:
            conn = self._connect()
            try:
                rows = conn.execute(query, params).fetchall()
            finally:
                conn.close()
        except (sqlite3.Error, OSError) as exc:
            raise PersistenceError(f"failed to read samples from {self._path}: {exc}") from exc
        return [
            DepthSample(queue_name=row[0], observed_at=datetime.fromisoformat(row[1]), depth=row[2])
            for row in rows
        ]


SampleFile = Union[LDJSONSampleStore, SQLiteSampleStore]


def open_store(path: Path) -> SampleFile:
    suffix = path.suffix.lower()
    if suffix in SQLITE_SUFFIXES:
        return SQLiteSampleStore(path)
    if suffix in LDJSON_SUFFIXES:
        return LDJSONSampleStore(path)
    raise ValidationError(
        f"{path}: unsupported sample store suffix '{path.suffix}' "
        f"(expected one of {', '.join(sorted(SQLITE_SUFFIXES | LDJSON_SUFFIXES))})"
    )
