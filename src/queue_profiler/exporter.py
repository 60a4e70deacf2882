"""Export utilities."""

from __future__ import annotations

import csv
from pathlib import Path

from .stores import open_store

FIELDNAMES = ["queue_name", "observed_at", "depth"]


def export_csv(store_path: Path, output_path: Path | None = None, queue_name: str | None = None) -> Path:
    samples = open_store(store_path).load(queue_name)
    destination = output_path or store_path.with_name(f"{store_path.stem}_export.csv")
    destination.parent.mkdir(parents=True, exist_ok=True)
    with destination.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=FIELDNAMES)
        writer.writeheader()
        for sample in samples:
            writer.writerow(
                {
                    "queue_name": sample.queue_name,
                    "observed_at": sample.observed_at.isoformat(),
                    "depth": sample.depth,
                }
            )
    return destination
