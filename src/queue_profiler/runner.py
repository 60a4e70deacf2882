"""Profile planning and execution."""

from __future__ import annotations

import hashlib
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, Iterable

from .artifacts import RunPaths, timestamp_now, write_summary
from .exceptions import QueueProfilerError, ValidationError
from .interfaces import DelayProvider, DepthSource
from .models import ProfileDefinition, SamplingSettings, SourceSettings, StoreSettings
from .paths import resolve_path, runs_dir
from .sampler import Sampler
from .sources import CommandDepthSource, DirectoryDepthSource
from .stores import LDJSONSampleStore, SampleFile, SQLiteSampleStore
from .timing import SleepDelay

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RunPlan:
    run_id: str
    profile: ProfileDefinition
    profile_path: Path | None
    store_path: Path
    sampling: SamplingSettings


def _hash_identifier(parts: Iterable[str]) -> str:
    digest = hashlib.sha256(":".join(parts).encode("utf-8")).hexdigest()[:10]
    return digest


def _generate_run_id(profile: ProfileDefinition, profile_path: Path | None) -> str:
    now = datetime.now(tz=timezone.utc)
    timestamp = now.strftime("%Y%m%dT%H%M%SZ")
    source = profile_path.as_posix() if profile_path else ",".join(profile.queues)
    hash_suffix = _hash_identifier((source, now.isoformat()))
    return f"qp-{timestamp}-{hash_suffix}"


def build_depth_source(settings: SourceSettings) -> DepthSource:
    options = settings.options
    if settings.type == "command":
        return CommandDepthSource(options["command"], timeout_s=options.get("timeout_s"))
    if settings.type == "directory":
        return DirectoryDepthSource(resolve_path(Path(options["root"])), options.get("pattern", "*"))
    raise ValidationError(f"unknown source type '{settings.type}'")


def build_sample_store(settings: StoreSettings) -> SampleFile:
    path = resolve_path(settings.path)
    if settings.type == "sqlite":
        return SQLiteSampleStore(path)
    if settings.type == "ldjson":
        return LDJSONSampleStore(path)
    raise ValidationError(f"unknown store type '{settings.type}'")


class Runner:
    def __init__(
        self,
        runs_path: Path | None = None,
        delay_provider: DelayProvider | None = None,
    ) -> None:
        self._runs_path = runs_path or runs_dir()
        self._delay_provider = delay_provider or SleepDelay()

    def plan(
        self,
        profile: ProfileDefinition,
        profile_path: Path | None = None,
        executions: int | None = None,
        delay: timedelta | None = None,
    ) -> RunPlan:
        if not profile.queues:
            raise ValidationError("profile must name at least one queue")
        if executions is not None and executions < 0:
            raise ValidationError("executions must be a non-negative integer")
        sampling = SamplingSettings(
            executions=profile.sampling.executions if executions is None else executions,
            delay=profile.sampling.delay if delay is None else delay,
        )
        return RunPlan(
            run_id=_generate_run_id(profile, profile_path),
            profile=profile,
            profile_path=profile_path,
            store_path=resolve_path(profile.store.path),
            sampling=sampling,
        )

    def execute(self, plan: RunPlan, render: bool = True) -> Dict[str, Any]:
        run_paths = RunPaths(run_id=plan.run_id, base_dir=self._runs_path)
        run_paths.run_dir.mkdir(parents=True, exist_ok=True)

        source = build_depth_source(plan.profile.source)
        store = build_sample_store(plan.profile.store)
        started_at = datetime.now(tz=timezone.utc)

        summary: Dict[str, Any] = {
            "run_id": plan.run_id,
            "created_at": started_at.isoformat(),
            "profile": {
                "path": plan.profile_path.as_posix() if plan.profile_path else None,
                "metadata": dict(plan.profile.metadata),
            },
            "source": plan.profile.source.type,
            "store": {"type": plan.profile.store.type, "path": plan.store_path.as_posix()},
            "executions": plan.sampling.executions,
            "delay_ms": plan.sampling.delay_ms,
            "status": "PENDING",
            "queues": [],
        }
        write_summary(run_paths.summary_path, summary)
        logger.info(
            "Run %s: sampling %d queue(s) %d time(s) every %.0f ms",
            plan.run_id,
            len(plan.profile.queues),
            plan.sampling.executions,
            plan.sampling.delay_ms,
        )

        with ThreadPoolExecutor(
            max_workers=len(plan.profile.queues), thread_name_prefix="sampler"
        ) as pool:
            futures = [
                pool.submit(
                    self._sample_queue,
                    Sampler(source, self._delay_provider, store, queue_name),
                    plan.sampling,
                )
                for queue_name in plan.profile.queues
            ]
            for future in futures:
                summary["queues"].append(future.result())

        failed = [entry for entry in summary["queues"] if entry["status"] != "PASS"]
        summary["status"] = "FAIL" if failed else "PASS"
        summary["completed_at"] = timestamp_now()
        write_summary(run_paths.summary_path, summary)
        logger.info("Run %s finished with status %s", plan.run_id, summary["status"])

        if render:
            from .reporting import render_reports

            samples = [
                sample
                for sample in store.load()
                if sample.queue_name in plan.profile.queues and sample.observed_at >= started_at
            ]
            render_reports(samples, run_paths.run_dir, title=f"Queue Depth Report - {plan.run_id}")
        return summary

    def _sample_queue(self, sampler: Sampler, sampling: SamplingSettings) -> Dict[str, Any]:
        start = time.monotonic()
        entry: Dict[str, Any] = {
            "queue": sampler.queue_name,
            "started_at": timestamp_now(),
            "status": "PASS",
            "error": None,
        }
        try:
            sampler.run(sampling.executions, sampling.delay)
        except QueueProfilerError as exc:
            logger.warning("Sampling queue %s failed: %s", sampler.queue_name, exc)
            entry["status"] = "FAIL"
            entry["error"] = str(exc)
        entry["duration_s"] = time.monotonic() - start
        entry["completed_at"] = timestamp_now()
        return entry


def run_profile(
    profile: ProfileDefinition,
    profile_path: Path | None = None,
    runs_path: Path | None = None,
    executions: int | None = None,
    delay: timedelta | None = None,
) -> Dict[str, Any]:
    runner = Runner(runs_path=runs_path)
    plan = runner.plan(profile, profile_path=profile_path, executions=executions, delay=delay)
    return runner.execute(plan)

