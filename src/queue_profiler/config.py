"""Profile loading and validation."""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, List, Sequence

import yaml

from .exceptions import ValidationError
from .models import ProfileDefinition, SamplingSettings, SourceSettings, StoreSettings
from .utils import load_yaml

SOURCE_TYPES = ("command", "directory")
STORE_TYPES = ("ldjson", "sqlite")


def _require_keys(data: Dict[str, Any], keys: Sequence[str], context: str) -> None:
    for key in keys:
        if key not in data:
            raise ValidationError(f"{context}: missing required key '{key}'")


def _require_mapping(value: Any, context: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ValidationError(f"{context}: expected mapping")
    return value


def parse_queues(raw: Any, context: str) -> List[str]:
    if not isinstance(raw, list) or not raw:
        raise ValidationError(f"{context}: 'queues' must be a non-empty list")
    queues: List[str] = []
    for idx, entry in enumerate(raw):
        if not isinstance(entry, str) or not entry.strip():
            raise ValidationError(f"{context}: queues[{idx}] must be a non-empty string")
        if entry in queues:
            raise ValidationError(f"{context}: queue '{entry}' listed more than once")
        queues.append(entry)
    return queues


def parse_source(raw: Any, context: str) -> SourceSettings:
    payload = _require_mapping(raw, f"{context} source")
    _require_keys(payload, ("type",), f"{context} source")
    source_type = str(payload["type"]).lower()
    options = {key: value for key, value in payload.items() if key != "type"}

    if source_type == "command":
        _require_keys(options, ("command",), f"{context} source")
        command = options["command"]
        if (
            not isinstance(command, list)
            or not command
            or not all(isinstance(part, (str, int, float)) for part in command)
        ):
            raise ValidationError(f"{context} source: 'command' must be a non-empty list of strings")
        options["command"] = [str(part) for part in command]
        timeout = options.get("timeout_s")
        if timeout is not None:
            if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
                raise ValidationError(f"{context} source: 'timeout_s' must be a positive number")
            options["timeout_s"] = float(timeout)
    elif source_type == "directory":
        _require_keys(options, ("root",), f"{context} source")
        options["root"] = Path(str(options["root"]))
        pattern = options.get("pattern", "*")
        if not isinstance(pattern, str) or not pattern:
            raise ValidationError(f"{context} source: 'pattern' must be a non-empty string")
        options["pattern"] = pattern
    else:
        raise ValidationError(
            f"{context} source: unknown type '{payload['type']}' "
            f"(expected one of {', '.join(SOURCE_TYPES)})"
        )
    return SourceSettings(type=source_type, options=options)


def parse_store(raw: Any, context: str) -> StoreSettings:
    payload = _require_mapping(raw, f"{context} store")
    _require_keys(payload, ("type", "path"), f"{context} store")
    store_type = str(payload["type"]).lower()
    if store_type not in STORE_TYPES:
        raise ValidationError(
            f"{context} store: unknown type '{payload['type']}' "
            f"(expected one of {', '.join(STORE_TYPES)})"
        )
    return StoreSettings(type=store_type, path=Path(str(payload["path"])))


def parse_delay_ms(delay_ms: Any, context: str) -> timedelta:
    if isinstance(delay_ms, bool) or not isinstance(delay_ms, (int, float)):
        raise ValidationError(f"{context}: 'delay_ms' must be numeric")
    try:
        return timedelta(milliseconds=delay_ms)
    except (OverflowError, ValueError) as exc:
        raise ValidationError(f"{context}: 'delay_ms' must be a finite number") from exc


def parse_sampling(raw: Any, context: str) -> SamplingSettings:
    payload = _require_mapping(raw, f"{context} sampling")
    _require_keys(payload, ("executions", "delay_ms"), f"{context} sampling")
    executions = payload["executions"]
    if isinstance(executions, bool) or not isinstance(executions, int) or executions < 0:
        raise ValidationError(f"{context} sampling: 'executions' must be a non-negative integer")
    return SamplingSettings(
        executions=executions, delay=parse_delay_ms(payload["delay_ms"], f"{context} sampling")
    )


def parse_profile(payload: Dict[str, Any], context: str) -> ProfileDefinition:
    _require_keys(payload, ("queues", "source", "store", "sampling"), context)
    metadata = payload.get("metadata") or {}
    if not isinstance(metadata, dict):
        raise ValidationError(f"{context}: 'metadata' must be mapping when present")
    return ProfileDefinition(
        metadata=dict(metadata),
        queues=parse_queues(payload["queues"], context),
        source=parse_source(payload["source"], context),
        store=parse_store(payload["store"], context),
        sampling=parse_sampling(payload["sampling"], context),
    )


def load_profile(path: Path) -> ProfileDefinition:
    try:
        payload = load_yaml(path)
    except yaml.YAMLError as exc:
        raise ValidationError(f"{path}: invalid YAML: {exc}") from exc
    if not isinstance(payload, dict):
        raise ValidationError(f"{path}: expected mapping at root")
    return parse_profile(payload, f"{path}")
