"""Depth sources backed by external commands or spool directories."""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from typing import List, Sequence

from .exceptions import SourceUnavailableError, ValidationError

logger = logging.getLogger(__name__)

QUEUE_PLACEHOLDER = "{queue}"


class CommandDepthSource:
    """Runs a command and reads the queue depth from its standard output.

    Every ``{queue}`` placeholder in the command arguments is replaced with the
    queue name, e.g. ``["redis-cli", "LLEN", "{queue}"]``.
    """

    def __init__(self, command: Sequence[str], timeout_s: float | None = None) -> None:
        if not command:
            raise ValidationError("depth command must not be empty")
        self._command = [str(part) for part in command]
        self._timeout_s = timeout_s

    def build_command(self, queue_name: str) -> List[str]:
        command = [part.replace(QUEUE_PLACEHOLDER, queue_name) for part in self._command]
        executable = shutil.which(command[0])
        if executable is None and not Path(command[0]).exists():
            raise SourceUnavailableError(f"depth command executable '{command[0]}' not found")
        if executable:
            command[0] = executable
        return command

    def get_depth(self, queue_name: str) -> int:
        command = self.build_command(queue_name)
        logger.debug("Running depth command for queue %s: %s", queue_name, command)
        try:
            result = subprocess.run(
                command,
                check=False,
                text=True,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                timeout=self._timeout_s,
            )
        except subprocess.TimeoutExpired as exc:
            raise SourceUnavailableError(
                f"depth command for queue '{queue_name}' timed out after {self._timeout_s}s"
            ) from exc
        except OSError as exc:
            raise SourceUnavailableError(
                f"depth command for queue '{queue_name}' could not be started: {exc}"
            ) from exc
        if result.returncode != 0:
            raise SourceUnavailableError(
                f"depth command for queue '{queue_name}' failed with exit code "
                f"{result.returncode}: {result.stderr.strip()}"
            )
        output = result.stdout.strip()
        try:
            return int(output)
        except ValueError as exc:
            raise SourceUnavailableError(
                f"depth command for queue '{queue_name}' returned non-integer output {output!r}"
            ) from exc


class DirectoryDepthSource:
    """Counts files in a per-queue spool directory.

    The depth of ``queue_name`` is the number of regular files matching
    ``pattern`` directly under ``root / queue_name``.
    """

    def __init__(self, root: Path, pattern: str = "*") -> None:
        self._root = root
        self._pattern = pattern

    def queue_dir(self, queue_name: str) -> Path:
        return self._root / queue_name

    def get_depth(self, queue_name: str) -> int:
        directory = self.queue_dir(queue_name)
        if not directory.is_dir():
            raise SourceUnavailableError(f"spool directory {directory} not found")
        try:
            return sum(1 for entry in directory.glob(self._pattern) if entry.is_file())
        except OSError as exc:
            raise SourceUnavailableError(f"spool directory {directory} unreadable: {exc}") from exc
