"""Structured logging and verbosity levels for stacksync runs."""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum
from pathlib import Path
from typing import Any

from rich.console import Console


class Verbosity(IntEnum):
    """Verbosity levels for console output."""

    DEFAULT = 0   # Summary only
    VERBOSE = 1   # + per-stack status
    DEBUG = 2     # + hashes, verification details


@dataclass
class SyncLog:
    """Structured record of one sync/add/remove run.

    Serializes to::

        {
            "run_id": "20250101T120000Z",
            "command": "sync",
            "downloaded": {"php": "1.2.0"},
            "unchanged": ["laravel"],
            "removed": [],
            "failed_verification": [],
            "total_time": 0.42,
        }
    """

    run_id: str = ""
    command: str = ""
    downloaded: dict[str, str] = field(default_factory=dict)
    unchanged: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    failed_verification: list[str] = field(default_factory=list)
    total_time: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "command": self.command,
            "downloaded": dict(self.downloaded),
            "unchanged": list(self.unchanged),
            "removed": list(self.removed),
            "failed_verification": list(self.failed_verification),
            "total_time": self.total_time,
        }


class SyncLogger:
    """Structured logger for stacksync runs.

    Writes a JSONL event file to ``log_dir`` when one is given and emits
    console output via Rich based on verbosity level.
    """

    def __init__(
        self,
        verbosity: Verbosity = Verbosity.DEFAULT,
        log_dir: Path | None = None,
        console: Console | None = None,
    ):
        self.verbosity = verbosity
        self.log_dir = log_dir
        self.console = console or Console()
        self.sync_log = SyncLog(
            run_id=datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ"),
        )
        self._log_file = None
        self._log_path: Path | None = None
        self._start: float = 0.0

        if log_dir is not None:
            log_dir.mkdir(parents=True, exist_ok=True)
            self._log_path = log_dir / f"{self.sync_log.run_id}.jsonl"
            self._log_file = open(self._log_path, "a")

    @property
    def log_path(self) -> Path | None:
        return self._log_path

    def _write_event(self, event: dict[str, Any]) -> None:
        """Write a JSON event to the JSONL log file."""
        if self._log_file is not None:
            event["timestamp"] = datetime.now(timezone.utc).isoformat()
            self._log_file.write(json.dumps(event) + "\n")
            self._log_file.flush()

    def _console_print(self, message: str, min_verbosity: Verbosity) -> None:
        if self.verbosity >= min_verbosity:
            self.console.print(message)

    # -- Run lifecycle --

    def run_start(self, command: str, stack_count: int) -> None:
        self._start = time.time()
        self.sync_log.command = command
        self._write_event({
            "event": "run_start",
            "command": command,
            "stack_count": stack_count,
        })
        self._console_print(
            f"[bold]{command}:[/bold] {stack_count} stack(s) resolved",
            Verbosity.VERBOSE,
        )

    def run_finish(self) -> None:
        """Log the end of the run and close the log file."""
        self.sync_log.total_time = time.time() - self._start if self._start else 0.0
        self._write_event({
            "event": "run_finish",
            "downloaded": len(self.sync_log.downloaded),
            "unchanged": len(self.sync_log.unchanged),
            "removed": len(self.sync_log.removed),
            "total_time": round(self.sync_log.total_time, 3),
        })
        self.close()

    # -- Stack events --

    def stack_downloaded(self, stack_id: str, version: str, content_hash: str) -> None:
        self.sync_log.downloaded[stack_id] = version
        self._write_event({
            "event": "stack_downloaded",
            "stack": stack_id,
            "version": version,
            "hash": content_hash,
        })
        self._console_print(f"  [green]+[/green] {stack_id} {version}", Verbosity.VERBOSE)
        self._console_print(f"    [dim]{content_hash}[/dim]", Verbosity.DEBUG)

    def stack_unchanged(self, stack_id: str, version: str) -> None:
        self.sync_log.unchanged.append(stack_id)
        self._write_event({
            "event": "stack_unchanged",
            "stack": stack_id,
            "version": version,
        })
        self._console_print(f"  [cyan]=[/cyan] {stack_id} {version} (unchanged)", Verbosity.VERBOSE)

    def stack_removed(self, stack_id: str, reason: str) -> None:
        self.sync_log.removed.append(stack_id)
        self._write_event({
            "event": "stack_removed",
            "stack": stack_id,
            "reason": reason,
        })
        self._console_print(f"  [red]-[/red] {stack_id} ({reason})", Verbosity.VERBOSE)

    def stack_verified(self, stack_id: str, ok: bool, missing: list[str], tampered: list[str]) -> None:
        if not ok:
            self.sync_log.failed_verification.append(stack_id)
        self._write_event({
            "event": "stack_verified",
            "stack": stack_id,
            "ok": ok,
            "missing": list(missing),
            "tampered": list(tampered),
        })
        if not ok:
            self._console_print(
                f"  [yellow]![/yellow] {stack_id}: local files changed, re-fetching",
                Verbosity.VERBOSE,
            )
            for name in [*missing, *tampered]:
                self._console_print(f"    [dim]{name}[/dim]", Verbosity.DEBUG)

    def close(self) -> None:
        """Close the log file if open."""
        if self._log_file is not None:
            self._log_file.close()
            self._log_file = None
