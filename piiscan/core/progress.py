"""Progress reporting for scans.

The scan orchestrator notifies a :class:`ProgressReporter` once when a batch
starts, once per completed file (scanned or skipped), and once at the end.
Notifications arrive from concurrent asyncio tasks, so implementations must
tolerate interleaved calls.
"""

from __future__ import annotations

import threading
from typing import Protocol, runtime_checkable

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)


@runtime_checkable
class ProgressReporter(Protocol):
    def start(self, total: int) -> None: ...

    def advance(self) -> None: ...

    def finish(self) -> None: ...


class NullProgress:
    """Reporter that ignores every notification."""

    def start(self, total: int) -> None:
        pass

    def advance(self) -> None:
        pass

    def finish(self) -> None:
        pass


class RichProgressReporter:
    """Progress bar rendered with :mod:`rich.progress` on stderr.

    Args:
        description: Label shown next to the bar.
        console: Console to draw on.  Defaults to a stderr console so JSON
            written to stdout is not interleaved with the bar.
    """

    def __init__(self, description: str = "Scanning", console: Console | None = None) -> None:
        self._description = description
        self._console = console if console is not None else Console(stderr=True)
        self._lock = threading.Lock()
        self._progress: Progress | None = None
        self._task: TaskID | None = None
        self._completed = 0

    def start(self, total: int) -> None:
        with self._lock:
            if self._progress is not None:
                return
            self._completed = 0
            self._progress = Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                MofNCompleteColumn(),
                TimeElapsedColumn(),
                TimeRemainingColumn(),
                console=self._console,
                transient=True,
            )
            self._progress.start()
            self._task = self._progress.add_task(self._description, total=total)

    def advance(self) -> None:
        with self._lock:
            if self._progress is not None and self._task is not None:
                self._progress.advance(self._task)

    @property
    def completed(self) -> int:
        with self._lock:
            if self._progress is None or self._task is None:
                return self._completed
            return int(self._progress.tasks[0].completed)

    def finish(self) -> None:
        with self._lock:
            if self._progress is None:
                return
            self._completed = int(self._progress.tasks[0].completed)
            self._progress.stop()
            self._progress = None
            self._task = None
