"""ScanOrchestrator: bounded-concurrency scanning of many files.

:meth:`ScanOrchestrator.scan` schedules one asyncio task per file up front.
Each task:

1. acquires one of ``concurrency_limit`` semaphore permits;
2. extracts the file on a worker thread (``loop.run_in_executor``) so blocking
   I/O and PDF parsing never stall the event loop;
3. runs detection through the :class:`~piiscan.core.detection.DetectionService`;
4. releases the permit and sends exactly one message to a fan-in
   :class:`asyncio.Queue`: the :class:`~piiscan.core.models.ScanResult`, or a
   skip marker when extraction or detection failed;
5. updates metrics and advances progress once.

A single consumer drains one message per scheduled task, so the call returns
only after every file has been accounted for.  Per-file failures are logged
and counted, never raised: a batch scan always completes.

Each file is traced as a ``piiscan.scan_file`` OpenTelemetry span with
``piiscan.extract`` and ``piiscan.detect`` children.  Without an OTel SDK
configured the tracer is a no-op.
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
from concurrent.futures import Executor
from pathlib import Path
from typing import Iterable

from opentelemetry import trace

from piiscan.core.detection import DetectionService
from piiscan.core.file_scanner import FileSystemScanner
from piiscan.core.metrics import ScanMetrics
from piiscan.core.models import ScanResult
from piiscan.core.progress import NullProgress, ProgressReporter

logger = logging.getLogger(__name__)

tracer = trace.get_tracer(
    "piiscan.orchestrator",
    schema_url="https://opentelemetry.io/schemas/1.11.0",
)

DEFAULT_MAX_CONCURRENCY = 4

# Queue message for a file that produced no result.
_SKIPPED = object()


class ScanOrchestrator:
    """Runs extraction and detection over a batch of files.

    Args:
        scanner: Discovers files and extracts their text.
        detection_service: Applies the configured detector.
        max_concurrency: Default number of files processed at once.
        progress: Progress reporter.  Defaults to :class:`NullProgress`.
        metrics: Metrics sink.  A fresh :class:`ScanMetrics` is created when
            ``None``.
        executor: Executor for extraction.  ``None`` uses the event loop's
            default thread pool.
    """

    def __init__(
        self,
        scanner: FileSystemScanner,
        detection_service: DetectionService,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        progress: ProgressReporter | None = None,
        metrics: ScanMetrics | None = None,
        executor: Executor | None = None,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")
        self._scanner = scanner
        self._detection = detection_service
        self._max_concurrency = max_concurrency
        self._progress: ProgressReporter = progress if progress is not None else NullProgress()
        self.metrics = metrics if metrics is not None else ScanMetrics()
        self._executor = executor
        self._collected: list[ScanResult] = []

    @property
    def partial_results(self) -> list[ScanResult]:
        """Results collected so far by the current or most recent :meth:`scan`."""
        return list(self._collected)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def scan(
        self,
        file_paths: Iterable[str | os.PathLike[str]],
        concurrency_limit: int | None = None,
    ) -> list[ScanResult]:
        """Scan every file in *file_paths* with bounded concurrency.

        Returns:
            One :class:`ScanResult` per file that was extracted and inspected
            successfully, in completion order.
        """
        paths = [Path(p) for p in file_paths]
        limit = concurrency_limit if concurrency_limit is not None else self._max_concurrency
        if limit < 1:
            raise ValueError(f"concurrency_limit must be >= 1, got {limit}")

        semaphore = asyncio.Semaphore(limit)
        queue: asyncio.Queue[object] = asyncio.Queue()
        self._collected = []

        logger.info("Scan started: files=%d concurrency_limit=%d", len(paths), limit)
        self._progress.start(len(paths))

        tasks = [
            asyncio.create_task(self._scan_task(path, semaphore, queue))
            for path in paths
        ]

        scanned = 0
        skipped = 0
        try:
            for _ in range(len(tasks)):
                message = await queue.get()
                if isinstance(message, ScanResult):
                    self._collected.append(message)
                    scanned += 1
                else:
                    skipped += 1
            await asyncio.gather(*tasks)
        finally:
            pending = [task for task in tasks if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
            self._progress.finish()

        logger.info("Scan complete: scanned=%d skipped=%d", scanned, skipped)
        return list(self._collected)

    async def scan_one(self, path: str | os.PathLike[str]) -> ScanResult:
        """Extract and inspect a single file.

        Raises:
            ExtractionError: If the file cannot be extracted.
            DetectorError: If detection fails.
        """
        return await self._scan_file(Path(path))

    async def scan_directory(
        self,
        path: str | os.PathLike[str],
        recursive: bool = True,
        concurrency_limit: int | None = None,
    ) -> list[ScanResult]:
        """Discover supported files under *path* and :meth:`scan` them.

        Raises:
            FileNotFoundError: If *path* does not exist.
        """
        loop = asyncio.get_running_loop()
        file_paths = await loop.run_in_executor(
            self._executor, self._scanner.scan_path, path, recursive
        )
        return await self.scan(file_paths, concurrency_limit=concurrency_limit)

    # ------------------------------------------------------------------
    # Per-file work
    # ------------------------------------------------------------------

    async def _scan_task(
        self,
        path: Path,
        semaphore: asyncio.Semaphore,
        queue: asyncio.Queue[object],
    ) -> None:
        started = time.monotonic()
        try:
            async with semaphore:
                result = await self._scan_file(path)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Skipping file: path=%s error=%s: %s", path, type(exc).__name__, exc
            )
            queue.put_nowait(_SKIPPED)
            self.metrics.record_failure(time.monotonic() - started)
        else:
            queue.put_nowait(result)
            self.metrics.record_file(
                time.monotonic() - started, len(result.personal_information)
            )
        self._progress.advance()

    async def _scan_file(self, path: Path) -> ScanResult:
        loop = asyncio.get_running_loop()
        with tracer.start_as_current_span("piiscan.scan_file") as span:
            span.set_attribute("file.path", str(path))

            with tracer.start_as_current_span("piiscan.extract"):
                file_info = await loop.run_in_executor(
                    self._executor, self._scanner.process_file, path
                )

            with tracer.start_as_current_span("piiscan.detect") as detect_span:
                result = await self._detection.detect_in_file(file_info)
                detect_span.set_attribute(
                    "detections.count", len(result.personal_information)
                )

        logger.info(
            "File scanned: path=%s detections=%d",
            path,
            len(result.personal_information),
        )
        return result
