"""Per-run scan metrics backed by Prometheus client primitives.

:class:`ScanMetrics` is created once per run and passed explicitly to the
collaborators that update it (the scan orchestrator and the Ollama client).
Each instance owns a private :class:`prometheus_client.CollectorRegistry`, so
two runs in the same process never share counters.

Metrics
-------
``piiscan_files_scanned_total``
    Files that were extracted and inspected successfully.
``piiscan_files_failed_total``
    Files skipped because extraction or detection failed.
``piiscan_detections_total``
    Findings reported across all scanned files.
``piiscan_remote_errors_total``
    Failed remote detection attempts, labelled by ``error_type``
    (``"transport"`` | ``"http_status"`` | ``"invalid_body"``).
``piiscan_file_processing_seconds``
    Histogram of per-file extract+detect wall time.

Prometheus counters and histograms are thread-safe, so a single instance can
be updated from every concurrent scan task.

Usage::

    metrics = ScanMetrics()
    metrics.record_file(duration=0.12, detections=3)
    print(metrics.summary())
"""

from __future__ import annotations

import time

from prometheus_client import CollectorRegistry, Counter, Histogram


class ScanMetrics:
    """Counters and timings for one scan run.

    Args:
        registry: Registry to register the metrics in.  A fresh private
            registry is created when ``None``.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry if registry is not None else CollectorRegistry()
        self._start_time = time.monotonic()

        self._files_scanned = Counter(
            "piiscan_files_scanned",
            "Files extracted and inspected successfully",
            registry=self.registry,
        )
        self._files_failed = Counter(
            "piiscan_files_failed",
            "Files skipped because extraction or detection failed",
            registry=self.registry,
        )
        self._detections = Counter(
            "piiscan_detections",
            "Personal information items reported",
            registry=self.registry,
        )
        self._remote_errors = Counter(
            "piiscan_remote_errors",
            "Failed remote detection attempts",
            ["error_type"],
            registry=self.registry,
        )
        self._processing_seconds = Histogram(
            "piiscan_file_processing_seconds",
            "Per-file extract and detect wall time",
            registry=self.registry,
        )

    # ------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------

    def record_file(self, duration: float, detections: int) -> None:
        """Record a successfully scanned file."""
        self._files_scanned.inc()
        self._detections.inc(detections)
        self._processing_seconds.observe(duration)

    def record_failure(self, duration: float) -> None:
        """Record a file that was skipped."""
        self._files_failed.inc()
        self._processing_seconds.observe(duration)

    def record_remote_error(self, error_type: str) -> None:
        """Record one failed remote detection attempt."""
        self._remote_errors.labels(error_type=error_type).inc()

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    def _sample(self, name: str, labels: dict[str, str] | None = None) -> float:
        value = self.registry.get_sample_value(name, labels or {})
        return value if value is not None else 0.0

    @property
    def files_scanned(self) -> int:
        return int(self._sample("piiscan_files_scanned_total"))

    @property
    def files_failed(self) -> int:
        return int(self._sample("piiscan_files_failed_total"))

    @property
    def detections(self) -> int:
        return int(self._sample("piiscan_detections_total"))

    @property
    def processing_seconds(self) -> float:
        return self._sample("piiscan_file_processing_seconds_sum")

    def remote_errors(self, error_type: str) -> int:
        return int(self._sample("piiscan_remote_errors_total", {"error_type": error_type}))

    @property
    def elapsed(self) -> float:
        """Seconds since this metrics object was created."""
        return time.monotonic() - self._start_time

    @property
    def average_seconds_per_file(self) -> float | None:
        """Mean processing time over scanned files, or ``None`` if none were scanned."""
        files = self.files_scanned
        if files == 0:
            return None
        return self.processing_seconds / files

    def summary(self) -> str:
        """Return a multi-line human-readable summary."""
        lines = [
            "Scan Metrics:",
            f"  Total time: {self.elapsed:.2f}s",
            f"  Files processed: {self.files_scanned}",
            f"  Errors: {self.files_failed}",
            f"  Detections: {self.detections}",
            f"  Processing time: {self.processing_seconds:.2f}s",
        ]
        average = self.average_seconds_per_file
        if average is not None:
            lines.append(f"  Average time per file: {average:.2f}s")
        return "\n".join(lines)
