"""Command-line interface.

Two commands::

    piiscan scan [PATH]          # scan a directory (default: current directory)
    piiscan scan-file FILE_PATH  # scan a single file

Results are printed to stdout as pretty JSON, or written to ``--output``.
Logs and the progress bar go to stderr.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import sys
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable

import click
import httpx

from piiscan import __version__
from piiscan.config import ConfigError, Settings, load_settings
from piiscan.core.detection import DetectionService
from piiscan.core.detectors import (
    Detector,
    DetectorError,
    HybridDetector,
    PatternDetector,
    RemoteDetector,
)
from piiscan.core.extractors import ExtractionError, build_default_registry
from piiscan.core.file_scanner import FileSystemScanner
from piiscan.core.metrics import ScanMetrics
from piiscan.core.models import ScanResult
from piiscan.core.ollama_client import OllamaClient
from piiscan.core.orchestrator import ScanOrchestrator
from piiscan.core.progress import NullProgress, ProgressReporter, RichProgressReporter
from piiscan.core.retry import RetryPolicy
from piiscan.output import JsonOutputFormatter

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


def build_detector(
    settings: Settings,
    no_api: bool,
    http_client: httpx.AsyncClient | None = None,
    metrics: ScanMetrics | None = None,
) -> Detector:
    """Return the pattern detector alone, or the remote model backed by it."""
    pattern = PatternDetector(detection_patterns=settings.detection_patterns)
    if no_api:
        return pattern

    client = OllamaClient(
        api_url=settings.api_url,
        model=settings.model_name,
        timeout_ms=settings.timeout_ms,
        retry_policy=RetryPolicy(
            max_attempts=settings.retry_attempts,
            delay=settings.retry_delay_ms / 1000.0,
        ),
        http_client=http_client,
        metrics=metrics,
    )
    return HybridDetector([RemoteDetector(client, fallback=pattern), pattern])


def _resolve_settings(
    config: str | None,
    api_url: str | None,
    model: str | None,
    timeout: int | None,
) -> Settings:
    try:
        settings = load_settings(config)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    updates: dict[str, Any] = {}
    if api_url is not None:
        updates["api_url"] = api_url
    if model is not None:
        updates["model_name"] = model
    if timeout is not None:
        updates["timeout_ms"] = timeout * 1000
    return settings.model_copy(update=updates) if updates else settings


def _emit(results: list[ScanResult], output: str | None) -> None:
    formatter = JsonOutputFormatter()
    if output:
        formatter.write_to_file(results, output)
        click.echo(f"Results written to {output}", err=True)
    else:
        click.echo(formatter.format_results(results))


def _progress_reporter() -> ProgressReporter:
    return RichProgressReporter() if sys.stderr.isatty() else NullProgress()


def detector_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by every scanning command."""

    @click.option("--output", "-o", type=click.Path(dir_okay=False), default=None,
                  help="Write results to this file instead of stdout")
    @click.option("--api-url", default=None, help="Ollama generate endpoint")
    @click.option("--model", default=None, help="Model name")
    @click.option("--timeout", type=click.IntRange(min=1), default=None,
                  help="Remote request timeout in seconds")
    @click.option("--no-api", is_flag=True, help="Use pattern detection only")
    @click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
    @click.option("--config", type=click.Path(dir_okay=False), default=None,
                  help="JSON config file")
    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        return func(*args, **kwargs)

    return wrapper


@click.group()
@click.version_option(__version__, prog_name="piiscan")
def cli() -> None:
    """Scan files for personal information (emails, phone numbers, card numbers)."""


@cli.command("scan")
@click.argument("path", default=".", type=click.Path())
@click.option("--pdf/--no-pdf", default=True, help="Include PDF files")
@click.option("--docx/--no-docx", default=True, help="Include DOCX files")
@click.option("--recursive/--no-recursive", default=True,
              help="Descend into subdirectories")
@click.option("--concurrency", type=click.IntRange(min=1), default=None,
              help="Files processed at once")
@detector_options
def scan(
    path: str,
    pdf: bool,
    docx: bool,
    recursive: bool,
    concurrency: int | None,
    output: str | None,
    api_url: str | None,
    model: str | None,
    timeout: int | None,
    no_api: bool,
    verbose: bool,
    config: str | None,
) -> None:
    """Scan a directory for personal information."""
    configure_logging(verbose)
    settings = _resolve_settings(config, api_url, model, timeout)

    file_types = [
        ext for ext in settings.supported_file_types
        if (pdf or ext != "pdf") and (docx or ext != "docx")
    ]
    limit = concurrency or settings.max_concurrency

    async def run() -> tuple[list[ScanResult], ScanMetrics]:
        metrics = ScanMetrics()
        scanner = FileSystemScanner(build_default_registry(pdf=pdf, docx=docx), file_types)
        with ThreadPoolExecutor(max_workers=limit) as executor:
            async with httpx.AsyncClient() as http:
                detector = build_detector(settings, no_api, http_client=http, metrics=metrics)
                orchestrator = ScanOrchestrator(
                    scanner,
                    DetectionService(detector),
                    max_concurrency=limit,
                    progress=_progress_reporter(),
                    metrics=metrics,
                    executor=executor,
                )
                results = await orchestrator.scan_directory(path, recursive=recursive)
        return results, metrics

    try:
        results, metrics = asyncio.run(run())
    except FileNotFoundError as exc:
        raise click.ClickException(str(exc)) from exc

    _emit(results, output)
    if verbose:
        click.echo(metrics.summary(), err=True)


@cli.command("scan-file")
@click.argument("file_path", type=click.Path())
@detector_options
def scan_file(
    file_path: str,
    output: str | None,
    api_url: str | None,
    model: str | None,
    timeout: int | None,
    no_api: bool,
    verbose: bool,
    config: str | None,
) -> None:
    """Scan a single file for personal information."""
    configure_logging(verbose)
    settings = _resolve_settings(config, api_url, model, timeout)

    async def run() -> ScanResult:
        scanner = FileSystemScanner(build_default_registry(), settings.supported_file_types)
        async with httpx.AsyncClient() as http:
            detector = build_detector(settings, no_api, http_client=http)
            orchestrator = ScanOrchestrator(scanner, DetectionService(detector))
            return await orchestrator.scan_one(file_path)

    try:
        result = asyncio.run(run())
    except (ExtractionError, DetectorError) as exc:
        raise click.ClickException(str(exc)) from exc

    _emit([result], output)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
