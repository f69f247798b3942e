"""Unit tests for piiscan/cli.py.

Commands are invoked through ``click.testing.CliRunner``.  Logging setup is
patched out so the runner's captured streams are not installed as root log
handlers.

Coverage targets
----------------
* ``scan`` prints a JSON array for a directory; ``--output`` writes a file.
* ``--no-pdf`` / ``--no-recursive`` narrow discovery.
* ``scan-file`` scans a single file.
* Missing paths and bad config files exit non-zero with a message.
* Without ``--no-api`` the remote detector is consulted and pattern
  detection covers its failure.
* ``build_detector`` composition and option precedence over settings; the
  cached settings are used as-is without options and never mutated.
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from piiscan.cli import build_detector, cli
from piiscan.config import Settings, get_settings
from piiscan.core.detectors import HybridDetector, PatternDetector, RemoteDetector
from piiscan.core.ollama_client import ApiError, OllamaClient


@pytest.fixture(autouse=True)
def _no_logging_setup():
    with patch("piiscan.cli.configure_logging") as mock_configure:
        yield mock_configure


@pytest.fixture
def corpus(tmp_path: Path) -> Path:
    root = tmp_path / "corpus"
    (root / "sub").mkdir(parents=True)
    (root / "contacts.txt").write_text(
        "Contact: test@example.com, call 090-1234-5678\n", encoding="utf-8"
    )
    (root / "sub" / "cards.csv").write_text("id,card\n1,4111 1111 1111 1111", encoding="utf-8")
    (root / "report.pdf").write_bytes(b"%PDF-1.4 not really")
    return root


def _invoke(*args: str):
    return CliRunner().invoke(cli, list(args), catch_exceptions=False)


# ---------------------------------------------------------------------------
# scan
# ---------------------------------------------------------------------------


class TestScan:
    def test_scan_directory_no_api(self, corpus):
        result = _invoke("scan", str(corpus), "--no-api", "--no-pdf")

        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        by_file = {Path(item["file"]).name: item["personal_information"] for item in payload}
        assert set(by_file) == {"contacts.txt", "cards.csv"}
        assert [f["type"] for f in by_file["contacts.txt"]] == ["email", "phone_number"]
        assert by_file["cards.csv"] == [
            {"type": "credit_card", "value": "4111 1111 1111 1111", "line": 2, "start": 2, "end": 21}
        ]

    def test_broken_pdf_is_skipped(self, corpus):
        with patch(
            "piiscan.core.extractors._pdfminer_extract_text", side_effect=ValueError("bad pdf")
        ):
            result = _invoke("scan", str(corpus), "--no-api")

        assert result.exit_code == 0
        names = {Path(item["file"]).name for item in json.loads(result.stdout)}
        assert names == {"contacts.txt", "cards.csv"}

    def test_no_recursive(self, corpus):
        result = _invoke("scan", str(corpus), "--no-api", "--no-pdf", "--no-recursive")
        names = [Path(item["file"]).name for item in json.loads(result.stdout)]
        assert names == ["contacts.txt"]

    def test_output_file(self, corpus, tmp_path):
        target = tmp_path / "results.json"
        result = _invoke("scan", str(corpus), "--no-api", "--no-pdf", "-o", str(target))

        assert result.exit_code == 0
        assert len(json.loads(target.read_text(encoding="utf-8"))) == 2
        assert "Results written to" in result.stderr

    def test_missing_path(self, tmp_path):
        result = CliRunner().invoke(cli, ["scan", str(tmp_path / "nope"), "--no-api"])
        assert result.exit_code != 0
        assert "Path not found" in result.output

    def test_bad_config(self, corpus, tmp_path):
        config = tmp_path / "bad.json"
        config.write_text("{oops", encoding="utf-8")
        result = CliRunner().invoke(cli, ["scan", str(corpus), "--config", str(config)])
        assert result.exit_code != 0
        assert "Cannot read config file" in result.output

    def test_verbose_prints_metrics(self, corpus, _no_logging_setup):
        result = _invoke("scan", str(corpus), "--no-api", "--no-pdf", "-v")
        _no_logging_setup.assert_called_once_with(True)
        assert "Scan Metrics:" in result.stderr
        assert "Files processed: 2" in result.stderr

    def test_remote_failure_falls_back_to_patterns(self, corpus):
        with patch.object(
            OllamaClient, "generate", AsyncMock(side_effect=ApiError("connection refused"))
        ) as mock_generate:
            result = _invoke("scan", str(corpus), "--no-pdf")

        assert result.exit_code == 0
        assert mock_generate.await_count == 2
        assert len(json.loads(result.stdout)) == 2

    def test_remote_findings_merged(self, corpus):
        reply = json.dumps(
            {
                "personal_information": [
                    {"type": "name", "value": "Contact", "line": 1, "start": 0, "end": 7}
                ]
            }
        )
        with patch.object(OllamaClient, "generate", AsyncMock(return_value=reply)):
            result = _invoke("scan", str(corpus / "contacts.txt"))

        (item,) = json.loads(result.stdout)
        assert [f["type"] for f in item["personal_information"]] == [
            "name",
            "email",
            "phone_number",
        ]


# ---------------------------------------------------------------------------
# scan-file
# ---------------------------------------------------------------------------


class TestScanFile:
    def test_single_file(self, corpus):
        result = _invoke("scan-file", str(corpus / "contacts.txt"), "--no-api")

        assert result.exit_code == 0
        (item,) = json.loads(result.stdout)
        assert item["file"].endswith("contacts.txt")
        assert len(item["personal_information"]) == 2

    def test_missing_file(self, tmp_path):
        result = CliRunner().invoke(cli, ["scan-file", str(tmp_path / "x.txt"), "--no-api"])
        assert result.exit_code != 0
        assert "File not found" in result.output

    def test_unsupported_file(self, tmp_path):
        path = tmp_path / "picture.png"
        path.write_bytes(b"\x89PNG")
        result = CliRunner().invoke(cli, ["scan-file", str(path), "--no-api"])
        assert result.exit_code != 0
        assert "Unsupported file type" in result.output


# ---------------------------------------------------------------------------
# build_detector
# ---------------------------------------------------------------------------


class TestBuildDetector:
    def test_no_api_is_pattern_only(self):
        assert isinstance(build_detector(Settings(), no_api=True), PatternDetector)

    def test_default_is_remote_then_pattern(self):
        detector = build_detector(Settings(), no_api=False)
        assert isinstance(detector, HybridDetector)
        assert [type(d) for d in detector.detectors] == [RemoteDetector, PatternDetector]

    def test_cli_options_override_settings(self, corpus):
        captured: list[Settings] = []

        def _capture(settings, no_api, **kwargs):
            captured.append(settings)
            return PatternDetector()

        with patch("piiscan.cli.build_detector", side_effect=_capture):
            _invoke(
                "scan-file",
                str(corpus / "contacts.txt"),
                "--api-url", "http://remote:1234/api/generate",
                "--model", "llama3",
                "--timeout", "5",
            )

        (settings,) = captured
        assert settings.api_url == "http://remote:1234/api/generate"
        assert settings.model_name == "llama3"
        assert settings.timeout_ms == 5_000
        assert get_settings().model_name == "deepseek-coder"

    def test_without_options_uses_cached_settings(self, corpus):
        captured: list[Settings] = []

        def _capture(settings, no_api, **kwargs):
            captured.append(settings)
            return PatternDetector()

        with patch("piiscan.cli.build_detector", side_effect=_capture):
            _invoke("scan-file", str(corpus / "contacts.txt"))

        assert captured == [get_settings()]
        assert captured[0] is get_settings()
