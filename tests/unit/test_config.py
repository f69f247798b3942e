"""Unit tests for piiscan/config.py.

Coverage targets:
* Defaults match the documented values.
* ``PIISCAN_``-prefixed environment variables override defaults.
* ``load_settings`` overlays a JSON file, tolerates a missing file, and raises
  ConfigError for invalid JSON, non-object roots, and invalid values.
* ``get_settings`` is cached and is what ``load_settings`` returns when no
  config file applies; environment validation errors become ConfigError.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from piiscan.config import ConfigError, Settings, get_settings, load_settings


class TestDefaults:
    def test_values(self):
        s = Settings()
        assert s.api_url == "http://localhost:11434/api/generate"
        assert s.model_name == "deepseek-coder"
        assert s.timeout_ms == 60_000
        assert s.max_concurrency == 4
        assert s.retry_attempts == 3
        assert s.retry_delay_ms == 1_000
        assert s.supported_file_types == ["txt", "md", "csv", "pdf", "docx"]
        assert s.detection_patterns == {}

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("PIISCAN_MODEL_NAME", "llama3")
        monkeypatch.setenv("PIISCAN_MAX_CONCURRENCY", "8")
        s = Settings()
        assert s.model_name == "llama3"
        assert s.max_concurrency == 8

    def test_file_types_normalised(self):
        assert Settings(supported_file_types=[".TXT", "Pdf", " "]).supported_file_types == [
            "txt",
            "pdf",
        ]


class TestLoadSettings:
    def test_none_path(self):
        assert load_settings(None) == Settings()

    def test_missing_file_gives_defaults(self, tmp_path: Path):
        assert load_settings(tmp_path / "absent.json").model_name == "deepseek-coder"

    def test_overlay(self, tmp_path: Path):
        path = tmp_path / "config.json"
        path.write_text(
            json.dumps(
                {
                    "api_url": "http://gpu-box:11434/api/generate",
                    "max_concurrency": 2,
                    "detection_patterns": {"employee_id": ["EMP-\\d{6}"]},
                    "unknown_key": True,
                }
            ),
            encoding="utf-8",
        )

        s = load_settings(path)

        assert s.api_url == "http://gpu-box:11434/api/generate"
        assert s.max_concurrency == 2
        assert s.detection_patterns == {"employee_id": ["EMP-\\d{6}"]}
        assert s.model_name == "deepseek-coder"

    def test_file_beats_env(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("PIISCAN_MODEL_NAME", "from-env")
        path = tmp_path / "config.json"
        path.write_text('{"model_name": "from-file"}', encoding="utf-8")
        assert load_settings(path).model_name == "from-file"

    def test_invalid_json(self, tmp_path: Path):
        path = tmp_path / "config.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigError, match="Cannot read config file"):
            load_settings(path)

    def test_non_object_root(self, tmp_path: Path):
        path = tmp_path / "config.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(ConfigError, match="JSON object"):
            load_settings(path)

    def test_invalid_value(self, tmp_path: Path):
        path = tmp_path / "config.json"
        path.write_text('{"max_concurrency": 0}', encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid configuration"):
            load_settings(path)


def test_get_settings_cached():
    assert get_settings() is get_settings()


def test_load_settings_without_file_uses_cached_settings(tmp_path: Path):
    assert load_settings() is get_settings()
    assert load_settings(tmp_path / "absent.json") is get_settings()


def test_load_settings_with_file_builds_fresh_settings(tmp_path: Path):
    path = tmp_path / "config.json"
    path.write_text('{"model_name": "from-file"}', encoding="utf-8")

    settings = load_settings(path)

    assert settings is not get_settings()
    assert get_settings().model_name != "from-file"


def test_invalid_environment_raises_config_error(monkeypatch):
    monkeypatch.setenv("PIISCAN_MAX_CONCURRENCY", "0")
    with pytest.raises(ConfigError, match="Invalid configuration"):
        load_settings()
