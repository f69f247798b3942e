"""Application configuration via Pydantic Settings.

Settings come from, in increasing priority: built-in defaults, a ``.env``
file, ``PIISCAN_``-prefixed environment variables, and finally an optional
JSON config file passed to :func:`load_settings` (the CLI's ``--config``).

Usage::

    from piiscan.config import get_settings

    settings = get_settings()
    print(settings.api_url)

``get_settings`` is cached with ``functools.lru_cache`` and is what
:func:`load_settings` returns when no config file applies.  Clear it with
``get_settings.cache_clear()`` between tests.
"""
from __future__ import annotations

import functools
import json
import logging
import os
from typing import Any

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when a config file cannot be read or does not validate."""


class Settings(BaseSettings):
    """piiscan settings."""

    model_config = SettingsConfigDict(
        env_prefix="PIISCAN_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Remote model
    api_url: str = Field(
        default="http://localhost:11434/api/generate",
        description="Ollama generate endpoint",
    )
    model_name: str = Field(
        default="deepseek-coder",
        min_length=1,
        description="Model name sent with each generation request",
    )
    timeout_ms: int = Field(
        default=60_000,
        ge=1,
        description="Per-request HTTP timeout in milliseconds",
    )
    retry_attempts: int = Field(
        default=3,
        ge=1,
        description="Total attempts per remote call, including the first",
    )
    retry_delay_ms: int = Field(
        default=1_000,
        ge=0,
        description="Fixed sleep between remote attempts in milliseconds",
    )

    # Scanning
    max_concurrency: int = Field(
        default=4,
        ge=1,
        description="Number of files extracted and inspected at once",
    )
    supported_file_types: list[str] = Field(
        default_factory=lambda: ["txt", "md", "csv", "pdf", "docx"],
        description="File extensions picked up during discovery",
    )
    detection_patterns: dict[str, list[str]] = Field(
        default_factory=dict,
        description="Extra {type: [regex, ...]} patterns applied after the built-ins",
    )

    @field_validator("supported_file_types")
    @classmethod
    def normalise_file_types(cls, v: list[str]) -> list[str]:
        return [ext.lower().lstrip(".") for ext in v if ext.strip()]


def load_settings(config_path: str | os.PathLike[str] | None = None) -> Settings:
    """Build :class:`Settings`, overlaying the JSON file at *config_path*.

    A missing file is not an error: environment variables and defaults apply.
    Without a file the shared :func:`get_settings` instance is returned, so
    callers must copy it (``model_copy``) rather than mutate it.

    Raises:
        ConfigError: If the file is not valid JSON, is not a JSON object, or
            holds values that fail validation.
    """
    overrides: dict[str, Any] = {}

    if config_path is not None:
        if not os.path.exists(config_path):
            logger.info("Config file not found, using defaults: path=%s", config_path)
        else:
            try:
                with open(config_path, encoding="utf-8") as fh:
                    loaded = json.load(fh)
            except (OSError, json.JSONDecodeError) as exc:
                raise ConfigError(f"Cannot read config file {config_path}: {exc}") from exc
            if not isinstance(loaded, dict):
                raise ConfigError(f"Config file {config_path} must contain a JSON object")
            overrides = loaded
            logger.debug("Loaded config file: path=%s keys=%s", config_path, sorted(overrides))

    try:
        return Settings(**overrides) if overrides else get_settings()
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


@functools.lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the cached settings built from the environment alone."""
    return Settings()
