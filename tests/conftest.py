"""Shared pytest configuration and fixtures for piiscan tests.

Clears any ``PIISCAN_`` environment variables and the settings cache around
every test, so results do not depend on the developer's shell.
"""
from __future__ import annotations

import os
from pathlib import Path

import pytest

from piiscan.config import get_settings


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    for key in list(os.environ):
        if key.upper().startswith("PIISCAN_"):
            monkeypatch.delenv(key, raising=False)
    # Keep a developer's .env out of Settings().
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class RecordingSleep:
    """Awaitable sleep replacement that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()

