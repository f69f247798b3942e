"""JSON rendering of scan results."""

from __future__ import annotations

import dataclasses
import json
import logging
import os
from typing import Sequence

from piiscan.core.models import ScanResult

logger = logging.getLogger(__name__)


class JsonOutputFormatter:
    """Pretty-printed JSON array of ``{file, personal_information}`` objects.

    Non-ASCII characters are written as-is so reports on Japanese or other
    non-Latin documents stay readable.
    """

    def __init__(self, indent: int = 2) -> None:
        self._indent = indent

    def format_results(self, results: Sequence[ScanResult]) -> str:
        payload = [dataclasses.asdict(result) for result in results]
        return json.dumps(payload, indent=self._indent, ensure_ascii=False)

    def write_to_file(self, results: Sequence[ScanResult], path: str | os.PathLike[str]) -> None:
        """Write the formatted results to *path*, replacing any existing file."""
        with open(path, "w", encoding="utf-8") as fh:
            fh.write(self.format_results(results))
            fh.write("\n")
        logger.info("Results written: path=%s files=%d", path, len(results))
