"""File discovery and per-file text extraction."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable

from piiscan.core.extractors import ExtractionError, ExtractorRegistry, file_extension
from piiscan.core.models import FileInfo

logger = logging.getLogger(__name__)

DEFAULT_SUPPORTED_FILE_TYPES: tuple[str, ...] = ("txt", "md", "csv", "pdf", "docx")


class FileSystemScanner:
    """Finds scannable files and extracts their text.

    Args:
        registry: Extractor registry used by :meth:`process_file`.
        supported_file_types: Extensions (without dot, any case) that
            :meth:`scan_path` reports.
    """

    def __init__(
        self,
        registry: ExtractorRegistry,
        supported_file_types: Iterable[str] = DEFAULT_SUPPORTED_FILE_TYPES,
    ) -> None:
        self._registry = registry
        self._supported = frozenset(ext.lower().lstrip(".") for ext in supported_file_types)

    def is_supported(self, path: Path) -> bool:
        return file_extension(path) in self._supported

    def scan_path(self, path: str | os.PathLike[str], recursive: bool = True) -> list[Path]:
        """Return the supported files at *path*.

        A file path is returned on its own when its extension is supported.  A
        directory is walked, following symlinks; when *recursive* is false only
        its immediate children are considered.  Each directory is entered at
        most once, so a symlink back to an ancestor does not repeat files.

        Raises:
            FileNotFoundError: If *path* does not exist.
        """
        root = Path(path)
        if not root.exists():
            raise FileNotFoundError(f"Path not found: {root}")

        if root.is_file():
            return [root] if self.is_supported(root) else []

        found: list[Path] = []
        root_stat = os.stat(root)
        visited = {(root_stat.st_dev, root_stat.st_ino)}
        for dirpath, dirnames, filenames in os.walk(root, followlinks=True):
            if not recursive:
                dirnames.clear()
            else:
                dirnames[:] = self._unvisited(dirpath, dirnames, visited)
            for filename in filenames:
                candidate = Path(dirpath) / filename
                if candidate.is_file() and self.is_supported(candidate):
                    found.append(candidate)

        found.sort()
        logger.info("Discovered files: path=%s count=%d recursive=%s", root, len(found), recursive)
        return found

    @staticmethod
    def _unvisited(
        dirpath: str, dirnames: list[str], visited: set[tuple[int, int]]
    ) -> list[str]:
        # Symlinked directories are followed, so identity is (st_dev, st_ino).
        keep: list[str] = []
        for name in dirnames:
            full = os.path.join(dirpath, name)
            try:
                st = os.stat(full)
            except OSError as exc:
                logger.debug("Skipping directory: path=%s error=%s", full, exc)
                continue
            key = (st.st_dev, st.st_ino)
            if key in visited:
                logger.debug("Skipping already visited directory: path=%s", full)
                continue
            visited.add(key)
            keep.append(name)
        return keep

    def process_file(self, path: str | os.PathLike[str]) -> FileInfo:
        """Extract *path* into a :class:`~piiscan.core.models.FileInfo`.

        Raises:
            ExtractionError: If the file is missing, unsupported or unreadable.
        """
        file_path = Path(path)
        if not file_path.exists():
            raise ExtractionError(
                "File not found",
                path=str(file_path),
                original=FileNotFoundError(str(file_path)),
            )
        content = self._registry.extract(file_path)
        return FileInfo(path=str(file_path), content=content)
