"""Text extraction from files on disk.

Each supported format has a :class:`TextExtractor`; an
:class:`ExtractorRegistry` dispatches on the lowercased file extension and
returns the extracted text with its line structure intact, so detectors can
report line numbers that match the source document.

Supported formats:

* **Plain text** (``txt md csv json xml html log``): UTF-8, falling back to
  Latin-1 which can always decode arbitrary bytes.
* **PDF** via :mod:`pdfminer.high_level`.
* **DOCX** via :mod:`docx` (python-docx), one paragraph per line.

Extraction is synchronous and may block on I/O or parsing; the scan
orchestrator runs it on a worker thread.

Errors:

* :class:`ExtractionError` for unreadable or corrupt files.  The underlying
  exception is kept in ``original`` and chained via ``__cause__``.
* :class:`UnsupportedFileTypeError` when no registered extractor accepts the
  extension.
"""

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path

import docx as _docx_module
from pdfminer.high_level import extract_text as _pdfminer_extract_text

logger = logging.getLogger(__name__)

PLAIN_TEXT_EXTENSIONS: frozenset[str] = frozenset(
    {"txt", "md", "csv", "json", "xml", "html", "log"}
)


class ExtractionError(Exception):
    """Raised when a file cannot be turned into text.

    Attributes:
        path: The file that was being extracted.
        original: The underlying exception, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        original: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.path = path
        self.original = original

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.path:
            parts.append(f"path={self.path!r}")
        if self.original is not None:
            parts.append(f"caused_by={type(self.original).__name__}: {self.original}")
        return " | ".join(parts)


class UnsupportedFileTypeError(ExtractionError):
    """Raised when no extractor is registered for a file's extension."""


def file_extension(path: str | os.PathLike[str]) -> str:
    """Return the lowercased extension of *path* without the leading dot."""
    return Path(path).suffix.lower().lstrip(".")


# ---------------------------------------------------------------------------
# Extractors
# ---------------------------------------------------------------------------


class TextExtractor(ABC):
    """Converts one family of file formats to plain text."""

    @abstractmethod
    def supports(self, extension: str) -> bool:
        """Return ``True`` if this extractor handles *extension* (no dot, lowercase)."""

    @abstractmethod
    def extract(self, path: Path) -> str:
        """Return the text content of *path*.

        Raises:
            ExtractionError: If the file cannot be read or parsed.
        """


class PlainTextExtractor(TextExtractor):
    def __init__(self, extensions: frozenset[str] = PLAIN_TEXT_EXTENSIONS) -> None:
        self._extensions = extensions

    def supports(self, extension: str) -> bool:
        return extension in self._extensions

    def extract(self, path: Path) -> str:
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise ExtractionError(
                "Failed to read file", path=str(path), original=exc
            ) from exc

        try:
            return data.decode("utf-8")
        except UnicodeDecodeError:
            logger.debug("File is not valid UTF-8, decoding as Latin-1: path=%s", path)
            return data.decode("latin-1")


class PdfExtractor(TextExtractor):
    def supports(self, extension: str) -> bool:
        return extension == "pdf"

    def extract(self, path: Path) -> str:
        if not path.is_file():
            raise ExtractionError(
                "Failed to read file",
                path=str(path),
                original=FileNotFoundError(str(path)),
            )
        try:
            return _pdfminer_extract_text(str(path))
        except Exception as exc:
            raise ExtractionError(
                "Failed to extract text from PDF", path=str(path), original=exc
            ) from exc


class DocxExtractor(TextExtractor):
    def supports(self, extension: str) -> bool:
        return extension == "docx"

    def extract(self, path: Path) -> str:
        if not path.is_file():
            raise ExtractionError(
                "Failed to read file",
                path=str(path),
                original=FileNotFoundError(str(path)),
            )
        try:
            document = _docx_module.Document(str(path))
            paragraphs = [para.text for para in document.paragraphs]
        except Exception as exc:
            raise ExtractionError(
                "Failed to extract text from DOCX", path=str(path), original=exc
            ) from exc
        return "\n".join(paragraphs)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class ExtractorRegistry:
    """Ordered list of extractors; the first one that supports an extension wins."""

    def __init__(self, extractors: list[TextExtractor] | None = None) -> None:
        self._extractors: list[TextExtractor] = list(extractors or [])

    def register(self, extractor: TextExtractor) -> None:
        self._extractors.append(extractor)

    def find(self, extension: str) -> TextExtractor | None:
        for extractor in self._extractors:
            if extractor.supports(extension):
                return extractor
        return None

    def extract(self, path: str | os.PathLike[str]) -> str:
        """Extract text from *path* with the matching extractor.

        Raises:
            UnsupportedFileTypeError: If no extractor supports the extension.
            ExtractionError: If extraction fails.
        """
        path = Path(path)
        extension = file_extension(path)
        extractor = self.find(extension)
        if extractor is None:
            raise UnsupportedFileTypeError(
                f"Unsupported file type: {extension or '<none>'}", path=str(path)
            )
        logger.debug(
            "Extracting: path=%s extractor=%s", path, type(extractor).__name__
        )
        return extractor.extract(path)


def build_default_registry(pdf: bool = True, docx: bool = True) -> ExtractorRegistry:
    """Return a registry with the plain-text extractor and, optionally, PDF and DOCX."""
    registry = ExtractorRegistry([PlainTextExtractor()])
    if pdf:
        registry.register(PdfExtractor())
    if docx:
        registry.register(DocxExtractor())
    return registry
