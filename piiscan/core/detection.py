"""DetectionService: apply a detector to extracted file content."""

from __future__ import annotations

import logging

from piiscan.core.detectors.base import Detector
from piiscan.core.models import FileInfo, PersonalInformation, ScanResult, merge_findings

logger = logging.getLogger(__name__)


class DetectionService:
    """Thin wrapper that turns a detector's output into a :class:`ScanResult`."""

    def __init__(self, detector: Detector) -> None:
        self._detector = detector

    @property
    def detector(self) -> Detector:
        return self._detector

    async def detect_personal_information(self, text: str) -> list[PersonalInformation]:
        return await self._detector.detect(text)

    async def detect_in_file(self, file_info: FileInfo) -> ScanResult:
        """Detect PII in *file_info* and return a deduplicated result.

        Raises:
            DetectorError: Propagated from the detector.
        """
        findings = await self.detect_personal_information(file_info.content)
        unique = merge_findings([findings])
        logger.debug(
            "Detection finished: path=%s detector=%s items=%d",
            file_info.path,
            self._detector.name(),
            len(unique),
        )
        return ScanResult(file=file_info.path, personal_information=unique)
