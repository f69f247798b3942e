"""HybridDetector: run several detectors and merge what they find.

Detectors are tried in registration order.  Failures are tolerated as long as
at least one detector succeeds; the successful results are merged with
:func:`~piiscan.core.models.merge_findings`, so the first registered detector
wins when two report the same ``type:value:line:start``.
"""

from __future__ import annotations

import logging
from typing import Sequence

from piiscan.core.detectors.base import AllDetectorsFailedError, Detector
from piiscan.core.models import PersonalInformation, merge_findings

logger = logging.getLogger(__name__)


class HybridDetector(Detector):
    """Ordered composition of detectors.

    Args:
        detectors: Detectors in merge precedence order.  The sequence is
            copied; later changes to the caller's list have no effect.
    """

    def __init__(self, detectors: Sequence[Detector]) -> None:
        self._detectors: tuple[Detector, ...] = tuple(detectors)

    @property
    def detectors(self) -> tuple[Detector, ...]:
        return self._detectors

    def name(self) -> str:
        return "hybrid"

    def is_available(self) -> bool:
        return any(detector.is_available() for detector in self._detectors)

    async def detect(self, text: str) -> list[PersonalInformation]:
        if not self._detectors:
            return []

        successes: list[list[PersonalInformation]] = []
        failures: list[str] = []

        for detector in self._detectors:
            if not detector.is_available():
                logger.debug("Detector unavailable, skipping: name=%s", detector.name())
                continue
            try:
                found = await detector.detect(text)
            except Exception as exc:  # noqa: BLE001
                logger.warning("Detector failed: name=%s error=%s", detector.name(), exc)
                failures.append(f"{detector.name()}:{exc}")
                continue
            logger.debug("Detector succeeded: name=%s items=%d", detector.name(), len(found))
            successes.append(found)

        if successes:
            return merge_findings(successes)

        if failures:
            error = AllDetectorsFailedError(failures)
            logger.error("%s", error)
            raise error

        return []
