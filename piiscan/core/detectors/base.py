"""Abstract detector interface shared by every PII detection backend.

All detectors (pattern, remote model, hybrid composition) implement
:class:`Detector`.  The detection service and the hybrid composer depend only
on this interface, so a :class:`~piiscan.core.detectors.hybrid.HybridDetector`
can hold any mix of detectors, including another hybrid.

**Failure contract:** :meth:`Detector.detect` raises a :class:`DetectorError`
subclass when the inspection could not be completed.  It must *never* return
an empty list to signal failure; an empty list means "no PII found".
:meth:`Detector.is_available` must *never* raise.

Usage::

    from piiscan.core.detectors.base import Detector

    class MyDetector(Detector):
        async def detect(self, text: str) -> list[PersonalInformation]: ...
        def name(self) -> str: ...
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from piiscan.core.models import PersonalInformation


class DetectorError(Exception):
    """Raised when a detector cannot complete an inspection.

    This signals that the text *could not be inspected*, not that it is free
    of PII.  The original cause is chained via ``__cause__``.
    """


class AllDetectorsFailedError(DetectorError):
    """Raised by the hybrid composer when every attempted detector failed.

    Attributes:
        failures: ``"name:message"`` strings, one per failed detector, in
            registration order.
    """

    def __init__(self, failures: Sequence[str]) -> None:
        self.failures = list(failures)
        super().__init__(f"All detectors failed: {', '.join(self.failures)}")


class Detector(ABC):
    """Abstract base class for PII detectors."""

    @abstractmethod
    async def detect(self, text: str) -> list[PersonalInformation]:
        """Inspect *text* and return the personal information found.

        Args:
            text: Plain text to inspect.  Lines are separated by ``"\\n"``;
                line numbers in the returned findings are 1-indexed.

        Returns:
            Findings in detection order.  Empty when nothing was found.

        Raises:
            DetectorError: If the inspection could not be completed.
        """

    @abstractmethod
    def name(self) -> str:
        """Return a short identifier used in logs and aggregate error messages."""

    def is_available(self) -> bool:
        """Return ``True`` if the detector can be asked to :meth:`detect` now.

        The default implementation always returns ``True``.  Must never raise.
        """
        return True
