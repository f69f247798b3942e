"""PatternDetector: deterministic regex-and-checksum PII detection.

:class:`PatternDetector` runs the compiled pattern set line by line and
returns :class:`~piiscan.core.models.PersonalInformation` objects whose
``line``/``start``/``end`` locate each match within its line.

**Design notes**

* All regex patterns are pre-compiled by the pattern library; no per-scan
  compilation occurs.
* Each line is scanned independently; within a line, patterns are applied in
  library order (email, phone, credit card, then extra patterns) and matches
  of different patterns are all reported, even when they overlap.
* Credit-card candidates only become findings when they pass the Luhn check.
* The detector is total: any string, including the empty string, produces a
  (possibly empty) list and never raises.
* The detector is stateless after construction; the same instance can be used
  concurrently from multiple asyncio tasks.

Usage::

    from piiscan.core.detectors.pattern import PatternDetector

    detector = PatternDetector()
    findings = detector.find_all("Contact: test@example.com")
    # [PersonalInformation(type='email', value='test@example.com', line=1, ...)]
"""

from __future__ import annotations

import logging
from typing import Iterator, Mapping, Sequence

from piiscan.core.detectors.base import Detector
from piiscan.core.models import PersonalInformation
from piiscan.core.patterns.builtin import PatternEntry, get_patterns

logger = logging.getLogger(__name__)


def iter_lines(text: str) -> Iterator[tuple[int, str]]:
    """Yield ``(line_number, line)`` pairs with 1-indexed line numbers.

    Lines are split on ``"\\n"`` and a trailing ``"\\r"`` is removed, so CRLF
    input reports the same offsets as LF input.
    """
    if not text:
        return
    for index, line in enumerate(text.split("\n"), start=1):
        if line.endswith("\r"):
            line = line[:-1]
        yield index, line


class PatternDetector(Detector):
    """Stateless pattern-based PII detector.

    Args:
        patterns: Explicit list of :class:`~piiscan.core.patterns.builtin.PatternEntry`
            objects.  When ``None``, the built-in set plus *detection_patterns*
            is used.
        detection_patterns: Extra ``{type: [regex, ...]}`` patterns appended
            after the built-ins.  Ignored when *patterns* is supplied.

    Example::

        detector = PatternDetector(detection_patterns={"employee_id": [r"EMP-\\d{6}"]})
        findings = await detector.detect("EMP-123456 joined")
    """

    def __init__(
        self,
        patterns: Sequence[PatternEntry] | None = None,
        detection_patterns: Mapping[str, Sequence[str]] | None = None,
    ) -> None:
        if patterns is not None:
            self._patterns: list[PatternEntry] = list(patterns)
        else:
            self._patterns = get_patterns(detection_patterns)

        logger.debug(
            "PatternDetector initialised with %d pattern(s): %s",
            len(self._patterns),
            [p.name for p in self._patterns],
        )

    # ------------------------------------------------------------------
    # Detector interface
    # ------------------------------------------------------------------

    async def detect(self, text: str) -> list[PersonalInformation]:
        return self.find_all(text)

    def name(self) -> str:
        return "pattern"

    def is_available(self) -> bool:
        return True

    # ------------------------------------------------------------------
    # Core detection
    # ------------------------------------------------------------------

    def find_all(self, text: str) -> list[PersonalInformation]:
        """Run every pattern against every line of *text*.

        This is the synchronous core of :meth:`detect`, also used by the
        remote detector as its fallback when a model response cannot be
        parsed.

        Args:
            text: The plain text to scan.  An empty string produces no
                findings.

        Returns:
            Findings ordered by line, then by pattern order within the line,
            then by position.
        """
        findings: list[PersonalInformation] = []

        for line_number, line in iter_lines(text):
            if not line:
                continue
            for entry in self._patterns:
                for match in entry.regex.finditer(line):
                    value = match.group()
                    if not value:
                        continue
                    if entry.validator is not None and not entry.validator(value):
                        logger.debug(
                            "Rejected %s candidate on line %d at %d",
                            entry.name,
                            line_number,
                            match.start(),
                        )
                        continue
                    findings.append(
                        PersonalInformation(
                            type=entry.name,
                            value=value,
                            line=line_number,
                            start=match.start(),
                            end=match.end(),
                        )
                    )

        logger.debug("PatternDetector found %d item(s)", len(findings))
        return findings
