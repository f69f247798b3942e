"""Core data model shared by detectors, the orchestrator and output formatting.

:class:`PersonalInformation` is the unit every detector produces.  A
:class:`ScanResult` groups the findings for one file; :class:`FileInfo` is
the extracted text handed from the file scanner to the detection service.

Usage::

    from piiscan.core.models import PersonalInformation, merge_findings

    a = PersonalInformation(type="email", value="a@b.io", line=1, start=0, end=6)
    merged = merge_findings([[a], [a]])   # -> [a]
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence


@dataclass(frozen=True)
class PersonalInformation:
    """A single detected span of personal information.

    Attributes:
        type: Kind of data found (``"email"``, ``"phone_number"``,
            ``"credit_card"``, or any kind reported by a remote model or an
            extra configured pattern).
        value: The matched substring exactly as it appears in the line,
            separators included.
        line: 1-indexed line number within the scanned text.
        start: 0-indexed character offset of the match within its line.
        end: 0-indexed exclusive end offset within the line.  Always
            ``>= start``.
    """

    type: str
    value: str
    line: int
    start: int
    end: int


@dataclass(frozen=True)
class FileInfo:
    """Text extracted from one file.

    Attributes:
        path: Path of the source file, as a string.
        content: Full extracted text.  Line structure is preserved so that
            findings can report line numbers.
    """

    path: str
    content: str


@dataclass
class ScanResult:
    """Findings for a single successfully processed file.

    Attributes:
        file: Path of the scanned file.
        personal_information: Findings in detection order.  Never contains two
            entries sharing a :func:`dedup_key`.
    """

    file: str
    personal_information: list[PersonalInformation] = field(default_factory=list)


def dedup_key(finding: PersonalInformation) -> str:
    """Return the identity key used when merging findings.

    ``end`` is not part of the key: two findings that only differ in ``end``
    are duplicates and the first one seen wins.
    """
    return f"{finding.type}:{finding.value}:{finding.line}:{finding.start}"


def merge_findings(
    groups: Iterable[Sequence[PersonalInformation]],
) -> list[PersonalInformation]:
    """Concatenate *groups* in order, dropping later duplicates.

    Args:
        groups: Finding lists in precedence order (for the hybrid detector,
            registration order of the detectors that produced them).

    Returns:
        A new list where the first occurrence of each :func:`dedup_key` is
        kept and every later occurrence is dropped.
    """
    seen: set[str] = set()
    merged: list[PersonalInformation] = []
    for group in groups:
        for finding in group:
            key = dedup_key(finding)
            if key in seen:
                continue
            seen.add(key)
            merged.append(finding)
    return merged
