"""Unit tests for piiscan/core/detectors/pattern.py (PatternDetector).

Coverage targets
----------------
* Email and phone findings on a single line, with line/start/end offsets.
* Credit-card candidates are reported only when they pass the Luhn check.
* Multi-line input produces 1-indexed line numbers and per-line offsets;
  CRLF input reports the same offsets as LF input.
* The detector is total: empty input and binary garbage produce a list.
* Extra configured patterns are applied after the built-ins.
* ``name()`` / ``is_available()`` contract.
"""

from __future__ import annotations

import pytest

from piiscan.core.detectors.pattern import PatternDetector, iter_lines
from piiscan.core.models import PersonalInformation


@pytest.fixture
def detector() -> PatternDetector:
    return PatternDetector()


# ---------------------------------------------------------------------------
# iter_lines
# ---------------------------------------------------------------------------


class TestIterLines:
    def test_empty(self):
        assert list(iter_lines("")) == []

    def test_numbering_and_crlf(self):
        assert list(iter_lines("a\r\nb\n\nc")) == [(1, "a"), (2, "b"), (3, ""), (4, "c")]


# ---------------------------------------------------------------------------
# Detection
# ---------------------------------------------------------------------------


class TestFindAll:
    def test_email_and_phone_on_one_line(self, detector):
        text = "Contact: test@example.com, call 090-1234-5678"
        findings = detector.find_all(text)

        assert findings == [
            PersonalInformation(type="email", value="test@example.com", line=1, start=9, end=25),
            PersonalInformation(
                type="phone_number", value="090-1234-5678", line=1, start=32, end=45
            ),
        ]

    def test_valid_credit_card(self, detector):
        findings = detector.find_all("4111 1111 1111 1111")
        assert findings == [
            PersonalInformation(
                type="credit_card", value="4111 1111 1111 1111", line=1, start=0, end=19
            )
        ]

    def test_invalid_credit_card_rejected(self, detector):
        assert detector.find_all("4111 1111 1111 1112") == []

    def test_card_with_prefix_text(self, detector):
        findings = detector.find_all("card: 4111-1111-1111-1111")
        assert [(f.type, f.value, f.start) for f in findings] == [
            ("credit_card", "4111-1111-1111-1111", 6)
        ]

    def test_multiline_offsets(self, detector):
        text = "first line\n  a@example.com\r\nthird 03-1234-5678"
        findings = detector.find_all(text)

        assert [(f.type, f.line, f.start, f.end) for f in findings] == [
            ("email", 2, 2, 15),
            ("phone_number", 3, 6, 18),
        ]

    def test_offsets_index_into_the_line(self, detector):
        text = "x\nreach me at me@example.org please"
        (finding,) = detector.find_all(text)
        line = text.split("\n")[finding.line - 1]
        assert line[finding.start : finding.end] == finding.value

    def test_empty_text(self, detector):
        assert detector.find_all("") == []

    def test_binary_garbage_is_total(self, detector):
        garbage = bytes(range(256)).decode("latin-1") * 4
        assert isinstance(detector.find_all(garbage), list)

    def test_extra_patterns_applied_after_builtins(self):
        detector = PatternDetector(detection_patterns={"employee_id": [r"EMP-\d{6}"]})
        findings = detector.find_all("EMP-123456 mailed x@example.com")
        assert [(f.type, f.value) for f in findings] == [
            ("email", "x@example.com"),
            ("employee_id", "EMP-123456"),
        ]


class TestDetectorInterface:
    @pytest.mark.asyncio
    async def test_detect_matches_find_all(self, detector):
        text = "a@example.com\n0312345678"
        assert await detector.detect(text) == detector.find_all(text)

    def test_name_and_availability(self, detector):
        assert detector.name() == "pattern"
        assert detector.is_available() is True
