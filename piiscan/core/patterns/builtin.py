"""Built-in PII regex pattern library for piiscan.

This module provides the pre-compiled regular expressions used by the pattern
detector:

* Email addresses
* Japanese telephone numbers
* Credit-card number candidates (accepted only after Luhn validation)

Additional site-specific patterns can be supplied through the
``detection_patterns`` setting (see :func:`load_extra_patterns`).  Extra
patterns are compiled once on load and appended after the built-in set; no
regex compilation occurs at scan time.

**Settings format** (mapping of finding type to regex list):

.. code-block:: json

    {
        "detection_patterns": {
            "employee_id": ["EMP-\\\\d{6}"]
        }
    }

Usage::

    from piiscan.core.patterns.builtin import get_patterns

    for entry in get_patterns():
        for match in entry.regex.finditer(line):
            if entry.validator is None or entry.validator(match.group()):
                print(entry.name, match.start())
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Mapping, Optional, Sequence

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Finding type names
# ---------------------------------------------------------------------------

EMAIL = "email"
PHONE_NUMBER = "phone_number"
CREDIT_CARD = "credit_card"

# ---------------------------------------------------------------------------
# Built-in raw pattern strings
# ---------------------------------------------------------------------------

# Email address
# local@domain.tld with a TLD of at least two letters.  High recall over
# strict RFC 5321 conformance.
_EMAIL = r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}"

# Japanese telephone number
# Either the hyphenated display form (090-1234-5678, 03-1234-5678) or 10-11
# contiguous digits beginning with the trunk prefix 0 (0312345678).
_PHONE = r"(0\d{1,4}-\d{1,4}-\d{4}|0\d{9,10})"

# Credit-card candidate
# 13-16 digits, each optionally followed by a single space or hyphen.  Only
# candidates whose stripped digits pass the Luhn check become findings.
_CREDIT_CARD = r"(?:\d[ -]?){13,16}"

_CARD_SEPARATORS = str.maketrans("", "", " -")


# ---------------------------------------------------------------------------
# Validators
# ---------------------------------------------------------------------------


def luhn_valid(number: str) -> bool:
    """Return ``True`` if the digits of *number* pass the Luhn checksum.

    Non-digit characters are ignored.  Fewer than 13 or more than 19 digits is
    always invalid.

    Starting from the rightmost digit, every second digit is doubled and 9 is
    subtracted from any doubled value above 9; the number is valid iff the
    total is a multiple of 10.
    """
    digits = [int(ch) for ch in number if ch.isdecimal()]
    if len(digits) < 13 or len(digits) > 19:
        return False

    total = 0
    for index, digit in enumerate(reversed(digits)):
        if index % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return total % 10 == 0


def is_valid_credit_card(candidate: str) -> bool:
    """Strip spaces/hyphens from *candidate* and apply :func:`luhn_valid`."""
    return luhn_valid(candidate.translate(_CARD_SEPARATORS))


# ---------------------------------------------------------------------------
# PatternEntry dataclass
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PatternEntry:
    """An immutable, pre-compiled PII pattern entry.

    Attributes:
        name: Finding type reported for matches (e.g. ``"email"``).
        regex: Pre-compiled regular expression applied per line.
        validator: Optional predicate over the raw matched text.  Matches for
            which it returns ``False`` are discarded.
    """

    name: str
    regex: re.Pattern  # type: ignore[type-arg]
    validator: Optional[Callable[[str], bool]] = None


# ---------------------------------------------------------------------------
# Built-in pattern catalogue
# ---------------------------------------------------------------------------

#: Built-in entries in application order.  Order determines the order of
#: findings within a line.
_BUILTIN_PATTERNS: list[PatternEntry] = [
    PatternEntry(name=EMAIL, regex=re.compile(_EMAIL)),
    PatternEntry(name=PHONE_NUMBER, regex=re.compile(_PHONE)),
    PatternEntry(
        name=CREDIT_CARD,
        regex=re.compile(_CREDIT_CARD),
        validator=is_valid_credit_card,
    ),
]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_builtin_patterns() -> list[PatternEntry]:
    """Return a new list containing the built-in :class:`PatternEntry` objects."""
    return list(_BUILTIN_PATTERNS)


def load_extra_patterns(
    detection_patterns: Mapping[str, Sequence[str]] | None,
) -> list[PatternEntry]:
    """Compile the extra patterns configured under ``detection_patterns``.

    Malformed entries (non-string regex, un-compilable regex) are skipped with
    a warning so that a scan can still run with the valid patterns.

    If an extra entry shares a name with a built-in, both are retained and a
    warning is logged; the built-in is applied first, so it takes precedence
    when findings are deduplicated, and its validator (the Luhn check for
    ``credit_card``) also applies to the extra entry.

    Args:
        detection_patterns: Mapping of finding type to a list of raw regex
            strings, in the order they should be applied.  ``None`` or an
            empty mapping yields no extra patterns.

    Returns:
        Compiled entries in mapping order, then list order.

    Note:
        This function never raises.
    """
    if not detection_patterns:
        return []

    builtin_validators = {e.name: e.validator for e in _BUILTIN_PATTERNS}
    loaded: list[PatternEntry] = []

    for name, raw_patterns in detection_patterns.items():
        if name in builtin_validators:
            logger.warning(
                "Extra pattern type %r shadows a built-in pattern; "
                "the built-in is still applied first and its validator is reused",
                name,
            )

        for index, raw in enumerate(raw_patterns):
            if not isinstance(raw, str) or not raw:
                logger.warning(
                    "Extra pattern %r at index %d is not a non-empty string; skipping",
                    name,
                    index,
                )
                continue
            try:
                compiled = re.compile(raw)
            except re.error as exc:
                logger.error(
                    "Extra pattern %r at index %d has invalid regex %r: %s; skipping",
                    name,
                    index,
                    raw,
                    exc,
                )
                continue
            loaded.append(
                PatternEntry(
                    name=name,
                    regex=compiled,
                    validator=builtin_validators.get(name),
                )
            )

    logger.info("Loaded %d extra detection pattern(s)", len(loaded))
    return loaded


def get_patterns(
    detection_patterns: Mapping[str, Sequence[str]] | None = None,
) -> list[PatternEntry]:
    """Return the built-in patterns followed by any extra configured ones."""
    return get_builtin_patterns() + load_extra_patterns(detection_patterns)
