"""PII pattern library for piiscan.

Provides the built-in pattern set, the Luhn validator, and loading of extra
configured patterns.
"""

from piiscan.core.patterns.builtin import (
    CREDIT_CARD,
    EMAIL,
    PHONE_NUMBER,
    PatternEntry,
    get_builtin_patterns,
    get_patterns,
    is_valid_credit_card,
    load_extra_patterns,
    luhn_valid,
)

__all__ = [
    "CREDIT_CARD",
    "EMAIL",
    "PHONE_NUMBER",
    "PatternEntry",
    "get_builtin_patterns",
    "get_patterns",
    "is_valid_credit_card",
    "load_extra_patterns",
    "luhn_valid",
]
