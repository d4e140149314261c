from __future__ import annotations
import re


class InvalidPatternError(ValueError):
    """A milestone label pattern that is not a valid regular expression."""

    def __init__(self, pattern: str, reason: str):
        super().__init__(f"Invalid label pattern {pattern!r}: {reason}")
        self.pattern = pattern
        self.reason = reason


def compile_pattern(label_pattern: str) -> re.Pattern[str]:
    """Compile a label pattern the way every match uses it (case-insensitive)."""
    try:
        return re.compile(label_pattern, re.IGNORECASE)
    except re.error as e:
        raise InvalidPatternError(label_pattern, str(e)) from e


def matches(message: str, label_pattern: str) -> bool:
    """
    True iff `label_pattern` is found anywhere in `message`.

    Search semantics, not full match:
        >>> matches("feat: init #m1", "#M1")
        True
        >>> matches("feat: init", "#M1")
        False
    """
    return compile_pattern(label_pattern).search(message or "") is not None
