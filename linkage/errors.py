"""
Errors raised while turning raw linkage lines into records.

The parser never substitutes a value for a field it cannot read; it raises
one of these instead and leaves the skip-or-abort decision to the caller.
"""

from typing import Optional

# Caller policies for a line that fails to parse
ON_ERROR_CHOICES = ("raise", "skip")


class ParseError(ValueError):
    """Base class for any line that cannot become a MatchData record."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[str] = None,
        line_number: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.field = field
        self.value = value
        self.line_number = line_number

    def __str__(self) -> str:
        if self.line_number is not None:
            return f"line {self.line_number}: {self.message}"
        return self.message


class FormatError(ParseError):
    """Raised when a single field cannot be converted to its target type."""
    pass


class MalformedRecordError(ParseError):
    """Raised when a line does not split into the expected number of fields."""
    pass
