"""Errors raised while parsing todo.txt lines.

Hierarchy:
- TodoError: base for everything raised by this package.
- ParseError: a single line could not be turned into a Task.
  Collection-level loading skips lines that raise it.
- MalformedPatternError: an extractor pattern failed to compile.
  This is a defect in the package, never skipped.
"""


class TodoError(Exception):
    """Base error for this package."""


class ParseError(TodoError):
    """Raised when a line cannot be parsed into a task.

    Attributes:
        line: The offending line, if known.
    """

    def __init__(self, message: str, line: str | None = None) -> None:
        super().__init__(message)
        self.line = line


class NoTitleError(ParseError):
    """Raised when nothing remains after removing all recognized tokens."""

    def __init__(self, line: str | None = None) -> None:
        super().__init__(f"no title found in line: {line!r}", line)


class InvalidDateError(ParseError):
    """Raised when a YYYY-MM-DD token is not a real calendar date.

    Attributes:
        value: The date-shaped text that failed validation.
    """

    def __init__(self, value: str, line: str | None = None) -> None:
        super().__init__(f"invalid date {value!r} in line: {line!r}", line)
        self.value = value


class MalformedPatternError(TodoError):
    """Raised when an extractor pattern cannot be compiled."""
