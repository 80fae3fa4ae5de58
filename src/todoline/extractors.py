"""Field extractors for todo.txt lines.

Each extractor is a pure function of a raw line and can be used on its own
without parsing the whole task:

- Priority: first `(A)` style token
- Project: first `+project` token
- Context: first `@context` token
- Tags: every `key:value` token
- Hashtags: every `#hashtag` token (not part of the todo.txt format)
- Due date: the value of the first `due:YYYY-MM-DD` tag
- Dates: first and second bare `YYYY-MM-DD` tokens (creation, completion)
- Title: whatever is left once the tokens above are removed
"""

import re
from datetime import date, datetime
from itertools import islice
from typing import Any, Callable

from todoline.errors import InvalidDateError, MalformedPatternError, NoTitleError

DATE_FORMAT = "%Y-%m-%d"


def _compile(pattern: str) -> re.Pattern[str]:
    """Compile an extractor pattern.

    Raises:
        MalformedPatternError: If the pattern is not a valid regex.
    """
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise MalformedPatternError(f"cannot compile pattern {pattern!r}: {exc}") from exc


# Regular expression patterns for the todo.txt fields
COMPLETED_PATTERN = _compile(r"^x\s+")
PRIORITY_PATTERN = _compile(r"\((\w+)\)")
PROJECT_PATTERN = _compile(r"\+(\w+)")
CONTEXT_PATTERN = _compile(r"@(\w+)")
TAG_PATTERN = _compile(r"(\w+):(\S+)")
HASHTAG_PATTERN = _compile(r"#(\w+)")
DUE_DATE_PATTERN = _compile(r"due:(\d{4}-\d{2}-\d{2})")
# A date right after ':' belongs to a key:value tag
DATE_PATTERN = _compile(r"(?<!:)(\d{4}-\d{2}-\d{2})")
TITLE_NOISE_PATTERN = _compile(
    r"\+\w+|@\w+|\(\w+\)|\w+:\S+|(?<!:)\d{4}-\d{2}-\d{2}"
)


def parse_date(value: str, line: str | None = None) -> date:
    """Parse a YYYY-MM-DD string into a date.

    Raises:
        InvalidDateError: If the text is not a real calendar date.
    """
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError as exc:
        raise InvalidDateError(value, line) from exc


def strip_completion_marker(line: str) -> tuple[bool, str]:
    """Split off the leading `x ` completion marker.

    Args:
        line: A todo.txt line.

    Returns:
        Tuple of (completed, content) where content is trimmed.
    """
    # Trailing whitespace can be the one following the marker, as in "x "
    content = line.lstrip()
    match = COMPLETED_PATTERN.match(content)
    if match:
        return True, content[match.end() :].strip()
    return False, content.strip()


def extract_priority(line: str) -> str | None:
    """Return the first `(X)` priority, without the parentheses."""
    match = PRIORITY_PATTERN.search(line)
    return match.group(1) if match else None


def extract_project(line: str) -> str | None:
    """Return the first `+project`, without the `+`."""
    match = PROJECT_PATTERN.search(line)
    return match.group(1) if match else None


def extract_context(line: str) -> str | None:
    """Return the first `@context`, without the `@`."""
    match = CONTEXT_PATTERN.search(line)
    return match.group(1) if match else None


def extract_tags(line: str) -> dict[str, str]:
    """Collect every `key:value` tag.

    Keys keep the position of their first occurrence; when a key repeats,
    the last value wins.

    Args:
        line: A todo.txt line.

    Returns:
        Ordered mapping of tag keys to values.
    """
    tags: dict[str, str] = {}
    for match in TAG_PATTERN.finditer(line):
        key, value = match.group(0).split(":", 1)
        tags[key] = value
    return tags


def extract_hashtags(line: str) -> list[str]:
    """Collect every `#hashtag` in order, keeping the `#`."""
    return [match.group(0) for match in HASHTAG_PATTERN.finditer(line)]


def extract_due_date(line: str) -> date | None:
    """Return the date of the first `due:YYYY-MM-DD` tag.

    Raises:
        InvalidDateError: If the tag holds an impossible date (e.g. month 13).
    """
    match = DUE_DATE_PATTERN.search(line)
    if match is None:
        return None
    return parse_date(match.group(1), line)


def extract_dates(line: str) -> tuple[date | None, date | None]:
    """Return the (creation, completion) dates of a line.

    The first bare date is the creation date and the second one the
    completion date, whatever their values. Dates inside tags such as
    `due:2024-01-01` are not bare. Later dates are ignored.

    Raises:
        InvalidDateError: If one of the two dates is not a real calendar date.
    """
    matches = list(islice(DATE_PATTERN.finditer(line), 2))
    creation = parse_date(matches[0].group(1), line) if matches else None
    completion = parse_date(matches[1].group(1), line) if len(matches) > 1 else None
    return creation, completion


def residual_title(content: str) -> str:
    """Remove every recognized token from already marker-free content.

    The remainder is trimmed at both ends; spacing inside it is kept.

    Raises:
        NoTitleError: If nothing but whitespace is left.
    """
    title = TITLE_NOISE_PATTERN.sub("", content).strip()
    if not title:
        raise NoTitleError(content)
    return title


def extract_title(line: str) -> str:
    """Return the title, i.e. the line without markers, dates and tokens.

    Raises:
        NoTitleError: If the line holds no free text.
    """
    _, content = strip_completion_marker(line)
    return residual_title(content)


# The extractor set run by the parser, keyed by field name. Every entry
# reads content whose completion marker is already stripped. Title comes
# last since it depends on what the other extractors recognize.
EXTRACTORS: dict[str, Callable[[str], Any]] = {
    "project": extract_project,
    "context": extract_context,
    "tags": extract_tags,
    "priority": extract_priority,
    "hashtags": extract_hashtags,
    "dates": extract_dates,
    "title": residual_title,
}
