"""todo.txt line parsing and rendering module.

Follows the todo.txt format rules:
- Completed task: starts with `x ` followed by the rest of the line
- Priority: `(A)` format
- Dates: the first bare YYYY-MM-DD is the creation date, the second the
  completion date
- Projects: `+project` format (first one is kept)
- Contexts: `@context` format (first one is kept)
- Tags: `key:value` format
- Hashtags: `#tag` format (experimental, kept in the title text)

Rendering writes the fields back in canonical order:
`x (P) completion creation title +project @context key:value...`
"""

import logging
from dataclasses import dataclass, field, fields
from datetime import date
from typing import Any, Callable, Self

from todoline.extractors import (
    EXTRACTORS,
    extract_due_date,
    parse_date,
    strip_completion_marker,
)

logger = logging.getLogger(__name__)

DEFAULT_PRIORITY = "D"


@dataclass
class Task:
    """Represents a single todo.txt task line.

    Attributes:
        title: The free text left once every recognized token is removed.
        completed: Whether the line starts with the `x ` marker.
        priority: Task priority, the text between `(` and `)`.
        completion_date: Second bare date of the line.
        creation_date: First bare date of the line.
        project: First `+project` of the line.
        context: First `@context` of the line.
        tags: Ordered `key:value` metadata.
        hashtags: `#hashtag` tokens in line order.
        raw_content: The line after stripping the completion marker.
            Not part of equality.
    """

    title: str = ""
    completed: bool = False
    priority: str | None = None
    completion_date: date | None = None
    creation_date: date | None = None
    project: str | None = None
    context: str | None = None
    tags: dict[str, str] = field(default_factory=dict)
    hashtags: list[str] = field(default_factory=list)
    raw_content: str = field(default="", compare=False)

    @classmethod
    def parse(cls, line: str) -> Self:
        """Parse a todo.txt line into a Task object.

        Args:
            line: A single line from a todo.txt file.

        Returns:
            A Task object with parsed fields.

        Raises:
            NoTitleError: If the line holds no free text.
            InvalidDateError: If a date token is not a real calendar date.
        """
        completed, content = strip_completion_marker(line)
        values = {name: extract(content) for name, extract in EXTRACTORS.items()}
        creation_date, completion_date = values.pop("dates")

        return cls(
            completed=completed,
            creation_date=creation_date,
            completion_date=completion_date,
            raw_content=content,
            **values,
        )

    @classmethod
    def smart_parse(
        cls,
        line: str,
        today: date | Callable[[], date] | None = None,
        default_priority: str = DEFAULT_PRIORITY,
    ) -> Self:
        """Parse a line and fill in missing creation date and priority.

        Args:
            line: A single todo.txt line.
            today: Creation date to use when the line has none, or a callable
                returning it. Defaults to the current local date.
            default_priority: Priority to use when the line has none.

        Returns:
            A Task object with creation date and priority always set.

        Raises:
            NoTitleError: If the line holds no free text.
            InvalidDateError: If a date token is not a real calendar date.
        """
        task = cls.parse(line)

        if task.creation_date is None:
            if today is None:
                today = date.today
            task.creation_date = today() if callable(today) else today
            logger.debug("defaulted creation date to %s", task.creation_date)

        if task.priority is None:
            task.priority = default_priority
            logger.debug("defaulted priority to %s", default_priority)

        return task

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Build a Task from the output of `to_dict`.

        Raises:
            InvalidDateError: If a date value is not a real calendar date.
        """

        def _date(value: str | None) -> date | None:
            return parse_date(value) if value else None

        return cls(
            title=data.get("title", ""),
            completed=bool(data.get("completed", False)),
            priority=data.get("priority"),
            completion_date=_date(data.get("completion_date")),
            creation_date=_date(data.get("creation_date")),
            project=data.get("project"),
            context=data.get("context"),
            tags=dict(data.get("tags") or {}),
            hashtags=list(data.get("hashtags") or []),
            raw_content=data.get("raw_content", ""),
        )

    @property
    def due_date(self) -> date | None:
        """Date of the `due` tag, if it holds a YYYY-MM-DD value."""
        value = self.tags.get("due")
        if value is None:
            return None
        return extract_due_date(f"due:{value}")

    def refill(self) -> None:
        """Re-parse `raw_content`, replacing every derived field.

        The completion flag is kept unless the content itself carries a
        completion marker.

        Raises:
            NoTitleError: If the content holds no free text.
            InvalidDateError: If a date token is not a real calendar date.
        """
        parsed = self.parse(self.raw_content)
        parsed.completed = parsed.completed or self.completed
        for item in fields(self):
            setattr(self, item.name, getattr(parsed, item.name))

    def toggle_completed(self) -> None:
        """Flip the completion flag. No other field changes."""
        self.completed = not self.completed

    def to_line(self) -> str:
        """Convert the Task object back to a todo.txt line string.

        The completion date is written before the creation date, as the
        todo.txt format expects. Hashtags stay inside the title.

        Returns:
            A properly formatted todo.txt line.
        """
        parts = []

        if self.completed:
            parts.append("x")
        if self.priority:
            parts.append(f"({self.priority})")
        if self.completion_date:
            parts.append(self.completion_date.isoformat())
        if self.creation_date:
            parts.append(self.creation_date.isoformat())
        if self.title:
            parts.append(self.title)
        if self.project:
            parts.append(f"+{self.project}")
        if self.context:
            parts.append(f"@{self.context}")
        for key, value in self.tags.items():
            parts.append(f"{key}:{value}")

        return " ".join(parts)

    def __str__(self) -> str:
        return self.to_line()

    def to_dict(self) -> dict[str, Any]:
        """Convert the Task to a dictionary for JSON serialization.

        Returns:
            A dictionary representation of the task.
        """
        return {
            "title": self.title,
            "completed": self.completed,
            "priority": self.priority,
            "completion_date": (
                self.completion_date.isoformat() if self.completion_date else None
            ),
            "creation_date": (
                self.creation_date.isoformat() if self.creation_date else None
            ),
            "project": self.project,
            "context": self.context,
            "tags": dict(self.tags),
            "hashtags": list(self.hashtags),
            "raw_content": self.raw_content,
        }


def parse(line: str) -> Task:
    """Parse a todo.txt line.

    Args:
        line: A todo.txt line.

    Returns:
        The parsed Task.
    """
    return Task.parse(line)


def smart_parse(
    line: str,
    today: date | Callable[[], date] | None = None,
    default_priority: str = DEFAULT_PRIORITY,
) -> Task:
    """Parse a line, defaulting creation date and priority.

    Args:
        line: A todo.txt line.
        today: Fallback creation date, or a callable returning it.
        default_priority: Fallback priority.

    Returns:
        The parsed Task.
    """
    return Task.smart_parse(line, today=today, default_priority=default_priority)


def render(task: Task) -> str:
    """Render a Task as a canonical todo.txt line.

    Args:
        task: The task to render.

    Returns:
        The todo.txt line.
    """
    return task.to_line()


def toggle_completed(task: Task) -> None:
    """Flip the completion flag of a task in place.

    Args:
        task: The task to update.
    """
    task.toggle_completed()
