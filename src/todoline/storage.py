"""Storage module for todo.txt files.

Loading is permissive: lines that fail to parse are skipped and reported
by line number. Full rewrites are atomic (temporary file and rename); new
tasks are appended without touching the existing lines.
"""

import logging
import os
import re
import tempfile
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, Iterable, Iterator, Self

from todoline.errors import ParseError
from todoline.todotxt import Task

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SkippedLine:
    """A line left out of a load because it could not be parsed.

    Attributes:
        line_number: One-based position of the line in the text.
        raw: The line as read.
        error: The parse error raised for it.
    """

    line_number: int
    raw: str
    error: ParseError


def parse_all_with_errors(text: str) -> tuple[list[Task], list[SkippedLine]]:
    """Parse every line of a todo.txt text.

    Blank lines are ignored. Lines raising a ParseError are skipped.

    Args:
        text: Content of a todo.txt file.

    Returns:
        Tuple of (tasks in file order, skipped lines).
    """
    tasks: list[Task] = []
    skipped: list[SkippedLine] = []

    for line_number, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            tasks.append(Task.parse(line))
        except ParseError as exc:
            logger.warning("skipping line %d: %s", line_number, exc)
            skipped.append(SkippedLine(line_number, line, exc))

    return tasks, skipped


def parse_all(text: str) -> list[Task]:
    """Parse every line of a todo.txt text, skipping unparseable lines."""
    tasks, _ = parse_all_with_errors(text)
    return tasks


def render_all(tasks: Iterable[Task]) -> str:
    """Render tasks as todo.txt text, one line per task."""
    return "".join(f"{task.to_line()}\n" for task in tasks)


def write_text_atomic(path: Path, text: str) -> None:
    """Atomically write text to a file.

    Uses a temporary file and rename for atomicity.

    Args:
        path: Destination file.
        text: Content to write.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(
        dir=path.parent, prefix=".todoline_", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())

        os.replace(tmp_path, path)
    except Exception:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def load(path: Path) -> list[Task]:
    """Read and parse a todo.txt file.

    Raises:
        FileNotFoundError: If the file doesn't exist.
    """
    return parse_all(Path(path).read_text(encoding="utf-8"))


def save(path: Path, tasks: Iterable[Task]) -> None:
    """Atomically write tasks to a todo.txt file."""
    write_text_atomic(Path(path), render_all(tasks))


class TodoFile:
    """An ordered collection of tasks backed by a todo.txt file.

    Changes stay in memory until `save` or `save_as` is called.

    Attributes:
        path: Path to the todo.txt file.
        tasks: Parsed tasks in file order.
        content: The text the tasks were loaded from.
        skipped: Lines the last load could not parse.
    """

    def __init__(self, path: Path | str | None = None, content: str | None = None) -> None:
        """Load a todo.txt file. A missing file gives an empty collection.

        Args:
            path: Path to the todo.txt file.
            content: Text to parse instead of reading the file.
        """
        self.path = Path(path) if path is not None else None
        if content is None:
            content = self._read() if self.exists() else ""
        self.content = content
        self.tasks: list[Task] = []
        self.skipped: list[SkippedLine] = []
        self.load()

    @classmethod
    def from_path(cls, path: Path | str) -> Self:
        """Load a todo.txt file that must exist.

        Raises:
            FileNotFoundError: If the file doesn't exist.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")
        return cls(path)

    @classmethod
    def from_string(cls, content: str) -> Self:
        """Build a collection from text, without a backing file."""
        return cls(None, content)

    @classmethod
    def from_json(cls, path: Path | str | None, data: list[dict[str, Any]]) -> Self:
        """Build a collection from the output of `as_json`."""
        todo_file = cls(path, "")
        todo_file.tasks = [Task.from_dict(item) for item in data]
        todo_file.content = render_all(todo_file.tasks)
        return todo_file

    def exists(self) -> bool:
        """Check if the backing file exists."""
        return self.path is not None and self.path.exists()

    def _require_path(self) -> Path:
        if self.path is None:
            raise ValueError("TodoFile has no path, use save_as")
        return self.path

    def _read(self) -> str:
        return self._require_path().read_text(encoding="utf-8")

    def load(self) -> None:
        """Parse `content` into `tasks`, replacing the current tasks."""
        self.tasks, self.skipped = parse_all_with_errors(self.content)
        logger.debug(
            "loaded %d tasks (%d skipped) from %s",
            len(self.tasks),
            len(self.skipped),
            self.path or "<string>",
        )

    def reload(self) -> None:
        """Re-read the backing file and parse it again."""
        self.content = self._read() if self.exists() else ""
        self.load()

    def save(self) -> None:
        """Write the tasks to the backing file.

        Raises:
            ValueError: If the collection has no path.
        """
        self.save_as(self._require_path())

    def save_as(self, path: Path | str) -> None:
        """Write the tasks to another file.

        Tasks still matching the text they were parsed from keep that text.
        Edited tasks are written in canonical order.
        """
        self.content = "".join(f"{_stored_line(task)}\n" for task in self.tasks)
        write_text_atomic(Path(path), self.content)
        logger.debug("saved %d tasks to %s", len(self.tasks), path)

    def change_status(self, index: int) -> Task:
        """Toggle the completion of the task at `index`.

        Raises:
            IndexError: If the index is out of range.
        """
        task = self.tasks[index]
        task.toggle_completed()
        return task

    def remove(self, index: int) -> Task:
        """Remove and return the task at `index`.

        Raises:
            IndexError: If the index is out of range.
        """
        return self.tasks.pop(index)

    def add(self, task: Task) -> None:
        """Append a task."""
        self.tasks.append(task)

    def append(self, task: Task) -> None:
        """Add a task and append its line to the backing file.

        Creates the file if it doesn't exist. Lines already in the file,
        unparseable ones included, are left as they are.

        Raises:
            ValueError: If the collection has no path.
        """
        path = self._require_path()
        separator = "\n" if self.content and not self.content.endswith("\n") else ""
        text = f"{separator}{task.to_line()}\n"

        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "a", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())

        self.content += text
        self.tasks.append(task)
        logger.debug("appended task to %s", path)

    def update(self, index: int, task: Task) -> None:
        """Replace the task at `index`. Out of range indexes are ignored."""
        if 0 <= index < len(self.tasks):
            self.tasks[index] = task

    def get(self, index: int) -> Task | None:
        """Return the task at `index`, or None when out of range."""
        if 0 <= index < len(self.tasks):
            return self.tasks[index]
        return None

    def is_empty(self) -> bool:
        return not self.tasks

    def __len__(self) -> int:
        return len(self.tasks)

    def __getitem__(self, index: int) -> Task:
        return self.tasks[index]

    def __setitem__(self, index: int, task: Task) -> None:
        self.tasks[index] = task

    def __iter__(self) -> Iterator[Task]:
        return iter(self.tasks)

    def __str__(self) -> str:
        return "".join(
            f"{number}. {task}\n" for number, task in enumerate(self.tasks, start=1)
        )

    def rearrange(self) -> list[Task]:
        """Return the tasks in todo.txt order.

        Incomplete tasks sorted by creation date come first, then completed
        tasks sorted by completion date. Tasks without a date sort first.
        The collection itself is not modified.
        """
        not_done = sorted(
            (task for task in self.tasks if not task.completed),
            key=lambda task: _date_key(task.creation_date),
        )
        done = sorted(
            (task for task in self.tasks if task.completed),
            key=lambda task: _date_key(task.completion_date),
        )
        return not_done + done

    def search(self, query: str) -> list[Task]:
        """Case-sensitive substring search over each task's content."""
        return [task for task in self.tasks if query in _content(task)]

    def regex(self, pattern: str) -> list[Task]:
        """Tasks whose content matches a regular expression.

        Raises:
            re.error: If the pattern is invalid.
        """
        compiled = re.compile(pattern)
        return [task for task in self.tasks if compiled.search(_content(task))]

    def get_project(self, project: str) -> list[Task]:
        return [task for task in self.tasks if task.project == project]

    def get_context(self, context: str) -> list[Task]:
        return [task for task in self.tasks if task.context == context]

    def list_projects(self) -> list[str]:
        """Distinct projects, sorted."""
        return sorted({task.project for task in self.tasks if task.project})

    def list_contexts(self) -> list[str]:
        """Distinct contexts, sorted."""
        return sorted({task.context for task in self.tasks if task.context})

    def list_tags(self) -> list[str]:
        """Distinct tag keys, sorted."""
        return sorted({key for task in self.tasks for key in task.tags})

    def list_hashtags(self) -> list[str]:
        """Distinct hashtags, sorted."""
        return sorted({tag for task in self.tasks for tag in task.hashtags})

    def completed(self) -> list[Task]:
        return [task for task in self.tasks if task.completed]

    def not_completed(self) -> list[Task]:
        return [task for task in self.tasks if not task.completed]

    def due_on(self, day: date) -> list[Task]:
        """Tasks whose `due` tag is the given date.

        Tasks with an impossible due date are left out.
        """
        result = []
        for task in self.tasks:
            try:
                due = task.due_date
            except ParseError as exc:
                logger.warning("ignoring due date of %r: %s", task.title, exc)
                continue
            if due == day:
                result.append(task)
        return result

    def due_today(self, today: date | None = None) -> list[Task]:
        """Tasks due today (local date unless `today` is given)."""
        return self.due_on(today or date.today())

    def as_json(self) -> list[dict[str, Any]]:
        """The tasks as JSON-serializable dictionaries."""
        return [task.to_dict() for task in self.tasks]


def _stored_line(task: Task) -> str:
    """Line to write back for a task.

    Re-rendering would reorder the dates and drop extra projects and
    contexts, so a task whose fields still match `raw_content` keeps it,
    with only the completion marker following `completed`.
    """
    if task.raw_content:
        try:
            source = Task.parse(task.raw_content)
        except ParseError:
            return task.to_line()
        source.completed = task.completed
        if source == task:
            return f"x {task.raw_content}" if task.completed else task.raw_content
    return task.to_line()


def _content(task: Task) -> str:
    return task.raw_content or task.to_line()


def _date_key(value: date | None) -> date:
    return value or date.min
