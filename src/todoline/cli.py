"""todoline CLI module.

Typer-based CLI application entry point.
Top-level commands: parse, render
Subcommand groups: task, list, config, self
"""

import json
import logging
from datetime import date
from pathlib import Path
from typing import Annotated, NoReturn, Optional

import typer

from todoline import __version__
from todoline.config import Config
from todoline.errors import ParseError
from todoline.extractors import parse_date
from todoline.storage import TodoFile
from todoline.todotxt import Task

# Main application
app = typer.Typer(
    name="todoline",
    help="Parse, format and query todo.txt files",
    no_args_is_help=True,
)

# Subcommand groups
task_app = typer.Typer(
    name="task",
    help="Task operations",
    no_args_is_help=True,
)

list_app = typer.Typer(
    name="list",
    help="Distinct projects, contexts, tags and hashtags",
    no_args_is_help=True,
)

config_app = typer.Typer(
    name="config",
    help="Configuration commands",
    no_args_is_help=True,
)

self_app = typer.Typer(
    name="self",
    help="Tool information",
    no_args_is_help=True,
)

# Add subcommand groups to main app
app.add_typer(task_app, name="task")
app.add_typer(list_app, name="list")
app.add_typer(config_app, name="config")
app.add_typer(self_app, name="self")


class GlobalContext:
    """Holds global options for commands."""

    def __init__(self) -> None:
        self.file: str | None = None
        self.json_output: bool = False
        self.verbose: bool = False


# Global context instance
_context = GlobalContext()


def version_callback(value: bool) -> None:
    """Callback for --version option."""
    if value:
        typer.echo(f"todoline version {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    file: Annotated[
        Optional[str],
        typer.Option(
            "--file",
            "-f",
            help="Specify the todo.txt file path",
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            "-j",
            help="Output in JSON format",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Show verbose output",
        ),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
) -> None:
    """todoline - Parse, format and query todo.txt files."""
    _context.file = file
    _context.json_output = json_output
    _context.verbose = verbose

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG, format="[verbose] %(name)s: %(message)s"
        )


def _echo_json(data: object) -> None:
    typer.echo(json.dumps(data, ensure_ascii=False))


def _fail(message: str) -> NoReturn:
    """Report an error and exit with code 1."""
    if _context.json_output:
        _echo_json({"error": message})
    else:
        typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(code=1)


def _open_todo_file() -> TodoFile:
    """Load the configured todo.txt file, reporting skipped lines."""
    config = Config(_context.file)
    todo_path = config.todo_file_path

    if _context.verbose:
        typer.echo(f"[verbose] todo.txt: {todo_path} (from {config.source})")

    todo_file = TodoFile(todo_path)
    if not _context.json_output:
        for skipped in todo_file.skipped:
            typer.echo(
                f"Skipped line {skipped.line_number}: {skipped.error}", err=True
            )
    return todo_file


def _skipped_json(todo_file: TodoFile) -> list[dict]:
    return [
        {"line": skipped.line_number, "raw": skipped.raw, "error": str(skipped.error)}
        for skipped in todo_file.skipped
    ]


def _ensure_writable(todo_file: TodoFile) -> None:
    """Refuse to rewrite a file whose unparseable lines would be dropped."""
    if todo_file.skipped:
        numbers = ", ".join(str(skipped.line_number) for skipped in todo_file.skipped)
        _fail(f"Refusing to save: unparseable lines ({numbers}) would be lost")


def _task_at(todo_file: TodoFile, index: int) -> Task:
    task = todo_file.get(index)
    if task is None:
        _fail(f"Task index {index} out of range (0-{len(todo_file) - 1})")
    return task


# ===== top-level commands =====


@app.command("parse")
def parse_command(
    line: Annotated[
        str,
        typer.Argument(help="A todo.txt line"),
    ],
    smart: Annotated[
        bool,
        typer.Option(
            "--smart",
            "-s",
            help="Default missing creation date and priority",
        ),
    ] = False,
) -> None:
    """Parse a single line and show its fields."""
    try:
        if smart:
            config = Config(_context.file)
            task = Task.smart_parse(line, default_priority=config.default_priority)
        else:
            task = Task.parse(line)
    except ParseError as exc:
        _fail(str(exc))

    if _context.json_output:
        _echo_json(task.to_dict())
        return

    typer.echo(f"Title: {task.title}")
    typer.echo(f"Completed: {'Yes' if task.completed else 'No'}")
    if task.priority:
        typer.echo(f"Priority: {task.priority}")
    if task.project:
        typer.echo(f"Project: {task.project}")
    if task.context:
        typer.echo(f"Context: {task.context}")
    if task.creation_date:
        typer.echo(f"Creation: {task.creation_date.isoformat()}")
    if task.completion_date:
        typer.echo(f"Completion: {task.completion_date.isoformat()}")
    for key, value in task.tags.items():
        typer.echo(f"{key}: {value}")
    if task.hashtags:
        typer.echo(f"Hashtags: {' '.join(task.hashtags)}")


@app.command("render")
def render_command(
    line: Annotated[
        str,
        typer.Argument(help="A todo.txt line"),
    ],
) -> None:
    """Print a line in canonical field order."""
    try:
        task = Task.parse(line)
    except ParseError as exc:
        _fail(str(exc))

    if _context.json_output:
        _echo_json({"line": task.to_line()})
    else:
        typer.echo(task.to_line())


# ===== task subcommands =====


@task_app.command("add")
def task_add(
    text: Annotated[
        str,
        typer.Argument(help="Task text to add"),
    ],
) -> None:
    """Add a new task, defaulting its creation date and priority."""
    config = Config(_context.file)
    clean_text = text.replace("\n", " ").replace("\r", " ")

    try:
        task = Task.smart_parse(clean_text, default_priority=config.default_priority)
    except ParseError as exc:
        _fail(str(exc))

    todo_file = _open_todo_file()
    todo_file.append(task)

    task_line = task.to_line()
    if _context.json_output:
        _echo_json({"added": task_line, "index": len(todo_file) - 1})
    else:
        typer.echo(f"Added: {task_line}")


@task_app.command("list")
def task_list(
    show_all: Annotated[
        bool,
        typer.Option(
            "--all",
            "-a",
            help="Include completed tasks",
        ),
    ] = False,
    completed: Annotated[
        bool,
        typer.Option(
            "--completed",
            "-c",
            help="Show only completed tasks",
        ),
    ] = False,
    project: Annotated[
        Optional[str],
        typer.Option(
            "--project",
            "-p",
            help="Only tasks of this project",
        ),
    ] = None,
    context: Annotated[
        Optional[str],
        typer.Option(
            "--context",
            "-x",
            help="Only tasks of this context",
        ),
    ] = None,
    search: Annotated[
        Optional[str],
        typer.Option(
            "--search",
            "-s",
            help="Only tasks containing this text (case-sensitive)",
        ),
    ] = None,
    sort: Annotated[
        bool,
        typer.Option(
            "--sorted",
            help="Incomplete tasks by creation date, then completed ones",
        ),
    ] = False,
    limit: Annotated[
        Optional[int],
        typer.Option(
            "--limit",
            "-n",
            help="Maximum number of tasks to display",
        ),
    ] = None,
) -> None:
    """List tasks without modifying the file.

    By default, shows only incomplete tasks in file order.
    """
    todo_file = _open_todo_file()

    positions = {id(task): index for index, task in enumerate(todo_file.tasks)}
    ordered = todo_file.rearrange() if sort else list(todo_file.tasks)
    matches = {id(task) for task in todo_file.search(search)} if search else None

    filtered_tasks = []
    for task in ordered:
        if completed:
            if not task.completed:
                continue
        elif not show_all and task.completed:
            continue
        if project is not None and task.project != project:
            continue
        if context is not None and task.context != context:
            continue
        if matches is not None and id(task) not in matches:
            continue
        filtered_tasks.append((positions[id(task)], task))

    # Apply limit
    if limit is not None and limit > 0:
        filtered_tasks = filtered_tasks[:limit]

    if _context.json_output:
        _echo_json(
            {
                "tasks": [
                    {"index": index, "line": task.to_line(), **task.to_dict()}
                    for index, task in filtered_tasks
                ],
                "skipped": _skipped_json(todo_file),
            }
        )
    else:
        for index, task in filtered_tasks:
            typer.echo(f"[{index}] {task.to_line()}")


@task_app.command("toggle")
def task_toggle(
    index: Annotated[
        int,
        typer.Argument(help="Zero-based task index, as shown by task list"),
    ],
) -> None:
    """Toggle the completion of a task."""
    todo_file = _open_todo_file()
    task = _task_at(todo_file, index)
    _ensure_writable(todo_file)
    todo_file.change_status(index)
    todo_file.save()

    if _context.json_output:
        _echo_json(
            {"index": index, "completed": task.completed, "line": task.to_line()}
        )
    else:
        state = "Done" if task.completed else "Reopened"
        typer.echo(f"{state}: {task.to_line()}")


@task_app.command("remove")
def task_remove(
    index: Annotated[
        int,
        typer.Argument(help="Zero-based task index, as shown by task list"),
    ],
) -> None:
    """Remove a task from the file."""
    todo_file = _open_todo_file()
    _task_at(todo_file, index)
    _ensure_writable(todo_file)
    task = todo_file.remove(index)
    todo_file.save()

    if _context.json_output:
        _echo_json({"index": index, "removed": task.to_line()})
    else:
        typer.echo(f"Removed: {task.to_line()}")


@task_app.command("due")
def task_due(
    on: Annotated[
        Optional[str],
        typer.Option(
            "--date",
            "-d",
            help="Due date (YYYY-MM-DD), today by default",
        ),
    ] = None,
) -> None:
    """List tasks whose due:YYYY-MM-DD tag falls on a date."""
    try:
        day = parse_date(on) if on else date.today()
    except ParseError as exc:
        _fail(str(exc))

    todo_file = _open_todo_file()
    positions = {id(task): index for index, task in enumerate(todo_file.tasks)}
    due_tasks = todo_file.due_on(day)

    if _context.json_output:
        _echo_json(
            {
                "date": day.isoformat(),
                "tasks": [
                    {"index": positions[id(task)], "line": task.to_line()}
                    for task in due_tasks
                ],
            }
        )
    else:
        for task in due_tasks:
            typer.echo(f"[{positions[id(task)]}] {task.to_line()}")


# ===== list subcommands =====


def _echo_listing(name: str, values: list[str]) -> None:
    if _context.json_output:
        _echo_json({name: values})
    else:
        for value in values:
            typer.echo(value)


@list_app.command("projects")
def list_projects() -> None:
    """Show distinct projects, sorted."""
    _echo_listing("projects", _open_todo_file().list_projects())


@list_app.command("contexts")
def list_contexts() -> None:
    """Show distinct contexts, sorted."""
    _echo_listing("contexts", _open_todo_file().list_contexts())


@list_app.command("tags")
def list_tags() -> None:
    """Show distinct tag keys, sorted."""
    _echo_listing("tags", _open_todo_file().list_tags())


@list_app.command("hashtags")
def list_hashtags() -> None:
    """Show distinct hashtags, sorted."""
    _echo_listing("hashtags", _open_todo_file().list_hashtags())


# ===== config subcommands =====


@config_app.command("path")
def config_path() -> None:
    """Show the resolved todo.txt path."""
    config = Config(_context.file)

    if _context.json_output:
        _echo_json(
            {
                "path": str(config.todo_file_path),
                "source": config.source,
                "source_description": config.source_description,
                "exists": config.todo_file_path.exists(),
                "default_priority": config.default_priority,
            }
        )
    else:
        typer.echo(f"Path: {config.todo_file_path}")
        typer.echo(f"Source: {config.source_description}")
        exists_str = "Yes" if config.todo_file_path.exists() else "No"
        typer.echo(f"Exists: {exists_str}")
        typer.echo(f"Default priority: {config.default_priority}")


@config_app.command("set-path")
def config_set_path(
    path: Annotated[
        str,
        typer.Argument(help="Path to set as default todo.txt"),
    ],
) -> None:
    """Save the default todo.txt path to the config file."""
    abs_path = Path(path).resolve()

    Config.save(str(abs_path))
    config_file = Config.get_config_path()

    if _context.json_output:
        _echo_json({"path": str(abs_path), "config_file": str(config_file)})
    else:
        typer.echo(f"Configuration saved: {abs_path}")
        typer.echo(f"Config file: {config_file}")


# ===== self subcommands =====


@self_app.command("version")
def self_version() -> None:
    """Show version information."""
    if _context.json_output:
        _echo_json({"version": __version__})
    else:
        typer.echo(f"todoline version {__version__}")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
