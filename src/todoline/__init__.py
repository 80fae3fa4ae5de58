"""todoline - todo.txt line parser, formatter and command line tool."""

from todoline.errors import (
    InvalidDateError,
    MalformedPatternError,
    NoTitleError,
    ParseError,
    TodoError,
)
from todoline.storage import TodoFile, load, parse_all, render_all, save
from todoline.todotxt import Task, parse, render, smart_parse, toggle_completed

__version__ = "0.1.0"

__all__ = [
    "InvalidDateError",
    "MalformedPatternError",
    "NoTitleError",
    "ParseError",
    "Task",
    "TodoError",
    "TodoFile",
    "load",
    "parse",
    "parse_all",
    "render",
    "render_all",
    "save",
    "smart_parse",
    "toggle_completed",
]
