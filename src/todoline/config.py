"""Settings for the todoline CLI.

The todo.txt file comes from, in order: the --file option, TODOLINE_FILE,
`todo_file` in config.toml, then ./todo.txt if present or ~/todo.txt.
The smart-parse priority comes from TODOLINE_DEFAULT_PRIORITY, then
`default_priority` in config.toml, then "D".
"""

import logging
import os
import sys
import tomllib
from functools import cached_property
from pathlib import Path

from todoline.todotxt import DEFAULT_PRIORITY

logger = logging.getLogger(__name__)

ENV_VAR_NAME = "TODOLINE_FILE"
PRIORITY_ENV_VAR_NAME = "TODOLINE_DEFAULT_PRIORITY"


def _read_settings() -> dict:
    """Load config.toml, or nothing when it is missing or broken."""
    config_path = Config.get_config_path()
    if not config_path.exists():
        return {}
    try:
        with open(config_path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        logger.warning("ignoring unreadable config %s: %s", config_path, exc)
        return {}


def _toml_string(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


class Config:
    """Where the todo.txt file lives and how new tasks are defaulted."""

    def __init__(self, cli_path: str | None = None) -> None:
        self._cli_path = cli_path

    @cached_property
    def _resolved(self) -> tuple[Path, str]:
        if self._cli_path is not None:
            return Path(self._cli_path).resolve(), "cli"

        env_path = os.environ.get(ENV_VAR_NAME)
        if env_path:
            return Path(env_path).resolve(), "env"

        config_path = _read_settings().get("todo_file")
        if config_path:
            return Path(config_path).resolve(), "config"

        local_path = Path("./todo.txt")
        if local_path.exists():
            return local_path.resolve(), "default"
        return Path.home() / "todo.txt", "default"

    @property
    def todo_file_path(self) -> Path:
        return self._resolved[0]

    @property
    def source(self) -> str:
        """One of 'cli', 'env', 'config' or 'default'."""
        return self._resolved[1]

    @property
    def source_description(self) -> str:
        labels = {
            "cli": "CLI option (--file)",
            "env": f"Environment variable ({ENV_VAR_NAME})",
            "config": f"Config file ({self.get_config_path()})",
            "default": "Default",
        }
        return labels[self.source]

    @property
    def default_priority(self) -> str:
        """Priority given to new tasks that don't carry one."""
        env_priority = os.environ.get(PRIORITY_ENV_VAR_NAME)
        if env_priority:
            return env_priority

        config_priority = _read_settings().get("default_priority")
        if isinstance(config_priority, str) and config_priority:
            return config_priority

        return DEFAULT_PRIORITY

    @staticmethod
    def get_config_path() -> Path:
        """config.toml under %APPDATA% on Windows, XDG_CONFIG_HOME elsewhere."""
        base = os.environ.get("APPDATA" if sys.platform == "win32" else "XDG_CONFIG_HOME")
        root = Path(base) if base else Path.home() / ".config"
        return root / "todoline" / "config.toml"

    @classmethod
    def save(cls, todo_file: str) -> None:
        """Store the todo.txt path, keeping a configured default priority."""
        config_path = cls.get_config_path()
        config_path.parent.mkdir(parents=True, exist_ok=True)

        content = f"todo_file = {_toml_string(todo_file)}\n"
        priority = _read_settings().get("default_priority")
        if isinstance(priority, str) and priority:
            content += f"default_priority = {_toml_string(priority)}\n"

        config_path.write_text(content, encoding="utf-8")


def get_todo_file_path(cli_path: str | None = None) -> tuple[Path, str]:
    """Return the resolved todo.txt path and where it came from."""
    config = Config(cli_path)
    return config.todo_file_path, config.source
