import os

from rich.console import Console
from rich.theme import Theme

DEFAULT_THEME = Theme(
    {
        "info": "bold cyan",
        "warn": "bold yellow",
        "error": "bold red",
        "success": "bold green",
    }
)

VERBOSE_ENV = "FETCH_UNROLL_VERBOSE"

_console = Console(theme=DEFAULT_THEME, stderr=True)


def get_console() -> Console:
    return _console


def is_verbose() -> bool:
    return bool(os.environ.get(VERBOSE_ENV))


def log(message: str) -> None:
    if is_verbose():
        _console.print(message)
