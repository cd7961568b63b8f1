"""Helpers shared by the command modules."""

from datetime import datetime
from typing import NoReturn

import typer
from rich.console import Console

from flashcount.domain.errors import ConfigurationError


def parse_now(value: str | None) -> datetime:
    """Parse a --now option (ISO-8601), defaulting to the current local time.

    Raises:
        ConfigurationError: If the value is not an ISO-8601 date or datetime.
    """
    if value is None:
        return datetime.now()
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise ConfigurationError(f"--now must be an ISO-8601 date or datetime, got {value!r}") from None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def format_percent(value: float | None) -> str:
    """Format a fraction as a signed percentage, or a dash when there is no prior data."""
    if value is None:
        return "[dim]-[/dim]"
    return f"{value * 100:+.0f}%"


def exit_with_error(console: Console, message: str) -> NoReturn:
    """Print an error in the house style and exit with status 1."""
    console.print(f"[red]{message}[/red]", style="bold")
    raise typer.Exit(code=1)
