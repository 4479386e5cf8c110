"""Process-wide CLI state: config location and the pinned clock."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path


class _Context:
    """Holds options set by the CLI callback for the commands that follow."""

    def __init__(self) -> None:
        self.config_path: Path | None = None
        self.current_time: datetime | None = None


_context = _Context()


def get_config_path() -> Path | None:
    """Return the config path given with --config, if any."""
    return _context.config_path


def set_config_path(path: Path | None) -> None:
    """Remember the config path given with --config."""
    _context.config_path = path


def get_current_time() -> datetime:
    """Return the pinned clock (--now) or the wall clock."""
    if _context.current_time is not None:
        return _context.current_time
    return datetime.now()  # noqa: DTZ005 - planner works in local wall-clock time


def set_current_time(value: datetime | None) -> None:
    """Pin the clock used by scheduling commands; None restores the wall clock."""
    _context.current_time = value
