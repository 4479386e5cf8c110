"""Pytest configuration and fixtures for dayplanner tests."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from dayplanner import context
from dayplanner.logger import reset_logger
from dayplanner.scheduler.core import Category, Energy, ScheduledTask, Task, TimePreference

# Monday 2025-01-06, one hour before the day window opens
NOW = datetime(2025, 1, 6, 7, 0)


def make_task(  # noqa: PLR0913 - mirrors the Task fields tests care about
    task_id: str = "t1",
    *,
    title: str | None = None,
    duration: float = 1.0,
    deadline: datetime | None = None,
    priority: int = 3,
    energy: Energy = Energy.MEDIUM,
    time_preference: TimePreference = TimePreference.NONE,
    dependencies: tuple[str, ...] = (),
    category: Category = Category.PROFESSIONAL,
    description: str = "",
    completed: bool = False,
    scheduled_start: datetime | None = None,
) -> Task:
    """Create a Task with test-friendly defaults (deadline one week after NOW)."""
    return Task(
        id=task_id,
        title=title or f"Task {task_id}",
        duration=duration,
        deadline=deadline or NOW + timedelta(days=7),
        priority=priority,
        energy=energy,
        time_preference=time_preference,
        dependencies=dependencies,
        category=category,
        description=description,
        completed=completed,
        scheduled_start=scheduled_start,
    )


def scheduled(task: Task, start: datetime | None) -> ScheduledTask:
    """Wrap a task in a ScheduledTask starting at start."""
    return ScheduledTask(task=task, scheduled_start=start)


def at(hour: int, minute: int = 0, *, day_offset: int = 0) -> datetime:
    """A time on NOW's date (or day_offset days later)."""
    return (NOW + timedelta(days=day_offset)).replace(hour=hour, minute=minute)


@pytest.fixture
def now() -> datetime:
    """The fixed reference time used across tests."""
    return NOW


@pytest.fixture(autouse=True)
def reset_global_state() -> Iterator[None]:
    """Silence the logger and clear CLI context between tests."""
    reset_logger()
    context.set_config_path(None)
    context.set_current_time(None)
    yield
    reset_logger()
    context.set_config_path(None)
    context.set_current_time(None)


@pytest.fixture
def write_yaml(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing YAML text to a file under tmp_path."""

    def _write(content: str, name: str = "tasks.yaml") -> Path:
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write
