"""Task file loading with reference checks and engine construction."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from . import context
from .exceptions import (
    CircularDependencyError,
    DuplicateTaskError,
    MissingReferenceError,
)
from .parser import TaskFileParser
from .scheduler.core import Task
from .scheduler.service import Scheduler
from .unified_config import CONFIG_FILENAME, PlannerConfig, load_planner_config


def _discover_config(
    tasks_path: Path,
    config_path: Path | None = None,
) -> PlannerConfig:
    """Discover the planner config from various locations.

    Search order:
    1. Explicit config_path argument
    2. Global context (set via CLI --config)
    3. tasks file directory / dayplanner_config.yaml
    4. Current directory / dayplanner_config.yaml

    An explicitly named file that does not exist is an error; if nothing is
    found the defaults apply.
    """
    # 1. Explicit argument
    if config_path:
        return load_planner_config(config_path)

    # 2. Global context
    ctx_config = context.get_config_path()
    if ctx_config:
        return load_planner_config(ctx_config)

    # 3. Tasks file directory
    dir_config = Path(tasks_path).parent / CONFIG_FILENAME
    if dir_config.exists():
        return load_planner_config(dir_config)

    # 4. Current directory
    cwd_config = Path(CONFIG_FILENAME)
    if cwd_config.exists():
        return load_planner_config(cwd_config)

    return PlannerConfig()


def load_tasks(path: Path | str) -> list[Task]:
    """Load and validate a task file.

    Args:
        path: Path to the tasks YAML file

    Returns:
        Tasks in file order, with every dependency resolved and no cycles
    """
    tasks = TaskFileParser().parse_file(path)
    validate_tasks(tasks)
    return tasks


def load_scheduler(
    tasks_path: Path | str,
    config_path: Path | None = None,
    *,
    current_time: datetime | None = None,
) -> Scheduler:
    """Build an engine from a task file and the discovered config.

    Args:
        tasks_path: Path to the tasks YAML file
        config_path: Optional explicit path to the config file
        current_time: Fixed "now" for the engine (None reads the wall clock)

    Returns:
        Scheduler with constraints, settings and tasks loaded (not yet scheduled)
    """
    tasks_path = Path(tasks_path)
    config = _discover_config(tasks_path, config_path)
    scheduler = Scheduler(config.constraints, config.scheduler, current_time=current_time)
    scheduler.load_tasks(load_tasks(tasks_path))
    return scheduler


def validate_tasks(tasks: list[Task]) -> None:
    """Validate reference integrity and acyclicity of task dependencies."""
    all_ids: set[str] = set()
    for task in tasks:
        if task.id in all_ids:
            raise DuplicateTaskError(f"Duplicate task ID: {task.id}")
        all_ids.add(task.id)

    for task in tasks:
        for dep_id in task.dependencies:
            if dep_id not in all_ids:
                raise MissingReferenceError(f"Task {task.id} requires unknown task: {dep_id}")

    _check_circular_dependencies({task.id: task for task in tasks})


def _check_circular_dependencies(tasks_by_id: dict[str, Task]) -> None:
    """Check for circular dependencies in all tasks."""
    for task_id in tasks_by_id:
        visited: set[str] = set()
        path: list[str] = []
        if _has_circular_dependency(tasks_by_id, task_id, visited, path):
            cycle = " -> ".join(path[path.index(path[-1]) :])
            raise CircularDependencyError(f"Circular dependency detected: {cycle}")


def _has_circular_dependency(
    tasks_by_id: dict[str, Task],
    task_id: str,
    visited: set[str],
    path: list[str],
) -> bool:
    """Recursively check for circular dependencies.

    On success path holds the route from the starting task, ending with the
    task that closes the cycle.
    """
    if task_id in path:
        path.append(task_id)
        return True

    if task_id in visited:
        return False

    visited.add(task_id)
    path.append(task_id)

    task = tasks_by_id.get(task_id)
    if task:
        for dep_id in task.dependencies:
            if _has_circular_dependency(tasks_by_id, dep_id, visited, path):
                return True

    path.pop()
    return False
