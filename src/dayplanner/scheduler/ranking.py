"""Processing order for the greedy allocator."""

from collections.abc import Iterable

from .core import Task


def rank_tasks(tasks: Iterable[Task]) -> list[Task]:
    """Order tasks by priority (highest first), then deadline (earliest first).

    The sort is stable: tasks equal on both keys keep their input order.
    """
    return sorted(tasks, key=lambda task: (-task.priority, task.deadline))
