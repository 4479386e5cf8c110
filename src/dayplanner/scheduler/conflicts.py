"""Detection of overlaps, missed deadlines and dependency-order violations."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar

from dayplanner.logger import get_logger

from .core import ScheduledTask

logger = get_logger()


class ConflictType(str, Enum):
    """Kinds of conflict the detector reports."""

    OVERLAP = "overlap"
    DEADLINE = "deadline"
    DEPENDENCY = "dependency"


@dataclass(frozen=True)
class OverlapConflict:
    """Two scheduled tasks whose intervals intersect."""

    type: ClassVar[ConflictType] = ConflictType.OVERLAP

    first: ScheduledTask
    second: ScheduledTask

    @property
    def description(self) -> str:
        return f'"{self.first.title}" and "{self.second.title}" overlap'

    @property
    def task_ids(self) -> tuple[str, ...]:
        return (self.first.id, self.second.id)


@dataclass(frozen=True)
class DeadlineConflict:
    """A task scheduled to finish after its deadline."""

    type: ClassVar[ConflictType] = ConflictType.DEADLINE

    task: ScheduledTask

    @property
    def description(self) -> str:
        return f'"{self.task.title}" is scheduled to finish after its deadline'

    @property
    def task_ids(self) -> tuple[str, ...]:
        return (self.task.id,)


@dataclass(frozen=True)
class DependencyConflict:
    """A task scheduled to start before one of its dependencies ends."""

    type: ClassVar[ConflictType] = ConflictType.DEPENDENCY

    task: ScheduledTask
    depends_on: ScheduledTask

    @property
    def description(self) -> str:
        return (
            f'"{self.task.title}" starts before "{self.depends_on.title}", '
            "which it depends on, is finished"
        )

    @property
    def task_ids(self) -> tuple[str, ...]:
        return (self.task.id, self.depends_on.id)


Conflict = OverlapConflict | DeadlineConflict | DependencyConflict


def find_conflicts(scheduled_tasks: Sequence[ScheduledTask]) -> list[Conflict]:
    """Find every conflict in a committed schedule.

    Unscheduled tasks are ignored. For each scheduled task, in list order, this
    reports overlaps with every later task, then a missed deadline, then
    dependency violations. Dependencies on tasks that are missing from the
    list, completed or unscheduled are not checked.

    Args:
        scheduled_tasks: The committed schedule

    Returns:
        Conflicts in detection order
    """
    conflicts: list[Conflict] = []
    by_id = {st.id: st for st in scheduled_tasks}

    for i, current in enumerate(scheduled_tasks):
        if current.scheduled_start is None:
            continue

        for other in scheduled_tasks[i + 1 :]:
            if other.scheduled_start is not None and current.overlaps(other):
                conflicts.append(OverlapConflict(first=current, second=other))

        end = current.end
        assert end is not None
        if end > current.deadline:
            conflicts.append(DeadlineConflict(task=current))

        for dep_id in current.dependencies:
            dependency = by_id.get(dep_id)
            if dependency is None or dependency.completed or dependency.end is None:
                continue
            if current.scheduled_start < dependency.end:
                conflicts.append(DependencyConflict(task=current, depends_on=dependency))

    if conflicts:
        logger.debug(
            f"Found {len(conflicts)} conflicts: "
            + ", ".join(f"{c.type.value}{list(c.task_ids)}" for c in conflicts)
        )
    return conflicts
