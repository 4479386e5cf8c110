"""Remediation suggestions for detected conflicts.

Suggestions are read-only: nothing here changes a task or the schedule.
Applying one is a separate, explicit call (see Scheduler.apply_option).
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from .config import SchedulingConfig
from .conflicts import Conflict, DeadlineConflict, DependencyConflict, OverlapConflict
from .core import ScheduledTask


class Impact(str, Enum):
    """How disruptive applying a suggestion would be."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ActionType(str, Enum):
    """Kinds of remediation."""

    MOVE_LATER = "move_later"
    MOVE_EARLIER = "move_earlier"
    RESCHEDULE = "reschedule"
    EXTEND_DEADLINE = "extend_deadline"
    REDUCE_DURATION = "reduce_duration"
    REMOVE_DEPENDENCY = "remove_dependency"


IMPACT_BY_ACTION: dict[ActionType, Impact] = {
    ActionType.MOVE_LATER: Impact.LOW,
    ActionType.MOVE_EARLIER: Impact.MEDIUM,
    ActionType.RESCHEDULE: Impact.MEDIUM,
    ActionType.EXTEND_DEADLINE: Impact.HIGH,
    ActionType.REDUCE_DURATION: Impact.HIGH,
    ActionType.REMOVE_DEPENDENCY: Impact.HIGH,
}


@dataclass(frozen=True)
class MoveTask:
    task_id: str
    new_start: datetime


@dataclass(frozen=True)
class RescheduleTasks:
    task_ids: tuple[str, ...]


@dataclass(frozen=True)
class ExtendDeadline:
    task_id: str
    new_deadline: datetime


@dataclass(frozen=True)
class ReduceDuration:
    task_id: str
    new_duration: float


@dataclass(frozen=True)
class RemoveDependency:
    task_id: str
    dependency_id: str


Action = MoveTask | RescheduleTasks | ExtendDeadline | ReduceDuration | RemoveDependency


@dataclass(frozen=True)
class AlternativeOption:
    """One suggested remediation."""

    description: str
    action_type: ActionType
    action: Action

    @property
    def impact(self) -> Impact:
        return IMPACT_BY_ACTION[self.action_type]


@dataclass(frozen=True)
class Alternative:
    """All suggestions for a single conflict."""

    conflict: Conflict
    options: tuple[AlternativeOption, ...]

    @property
    def description(self) -> str:
        return self.conflict.description


def _end_of(task: ScheduledTask) -> datetime:
    end = task.end
    assert end is not None, f"{task.id} is not scheduled"
    return end


class AlternativeProposer:
    """Maps conflicts to a fixed menu of suggestions."""

    def __init__(self, config: SchedulingConfig | None = None):
        self.config = config or SchedulingConfig()
        self.buffer = timedelta(minutes=self.config.buffer_minutes)

    def propose(self, conflicts: Sequence[Conflict]) -> list[Alternative]:
        """Return one Alternative per conflict, in the same order."""
        return [self.propose_one(conflict) for conflict in conflicts]

    def propose_one(self, conflict: Conflict) -> Alternative:
        """Return the suggestions for a single conflict."""
        if isinstance(conflict, OverlapConflict):
            options = self._overlap_options(conflict)
        elif isinstance(conflict, DeadlineConflict):
            options = self._deadline_options(conflict)
        elif isinstance(conflict, DependencyConflict):
            options = self._dependency_options(conflict)
        else:
            msg = f"Unknown conflict type: {type(conflict).__name__}"
            raise TypeError(msg)
        return Alternative(conflict=conflict, options=tuple(options))

    def _overlap_options(self, conflict: OverlapConflict) -> list[AlternativeOption]:
        first, second = conflict.first, conflict.second
        return [
            AlternativeOption(
                description=f'Move "{first.title}" after "{second.title}"',
                action_type=ActionType.MOVE_LATER,
                action=MoveTask(first.id, _end_of(second) + self.buffer),
            ),
            AlternativeOption(
                description=f'Move "{second.title}" after "{first.title}"',
                action_type=ActionType.MOVE_LATER,
                action=MoveTask(second.id, _end_of(first) + self.buffer),
            ),
            AlternativeOption(
                description="Reschedule both tasks",
                action_type=ActionType.RESCHEDULE,
                action=RescheduleTasks((first.id, second.id)),
            ),
        ]

    def _deadline_options(self, conflict: DeadlineConflict) -> list[AlternativeOption]:
        task = conflict.task
        duration = timedelta(hours=task.duration)
        extension = timedelta(hours=self.config.deadline_extension_hours)
        reduced = max(
            self.config.min_duration_hours, task.duration * self.config.duration_reduction_factor
        )
        return [
            AlternativeOption(
                description=f'Start "{task.title}" early enough to meet its deadline',
                action_type=ActionType.MOVE_EARLIER,
                action=MoveTask(task.id, task.deadline - duration),
            ),
            AlternativeOption(
                description=f'Extend the deadline of "{task.title}"',
                action_type=ActionType.EXTEND_DEADLINE,
                action=ExtendDeadline(task.id, _end_of(task) + extension),
            ),
            AlternativeOption(
                description=f'Reduce the duration of "{task.title}" to {reduced:g}h',
                action_type=ActionType.REDUCE_DURATION,
                action=ReduceDuration(task.id, reduced),
            ),
        ]

    def _dependency_options(self, conflict: DependencyConflict) -> list[AlternativeOption]:
        task, dependency = conflict.task, conflict.depends_on
        assert task.scheduled_start is not None
        dependency_start = (
            task.scheduled_start - self.buffer - timedelta(hours=dependency.duration)
        )
        return [
            AlternativeOption(
                description=f'Move "{task.title}" after "{dependency.title}"',
                action_type=ActionType.MOVE_LATER,
                action=MoveTask(task.id, _end_of(dependency) + self.buffer),
            ),
            AlternativeOption(
                description=f'Remove the dependency on "{dependency.title}"',
                action_type=ActionType.REMOVE_DEPENDENCY,
                action=RemoveDependency(task.id, dependency.id),
            ),
            AlternativeOption(
                description=f'Finish "{dependency.title}" before "{task.title}" starts',
                action_type=ActionType.MOVE_EARLIER,
                action=MoveTask(dependency.id, dependency_start),
            ),
        ]


def propose_alternatives(
    conflicts: Sequence[Conflict], config: SchedulingConfig | None = None
) -> list[Alternative]:
    """Convenience wrapper around AlternativeProposer.propose()."""
    return AlternativeProposer(config).propose(conflicts)
