"""Stateful scheduling engine exposing the planner's query surface."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date, datetime
from typing import Any

from dayplanner.exceptions import DuplicateTaskError, TaskNotFoundError
from dayplanner.logger import get_logger

from . import analytics
from .allocator import SlotAllocator
from .alternatives import (
    Alternative,
    AlternativeOption,
    AlternativeProposer,
    ExtendDeadline,
    MoveTask,
    ReduceDuration,
    RemoveDependency,
    RescheduleTasks,
)
from .config import SchedulingConfig
from .conflicts import Conflict, find_conflicts
from .constraints import SystemConstraint
from .core import AllocationResult, ScheduledTask, Task

logger = get_logger()


class Scheduler:
    """Owns a task list, the protected windows and the last committed schedule.

    This class coordinates:
    - SlotAllocator (greedy placement over a fresh grid per run)
    - the conflict detector and AlternativeProposer
    - the analytics queries

    It is not safe to call from several threads at once; callers must not
    mutate tasks while schedule() runs. Nothing here touches disk or network:
    persisting the returned schedule is the caller's job.
    """

    def __init__(
        self,
        constraints: Sequence[SystemConstraint] | None = None,
        config: SchedulingConfig | None = None,
        current_time: datetime | None = None,
    ):
        """Initialize the engine.

        Args:
            constraints: Protected windows (empty if omitted)
            config: Optional scheduling configuration
            current_time: Fixed "now"; if None the wall clock is read on every call
        """
        self.constraints: list[SystemConstraint] = list(constraints or [])
        self.config = config or SchedulingConfig()
        self.current_time = current_time
        self._tasks: list[Task] = []
        self._scheduled: list[ScheduledTask] = []
        self.last_result: AllocationResult | None = None

    def now(self) -> datetime:
        """The reference time for scheduling and analytics."""
        return self.current_time or datetime.now()  # noqa: DTZ005 - local wall-clock planner

    @property
    def tasks(self) -> list[Task]:
        """Copy of the current task list."""
        return list(self._tasks)

    @property
    def scheduled_tasks(self) -> list[ScheduledTask]:
        """Copy of the last committed schedule."""
        return list(self._scheduled)

    # Task and constraint management

    def set_system_constraints(self, constraints: Iterable[SystemConstraint]) -> None:
        """Replace the protected windows used by subsequent runs."""
        self.constraints = list(constraints)

    def load_tasks(self, tasks: Iterable[Task]) -> None:
        """Replace the task list; every task is validated first."""
        loaded = list(tasks)
        seen: set[str] = set()
        for task in loaded:
            task.validate()
            if task.id in seen:
                raise DuplicateTaskError(f"Duplicate task ID: {task.id}")
            seen.add(task.id)
        self._tasks = loaded

    def add_task(self, task: Task) -> None:
        """Validate and append a task."""
        task.validate()
        if any(existing.id == task.id for existing in self._tasks):
            raise DuplicateTaskError(f"Duplicate task ID: {task.id}")
        self._tasks.append(task)

    def remove_task(self, task_id: str) -> Task:
        """Remove a task from the list and from the committed schedule."""
        task = self.get_task(task_id)
        self._tasks = [t for t in self._tasks if t.id != task_id]
        self._scheduled = [st for st in self._scheduled if st.id != task_id]
        return task

    def get_task(self, task_id: str) -> Task:
        """Return a task by ID."""
        for task in self._tasks:
            if task.id == task_id:
                return task
        raise TaskNotFoundError(task_id)

    def update_task(self, task_id: str, **changes: Any) -> Task:
        """Replace fields of a task; the result is validated before it is stored."""
        index = self._index_of(task_id)
        updated = self._tasks[index].with_changes(**changes)
        self._tasks[index] = updated
        return updated

    def complete_task(self, task_id: str) -> Task:
        """Mark a task as completed."""
        return self.update_task(task_id, completed=True)

    def _index_of(self, task_id: str) -> int:
        for index, task in enumerate(self._tasks):
            if task.id == task_id:
                return index
        raise TaskNotFoundError(task_id)

    # Scheduling

    def schedule(self) -> list[ScheduledTask]:
        """Run the allocator and replace the committed schedule.

        Returns:
            One ScheduledTask per incomplete task; unplaceable ones have no start
        """
        allocator = SlotAllocator(
            self._tasks, self.constraints, self.now(), config=self.config
        )
        result = allocator.schedule()
        self.last_result = result
        self._scheduled = list(result.scheduled_tasks)

        unscheduled = result.unscheduled
        if unscheduled:
            logger.warning(
                f"{len(unscheduled)} task(s) could not be scheduled: "
                + ", ".join(st.id for st in unscheduled)
            )
        return self.scheduled_tasks

    def restore_schedule(self) -> list[ScheduledTask]:
        """Commit the tasks' persisted scheduled_start values without reallocating.

        Completed tasks are left out, as in schedule(). Nothing guarantees a
        restored schedule is conflict-free.
        """
        self.last_result = None
        self._scheduled = [
            ScheduledTask(task=task, scheduled_start=task.scheduled_start)
            for task in self._tasks
            if not task.completed
        ]
        return self.scheduled_tasks

    def get_scheduled(self, task_id: str) -> ScheduledTask:
        """Return the committed copy of a task."""
        for st in self._scheduled:
            if st.id == task_id:
                return st
        raise TaskNotFoundError(task_id)

    # Queries

    def get_tasks_for_date(self, day: date) -> list[ScheduledTask]:
        return analytics.tasks_for_date(self._scheduled, day)

    def get_tasks_for_week(self, start_day: date) -> dict[str, list[ScheduledTask]]:
        return analytics.tasks_for_week(self._scheduled, start_day)

    def can_move_task(self, task_id: str, new_start: datetime) -> bool:
        """Check deadline, protected hours and overlaps for a proposed start."""
        target = self.get_scheduled(task_id)
        return analytics.can_move(target, new_start, self._scheduled, self.constraints)

    def move_task(self, task_id: str, new_start: datetime) -> bool:
        """Move a committed task if can_move_task() allows it.

        Returns:
            True if the schedule was changed
        """
        if not self.can_move_task(task_id, new_start):
            logger.placements(f"Move of {task_id} to {new_start.isoformat()} rejected")
            return False
        self._scheduled = [
            st.moved_to(new_start) if st.id == task_id else st for st in self._scheduled
        ]
        logger.placements(f"Moved {task_id} to {new_start.isoformat()}")
        return True

    def identify_conflicts(self) -> list[Conflict]:
        return find_conflicts(self._scheduled)

    def propose_alternatives(self, conflicts: Sequence[Conflict]) -> list[Alternative]:
        return AlternativeProposer(self.config).propose(conflicts)

    def apply_option(self, option: AlternativeOption) -> bool:
        """Apply one remediation option through the task-mutation operations.

        Moves go through move_task() and may be refused. Deadline, duration and
        dependency changes update the task list; rerun schedule() to see their
        effect on placements. Rescheduling reruns the allocator.

        Returns:
            True if something changed
        """
        action = option.action
        if isinstance(action, MoveTask):
            return self.move_task(action.task_id, action.new_start)
        if isinstance(action, RescheduleTasks):
            for task_id in action.task_ids:
                self.get_task(task_id)
            self.schedule()
            return True
        if isinstance(action, ExtendDeadline):
            self.update_task(action.task_id, deadline=action.new_deadline)
            return True
        if isinstance(action, ReduceDuration):
            self.update_task(action.task_id, duration=action.new_duration)
            return True
        if isinstance(action, RemoveDependency):
            task = self.get_task(action.task_id)
            remaining = [dep for dep in task.dependencies if dep != action.dependency_id]
            self.update_task(action.task_id, dependencies=remaining)
            return True
        msg = f"Unknown action: {type(action).__name__}"
        raise TypeError(msg)

    # Analytics

    def analyze_time_distribution(self) -> analytics.TimeDistribution:
        return analytics.analyze_time_distribution(self._tasks, self.now())

    def check_overload(self) -> analytics.OverloadReport:
        return analytics.check_overload(self._tasks, self.now(), self.config)

    def identify_delegation_candidates(self) -> list[Task]:
        return analytics.identify_delegation_candidates(self._tasks, self.config)

    def identify_postponement_candidates(self) -> list[Task]:
        return analytics.identify_postponement_candidates(self._tasks, self.now(), self.config)
