"""Read-only views over the committed schedule and the raw task list."""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from .config import SchedulingConfig
from .constraints import SystemConstraint, is_slot_protected
from .core import MAX_PRIORITY, MIN_PRIORITY, Category, Energy, ScheduledTask, Task
from .grid import date_key

DAYS_PER_WEEK = 7
ONE_HOUR = timedelta(hours=1)


def tasks_for_date(scheduled_tasks: Iterable[ScheduledTask], day: date) -> list[ScheduledTask]:
    """Scheduled tasks starting on a given day, earliest first."""
    key = date_key(day)
    on_day = [
        st
        for st in scheduled_tasks
        if st.scheduled_start is not None and date_key(st.scheduled_start.date()) == key
    ]
    return sorted(on_day, key=lambda st: st.scheduled_start or datetime.min)


def tasks_for_week(
    scheduled_tasks: Sequence[ScheduledTask], start_day: date
) -> dict[str, list[ScheduledTask]]:
    """Seven consecutive days from start_day, each mapped to its tasks."""
    return {
        date_key(start_day + timedelta(days=offset)): tasks_for_date(
            scheduled_tasks, start_day + timedelta(days=offset)
        )
        for offset in range(DAYS_PER_WEEK)
    }


def can_move(
    target: ScheduledTask,
    new_start: datetime,
    scheduled_tasks: Iterable[ScheduledTask],
    constraints: Sequence[SystemConstraint],
) -> bool:
    """Check whether a task could start at new_start.

    The move is allowed if the task still meets its deadline, no hour it would
    touch is protected, and it would not overlap another scheduled task.
    Dependency order is not checked.
    """
    new_end = new_start + timedelta(hours=target.duration)
    if new_end > target.deadline:
        return False

    slot_start = new_start.replace(minute=0, second=0, microsecond=0)
    while slot_start < new_end:
        if is_slot_protected(constraints, slot_start.date(), slot_start.hour):
            return False
        slot_start += ONE_HOUR

    moved = target.moved_to(new_start)
    return not any(
        other.id != target.id and other.scheduled_start is not None and moved.overlaps(other)
        for other in scheduled_tasks
    )


def _category_of(task: Task) -> Category:
    try:
        return Category(task.category)
    except ValueError:
        return Category.OTHER


@dataclass
class TimeDistribution:
    """Hours of work broken down several ways."""

    by_category: dict[Category, float] = field(
        default_factory=lambda: dict.fromkeys(Category, 0.0)
    )
    by_priority: dict[int, float] = field(
        default_factory=lambda: dict.fromkeys(range(MIN_PRIORITY, MAX_PRIORITY + 1), 0.0)
    )
    by_energy: dict[Energy, float] = field(default_factory=lambda: dict.fromkeys(Energy, 0.0))
    completed: float = 0.0
    overdue: float = 0.0
    upcoming: float = 0.0
    total_scheduled: float = 0.0
    total_unscheduled: float = 0.0


def analyze_time_distribution(tasks: Iterable[Task], now: datetime) -> TimeDistribution:
    """Sum task durations by category, priority, energy and status.

    This reduces over the raw task list; "scheduled" means the task carries a
    persisted scheduled_start.
    """
    stats = TimeDistribution()
    for task in tasks:
        stats.by_category[_category_of(task)] += task.duration
        stats.by_priority[task.priority] = stats.by_priority.get(task.priority, 0.0) + task.duration
        stats.by_energy[task.energy] += task.duration

        if task.completed:
            stats.completed += task.duration
        elif task.is_overdue(now):
            stats.overdue += task.duration
        else:
            stats.upcoming += task.duration

        if task.scheduled_start is not None:
            stats.total_scheduled += task.duration
        else:
            stats.total_unscheduled += task.duration
    return stats


@dataclass(frozen=True)
class OverloadReport:
    """Result of the short-term workload check."""

    is_overloaded: bool
    urgent_tasks_count: int
    high_priority_count: int
    total_hours_required: float
    available_hours: float
    overload_percentage: int


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def check_overload(
    tasks: Iterable[Task], now: datetime, config: SchedulingConfig | None = None
) -> OverloadReport:
    """Compare the work due soon against a fixed weekly capacity.

    Incomplete tasks due within the lookahead window (overdue ones included)
    count. The week is overloaded when their hours strictly exceed the
    available hours, or when too many of them are high priority.
    """
    settings = (config or SchedulingConfig()).overload
    horizon = now + timedelta(days=settings.lookahead_days)

    urgent = [task for task in tasks if not task.completed and task.deadline <= horizon]
    high_priority_count = sum(
        1 for task in urgent if task.priority >= settings.high_priority_threshold
    )
    total_hours = sum(task.duration for task in urgent)
    available = settings.available_hours

    return OverloadReport(
        is_overloaded=total_hours > available
        or high_priority_count > settings.max_high_priority_tasks,
        urgent_tasks_count=len(urgent),
        high_priority_count=high_priority_count,
        total_hours_required=total_hours,
        available_hours=available,
        overload_percentage=max(0, _round_half_up((total_hours / available - 1) * 100)),
    )


def _union_by_id(*groups: Iterable[Task]) -> list[Task]:
    """Concatenate groups, keeping the first occurrence of each task ID."""
    seen: dict[str, Task] = {}
    for group in groups:
        for task in group:
            seen.setdefault(task.id, task)
    return list(seen.values())


def _is_administrative(task: Task, keywords: Iterable[str]) -> bool:
    if _category_of(task) == Category.ADMINISTRATIVE:
        return True
    text = f"{task.title}\n{task.description}".lower()
    return any(keyword.lower() in text for keyword in keywords)


def identify_delegation_candidates(
    tasks: Iterable[Task], config: SchedulingConfig | None = None
) -> list[Task]:
    """Incomplete tasks that someone else could plausibly take over.

    A task qualifies if it is low priority, administrative, or has no
    dependencies. Result is sorted by priority, lowest first.
    """
    settings = (config or SchedulingConfig()).candidates
    pending = [task for task in tasks if not task.completed]

    candidates = _union_by_id(
        (task for task in pending if task.priority <= settings.low_priority_max),
        (task for task in pending if _is_administrative(task, settings.administrative_keywords)),
        (task for task in pending if not task.dependencies),
    )
    return sorted(candidates, key=lambda task: task.priority)


def identify_postponement_candidates(
    tasks: Iterable[Task], now: datetime, config: SchedulingConfig | None = None
) -> list[Task]:
    """Incomplete tasks that could be pushed back.

    A task qualifies if it is low priority, due more than far_deadline_days
    whole days from now, or nothing incomplete depends on it. Result is sorted
    by priority (lowest first), then deadline (latest first).
    """
    settings = (config or SchedulingConfig()).candidates
    pending = [task for task in tasks if not task.completed]
    blocking_ids = {dep_id for task in pending for dep_id in task.dependencies}

    candidates = _union_by_id(
        (task for task in pending if task.priority <= settings.low_priority_max),
        (
            task
            for task in pending
            if (task.deadline - now) // timedelta(days=1) > settings.far_deadline_days
        ),
        (task for task in pending if task.id not in blocking_ids),
    )
    # Two stable passes: deadline descending, then priority ascending
    candidates.sort(key=lambda task: task.deadline, reverse=True)
    return sorted(candidates, key=lambda task: task.priority)
