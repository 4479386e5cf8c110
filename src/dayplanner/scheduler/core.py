"""Core dataclasses for the scheduling system."""

from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from dayplanner.exceptions import ValidationError

MIN_PRIORITY = 1
MAX_PRIORITY = 5


class Energy(str, Enum):
    """How much focus a task needs; biases which hours are tried first."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TimePreference(str, Enum):
    """Part of the day a task would rather run in."""

    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    NONE = "none"


class Category(str, Enum):
    """Task category, used by analytics and calendar export."""

    PROFESSIONAL = "professional"
    PERSONAL = "personal"
    TRAINING = "training"
    ADMINISTRATIVE = "administrative"
    OTHER = "other"


class Placement(str, Enum):
    """Which step of the allocator's fallback cascade placed a task."""

    PREFERRED = "preferred"  # Consecutive run starting in the time-preference hours
    ANY_HOUR = "any_hour"  # Consecutive run anywhere in the day window
    SINGLE_SLOT = "single_slot"  # First free hour, remaining duration not reserved


def _hours(duration: float) -> timedelta:
    return timedelta(hours=duration)


@dataclass(frozen=True)
class Task:
    """A task to be scheduled.

    Instances are owned by the caller and never mutated by the engine; use
    dataclasses.replace() (or Task.with_changes()) to derive updated copies.
    """

    id: str
    title: str
    duration: float  # Hours; the allocator reserves ceil(duration) hourly slots
    deadline: datetime
    priority: int = 3  # 1..5, 5 is most important
    energy: Energy = Energy.MEDIUM
    time_preference: TimePreference = TimePreference.NONE
    dependencies: tuple[str, ...] = ()  # IDs that must complete before this task starts
    category: Category = Category.PROFESSIONAL
    description: str = ""
    completed: bool = False
    scheduled_start: datetime | None = None  # Last persisted start, informational only

    def validate(self) -> None:
        """Check the task invariants.

        Raises:
            ValidationError: Listing every violated invariant
        """
        problems: list[str] = []
        if not self.id or not str(self.id).strip():
            problems.append("id must not be empty")
        if not isinstance(self.title, str) or not self.title.strip():
            problems.append("title must not be empty")
        if isinstance(self.duration, bool) or not isinstance(self.duration, (int, float)):
            problems.append("duration must be a number of hours")
        elif not math.isfinite(self.duration) or self.duration <= 0:
            problems.append(f"duration must be positive (got {self.duration})")
        if not isinstance(self.deadline, datetime):
            problems.append("deadline is required")
        elif self.deadline.tzinfo is not None:
            problems.append("deadline must be naive local time")
        if self.scheduled_start is not None and (
            not isinstance(self.scheduled_start, datetime)
            or self.scheduled_start.tzinfo is not None
        ):
            problems.append("scheduled_start must be a naive local datetime")
        if (
            isinstance(self.priority, bool)
            or not isinstance(self.priority, int)
            or not MIN_PRIORITY <= self.priority <= MAX_PRIORITY
        ):
            problems.append(
                f"priority must be an integer in {MIN_PRIORITY}..{MAX_PRIORITY} "
                f"(got {self.priority!r})"
            )
        if not isinstance(self.energy, Energy):
            problems.append(f"energy must be one of {[e.value for e in Energy]}")
        if not isinstance(self.time_preference, TimePreference):
            problems.append(
                f"time_preference must be one of {[p.value for p in TimePreference]}"
            )
        if self.id in self.dependencies:
            problems.append("task cannot depend on itself")

        if problems:
            raise ValidationError(f"Invalid task '{self.id}': " + "; ".join(problems))

    def with_changes(self, **changes: Any) -> Task:
        """Return a validated copy with the given fields replaced."""
        if "dependencies" in changes:
            changes["dependencies"] = tuple(dict.fromkeys(changes["dependencies"]))
        updated = dataclasses.replace(self, **changes)
        updated.validate()
        return updated

    def end_time(self) -> datetime | None:
        """Return scheduled_start + duration, or None if not scheduled."""
        if self.scheduled_start is None:
            return None
        return self.scheduled_start + _hours(self.duration)

    def is_overdue(self, now: datetime) -> bool:
        """Return True if the task is incomplete and its deadline has passed."""
        return not self.completed and now > self.deadline


@dataclass(frozen=True)
class ScheduledTask:
    """Immutable snapshot of a task with the start time chosen by one scheduling run."""

    task: Task
    scheduled_start: datetime | None
    placement: Placement | None = None

    @property
    def id(self) -> str:
        return self.task.id

    @property
    def title(self) -> str:
        return self.task.title

    @property
    def duration(self) -> float:
        return self.task.duration

    @property
    def deadline(self) -> datetime:
        return self.task.deadline

    @property
    def priority(self) -> int:
        return self.task.priority

    @property
    def dependencies(self) -> tuple[str, ...]:
        return self.task.dependencies

    @property
    def completed(self) -> bool:
        return self.task.completed

    @property
    def is_scheduled(self) -> bool:
        return self.scheduled_start is not None

    @property
    def end(self) -> datetime | None:
        """Exclusive end of the scheduled interval, or None if unscheduled."""
        if self.scheduled_start is None:
            return None
        return self.scheduled_start + _hours(self.task.duration)

    def overlaps(self, other: ScheduledTask) -> bool:
        """Return True if both are scheduled and their [start, end) intervals intersect."""
        if self.scheduled_start is None or other.scheduled_start is None:
            return False
        assert self.end is not None and other.end is not None
        return self.scheduled_start < other.end and other.scheduled_start < self.end

    def moved_to(self, new_start: datetime) -> ScheduledTask:
        """Return a copy starting at new_start (placement is kept for provenance)."""
        return ScheduledTask(task=self.task, scheduled_start=new_start, placement=self.placement)


def _default_metadata() -> dict[str, Any]:
    return {}


@dataclass
class AllocationResult:
    """Result of one allocator run."""

    scheduled_tasks: list[ScheduledTask]
    metadata: dict[str, Any] = field(default_factory=_default_metadata)

    @property
    def unscheduled(self) -> list[ScheduledTask]:
        """Tasks the allocator could not place anywhere in the horizon."""
        return [st for st in self.scheduled_tasks if st.scheduled_start is None]
