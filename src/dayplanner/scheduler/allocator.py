"""Greedy hourly slot allocation."""

from __future__ import annotations

import math
from collections.abc import Sequence
from datetime import datetime

from dayplanner.logger import checks_enabled, get_logger

from .config import FallbackMode, SchedulingConfig
from .constraints import SystemConstraint
from .core import AllocationResult, Placement, ScheduledTask, Task
from .grid import TimeSlotGrid, date_key
from .ranking import rank_tasks

logger = get_logger()


class SlotAllocator:
    """Assigns each pending task a start hour, one task at a time.

    Tasks are processed in rank order. For each task the allocator tries, and
    stops at the first success:

    1. Candidate days (up to the deadline day) ordered by how many of the
       task's energy-matched hours are still free; on each day, a consecutive
       run starting in the task's time-preference hours, then a consecutive
       run starting at any hour of the day.
    2. The first single free hour in chronological order (unless the fallback
       mode is strict).
    3. Otherwise the task stays unscheduled.

    Energy and time preference only change the search order; they never stop a
    task from being placed. Deadlines only limit which days are candidates.
    """

    def __init__(
        self,
        tasks: Sequence[Task],
        constraints: Sequence[SystemConstraint],
        current_time: datetime,
        *,
        config: SchedulingConfig | None = None,
    ):
        """Initialize the allocator.

        Args:
            tasks: Tasks to schedule (completed ones are skipped)
            constraints: Protected windows
            current_time: Reference "now"; the horizon starts on its date
            config: Optional scheduling configuration
        """
        self.tasks = list(tasks)
        self.constraints = list(constraints)
        self.current_time = current_time
        self.config = config or SchedulingConfig()

    def schedule(self) -> AllocationResult:
        """Run one allocation pass over a freshly generated grid.

        Returns:
            AllocationResult with one ScheduledTask per pending task, in rank order
        """
        pending = [task for task in self.tasks if not task.completed]
        ranked = rank_tasks(pending)
        grid = TimeSlotGrid.generate(
            self.constraints,
            self.current_time.date(),
            horizon_days=self.config.horizon_days,
            start_hour=self.config.day_start_hour,
            end_hour=self.config.day_end_hour,
        )

        logger.placements(
            f"Scheduling {len(ranked)} tasks "
            f"({len(self.tasks) - len(pending)} completed skipped) "
            f"from {self.current_time.date().isoformat()}"
        )

        results = [self._place_task(task, grid) for task in ranked]

        counts: dict[str, int] = {placement.value: 0 for placement in Placement}
        counts["unscheduled"] = 0
        for result in results:
            counts[result.placement.value if result.placement else "unscheduled"] += 1

        return AllocationResult(
            scheduled_tasks=results,
            metadata={
                "horizon_start": date_key(self.current_time.date()),
                "horizon_days": self.config.horizon_days,
                "fallback": self.config.fallback.value,
                "placements": counts,
            },
        )

    def _candidate_days(self, task: Task, grid: TimeSlotGrid) -> list[str]:
        """Grid days on or before the task's deadline day, chronologically."""
        deadline_key = date_key(task.deadline.date())
        return [key for key in grid.date_keys() if key <= deadline_key]

    def _rank_days_by_energy(
        self, task: Task, grid: TimeSlotGrid, days: list[str]
    ) -> list[str]:
        """Order days by number of free energy-matched hours, most first (stable)."""
        energy_hours = self.config.hours_for_energy(task.energy)
        scores = {day: grid.count_available(day, energy_hours) for day in days}
        if checks_enabled():
            logger.checks(
                f"    Energy scores for {task.id} ({task.energy.value}): "
                + ", ".join(f"{day}={score}" for day, score in scores.items())
            )
        return sorted(days, key=lambda day: -scores[day])

    def _preferred_starts(self, task: Task) -> list[int]:
        """Time-preference hours, energy-matched ones first, then the rest ascending."""
        preferred = self.config.hours_for_preference(task.time_preference)
        energy_hours = set(self.config.hours_for_energy(task.energy))
        matched = [hour for hour in preferred if hour in energy_hours]
        rest = [hour for hour in preferred if hour not in energy_hours]
        return sorted(matched) + sorted(rest)

    def _place_task(self, task: Task, grid: TimeSlotGrid) -> ScheduledTask:
        """Find and commit a placement for one task."""
        slots_needed = math.ceil(task.duration)
        candidate_days = self._candidate_days(task, grid)
        preferred_starts = self._preferred_starts(task)
        all_hours = grid.hours()

        logger.checks(
            f"  Placing {task.id} (priority={task.priority}, {task.duration}h -> "
            f"{slots_needed} slots, deadline={task.deadline.isoformat()}, "
            f"{len(candidate_days)} candidate days)"
        )

        for day in self._rank_days_by_energy(task, grid, candidate_days):
            start = grid.find_consecutive(day, preferred_starts, slots_needed)
            if start is not None:
                return self._commit(task, grid, day, start, slots_needed, Placement.PREFERRED)

            start = grid.find_consecutive(day, all_hours, slots_needed)
            if start is not None:
                return self._commit(task, grid, day, start, slots_needed, Placement.ANY_HOUR)

            logger.checks(f"    {day}: no run of {slots_needed} free hours")

        if self.config.fallback == FallbackMode.SINGLE_SLOT:
            for day in candidate_days:
                free = grid.available_hours(day)
                if free:
                    # Only the first hour is reserved, whatever the duration
                    return self._commit(task, grid, day, free[0], 1, Placement.SINGLE_SLOT)

        logger.placements(f"  {task.id}: no free slot before its deadline, left unscheduled")
        return ScheduledTask(task=task, scheduled_start=None, placement=None)

    def _commit(  # noqa: PLR0913 - all parts of one placement
        self,
        task: Task,
        grid: TimeSlotGrid,
        day: str,
        start_hour: int,
        slots: int,
        placement: Placement,
    ) -> ScheduledTask:
        start = grid.occupy(day, start_hour, slots, task.id)
        logger.placements(
            f"  {task.id}: {day} {start_hour}:00-{start_hour + slots}:00 ({placement.value})"
        )
        return ScheduledTask(task=task, scheduled_start=start, placement=placement)
