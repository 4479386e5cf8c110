"""Tests for the greedy slot allocator."""

import math
from datetime import datetime, timedelta

import pytest

from dayplanner.scheduler.allocator import SlotAllocator
from dayplanner.scheduler.config import FallbackMode, SchedulingConfig
from dayplanner.scheduler.conflicts import OverlapConflict, find_conflicts
from dayplanner.scheduler.constraints import SystemConstraint, default_constraints
from dayplanner.scheduler.core import (
    Energy,
    Placement,
    ScheduledTask,
    Task,
    TimePreference,
)
from tests.conftest import NOW, at, make_task

LUNCH = SystemConstraint(name="Lunch", start_hour=13, end_hour=14)


def run(
    tasks: list[Task],
    constraints: list[SystemConstraint] | None = None,
    config: SchedulingConfig | None = None,
) -> list[ScheduledTask]:
    return SlotAllocator(tasks, constraints or [], NOW, config=config).schedule().scheduled_tasks


def by_id(result: list[ScheduledTask]) -> dict[str, ScheduledTask]:
    return {st.id: st for st in result}


def occupied_slots(st: ScheduledTask) -> set[tuple[str, int]]:
    assert st.scheduled_start is not None
    start = st.scheduled_start
    return {
        (start.date().isoformat(), start.hour + i) for i in range(math.ceil(st.duration))
    }


class TestPreferredPlacement:
    """Energy and time preference drive the search order."""

    def test_morning_high_energy_two_hours(self) -> None:
        """A 2h high-energy morning task starts at 9:00 on the first day."""
        task = make_task(
            "focus",
            duration=2,
            energy=Energy.HIGH,
            time_preference=TimePreference.MORNING,
            deadline=NOW + timedelta(days=3),
        )
        (placed,) = run([task])

        assert placed.scheduled_start == at(9)
        assert placed.placement == Placement.PREFERRED

    @pytest.mark.parametrize(
        ("energy", "hour"),
        [(Energy.HIGH, 9), (Energy.MEDIUM, 11), (Energy.LOW, 8)],
    )
    def test_energy_hours_tried_first(self, energy: Energy, hour: int) -> None:
        """Without a time preference, the first energy-matched hour wins."""
        (placed,) = run([make_task(energy=energy)])
        assert placed.scheduled_start == at(hour)

    def test_evening_preference(self) -> None:
        """No energy-matched evening hours: the evening hours are tried in order."""
        task = make_task(energy=Energy.HIGH, time_preference=TimePreference.EVENING)
        (placed,) = run([task])
        assert placed.scheduled_start == at(18)
        assert placed.placement == Placement.PREFERRED

    def test_run_may_extend_past_preference_window(self) -> None:
        """An evening task longer than the evening starts in it and runs to the day end."""
        task = make_task(duration=2, time_preference=TimePreference.EVENING)
        (placed,) = run([task])
        assert placed.scheduled_start == at(18)

    def test_falls_back_to_any_hour(self) -> None:
        """When no preferred start fits, any hour of the same day is used."""
        task = make_task(duration=3, time_preference=TimePreference.EVENING)
        (placed,) = run([task])
        assert placed.scheduled_start == at(8)
        assert placed.placement == Placement.ANY_HOUR

    def test_day_with_most_free_energy_hours_first(self) -> None:
        """Monday's meeting blocks high-energy hours, so Tuesday is tried first."""
        task = make_task(
            duration=2,
            energy=Energy.HIGH,
            time_preference=TimePreference.MORNING,
            deadline=NOW + timedelta(days=3),
        )
        (placed,) = run([task], default_constraints())
        assert placed.scheduled_start == at(9, day_offset=1)

    def test_fractional_duration_rounds_up(self) -> None:
        """1.5 hours reserves two slots."""
        first = make_task("first", duration=1.5, energy=Energy.LOW, priority=5)
        second = make_task("second", duration=1, energy=Energy.LOW, priority=4)
        result = by_id(run([first, second]))
        assert result["first"].scheduled_start == at(8)
        assert occupied_slots(result["first"]) == {("2025-01-06", 8), ("2025-01-06", 9)}
        assert not occupied_slots(result["second"]) & occupied_slots(result["first"])


class TestPriorityOrder:
    """Higher-ranked tasks claim slots first."""

    def test_contested_slot_goes_to_higher_priority(self) -> None:
        """The higher-priority task gets 9:00; the other lands on another day."""
        deadline = NOW + timedelta(days=3)
        morning = {"energy": Energy.HIGH, "time_preference": TimePreference.MORNING}
        high = make_task("high", priority=5, deadline=deadline, **morning)
        low = make_task("low", priority=2, deadline=deadline, **morning)

        result = run([low, high])

        assert [st.id for st in result] == ["high", "low"]
        placed = by_id(result)
        assert placed["high"].scheduled_start == at(9)
        # Monday now has fewer free high-energy hours than Tuesday
        assert placed["low"].scheduled_start == at(9, day_offset=1)

    def test_lower_priority_unscheduled_when_horizon_full(self) -> None:
        """With a single slot in the horizon, the lower-priority task is left out."""
        config = SchedulingConfig(horizon_days=1, day_start_hour=9, day_end_hour=10)
        high = make_task("high", priority=5)
        low = make_task("low", priority=2)

        placed = by_id(run([low, high], config=config))

        assert placed["high"].scheduled_start == at(9)
        assert placed["low"].scheduled_start is None
        assert placed["low"].placement is None


class TestConstraints:
    """Protected hours are never part of a consecutive run."""

    def test_lunch_splits_morning_run(self) -> None:
        """A 3h morning task cannot start at 11 or 12 across lunch, so it starts at 8."""
        task = make_task(duration=3, time_preference=TimePreference.MORNING)
        (placed,) = run([task], [LUNCH])
        assert placed.scheduled_start == at(8)

    def test_without_lunch_energy_hour_wins(self) -> None:
        task = make_task(duration=3, time_preference=TimePreference.MORNING)
        (placed,) = run([task])
        assert placed.scheduled_start == at(11)

    def test_no_run_includes_lunch(self) -> None:
        """No consecutively placed 3h task covers 13:00."""
        tasks = [
            make_task(f"t{i}", duration=3, priority=1 + i % 5, deadline=NOW + timedelta(days=2))
            for i in range(10)
        ]
        result = run(tasks, [LUNCH])

        consecutive = [
            st for st in result if st.placement in (Placement.PREFERRED, Placement.ANY_HOUR)
        ]
        assert consecutive
        for st in consecutive:
            assert st.scheduled_start is not None
            hours = range(st.scheduled_start.hour, st.scheduled_start.hour + 3)
            assert 13 not in hours


class TestNoDoubleBooking:
    """Consecutive placements never share a slot."""

    def test_slots_disjoint(self) -> None:
        tasks = [
            make_task(
                f"t{i}",
                duration=[1, 2, 3, 0.5][i % 4],
                priority=1 + i % 5,
                energy=list(Energy)[i % 3],
                time_preference=list(TimePreference)[i % 4],
                deadline=NOW + timedelta(days=1 + i % 4),
            )
            for i in range(40)
        ]
        result = run(tasks, default_constraints())

        seen: set[tuple[str, int]] = set()
        for st in result:
            if st.placement not in (Placement.PREFERRED, Placement.ANY_HOUR):
                continue
            slots = occupied_slots(st)
            assert not slots & seen, f"{st.id} double-booked"
            seen |= slots


class TestDeadlineEligibility:
    """Days after the deadline date are never candidates."""

    def test_never_placed_after_deadline_day(self) -> None:
        """Two days hold 24 one-hour slots; the rest stay unscheduled."""
        deadline = datetime(2025, 1, 7, 12, 0)
        tasks = [make_task(f"t{i:02d}", deadline=deadline) for i in range(30)]

        result = run(tasks)

        starts = [st.scheduled_start for st in result if st.scheduled_start is not None]
        assert len(starts) == 24
        assert all(start.date() <= deadline.date() for start in starts)
        assert sum(1 for st in result if st.scheduled_start is None) == 6

    def test_overdue_task_unscheduled(self) -> None:
        """A deadline before the horizon leaves no candidate day."""
        (placed,) = run([make_task(deadline=NOW - timedelta(days=1))])
        assert placed.scheduled_start is None

    def test_deadline_checked_by_day_only(self) -> None:
        """A task due early today can still be placed later the same day."""
        (placed,) = run([make_task(deadline=at(9))])
        assert placed.scheduled_start == at(11)
        assert placed.end is not None and placed.end > placed.deadline


class TestSingleSlotFallback:
    """Behaviour when no day has a long enough free run."""

    @pytest.fixture
    def fragmented(self) -> tuple[SchedulingConfig, list[SystemConstraint]]:
        """One day with free hours 8 and 10 only."""
        config = SchedulingConfig(horizon_days=1, day_start_hour=8, day_end_hour=11)
        blocker = SystemConstraint(name="Call", start_hour=9, end_hour=10)
        return config, [blocker]

    def test_first_free_hour_taken(
        self, fragmented: tuple[SchedulingConfig, list[SystemConstraint]]
    ) -> None:
        config, constraints = fragmented
        (placed,) = run([make_task(duration=2)], constraints, config)
        assert placed.scheduled_start == at(8)
        assert placed.placement == Placement.SINGLE_SLOT

    def test_only_one_slot_reserved(
        self, fragmented: tuple[SchedulingConfig, list[SystemConstraint]]
    ) -> None:
        """The rest of a fallback task's duration stays bookable, so overlaps can follow."""
        config, constraints = fragmented
        long_task = make_task("long", duration=3, priority=5)
        short_task = make_task("short", duration=1, priority=1)

        result = run([long_task, short_task], constraints, config)
        placed = by_id(result)

        assert placed["long"].scheduled_start == at(8)
        assert placed["short"].scheduled_start == at(10)
        conflicts = find_conflicts(result)
        assert any(isinstance(c, OverlapConflict) for c in conflicts)

    def test_strict_mode_leaves_unscheduled(
        self, fragmented: tuple[SchedulingConfig, list[SystemConstraint]]
    ) -> None:
        config, constraints = fragmented
        strict = config.model_copy(update={"fallback": FallbackMode.STRICT})
        result = SlotAllocator([make_task(duration=2)], constraints, NOW, config=strict).schedule()

        assert result.scheduled_tasks[0].scheduled_start is None
        assert result.metadata["placements"]["unscheduled"] == 1
        assert result.metadata["fallback"] == "strict"


class TestAllocationResult:
    """Result shape and determinism."""

    def test_completed_tasks_skipped(self) -> None:
        result = run([make_task("done", completed=True), make_task("open")])
        assert [st.id for st in result] == ["open"]

    def test_caller_tasks_not_mutated(self) -> None:
        task = make_task()
        (placed,) = run([task])
        assert placed.task is task
        assert task.scheduled_start is None

    def test_metadata(self) -> None:
        result = SlotAllocator(
            [make_task("a"), make_task("b", deadline=NOW - timedelta(days=1))], [], NOW
        ).schedule()

        assert result.metadata["horizon_start"] == "2025-01-06"
        assert result.metadata["horizon_days"] == 14
        assert result.metadata["placements"]["preferred"] == 1
        assert result.metadata["placements"]["unscheduled"] == 1
        assert [st.id for st in result.unscheduled] == ["b"]

    def test_rescheduling_is_idempotent(self) -> None:
        """Two runs over the same input give the same assignment."""
        tasks = [
            make_task(f"t{i}", duration=1 + i % 3, priority=1 + i % 5, energy=list(Energy)[i % 3])
            for i in range(15)
        ]
        allocator = SlotAllocator(tasks, default_constraints(), NOW)
        first = allocator.schedule().scheduled_tasks
        second = allocator.schedule().scheduled_tasks
        assert first == second
