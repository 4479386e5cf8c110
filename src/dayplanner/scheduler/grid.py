"""Hourly slot grid tracking which hours of the planning horizon are still free."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from dayplanner.logger import debug_enabled, get_logger

from .constraints import SystemConstraint, is_slot_protected

logger = get_logger()


def date_key(day: date) -> str:
    """Grid key for a calendar day (YYYY-MM-DD)."""
    return day.isoformat()


def hour_key(hour: int) -> str:
    """Grid key for an hour of the day (H:00, no zero padding)."""
    return f"{hour}:00"


@dataclass
class Slot:
    """One schedulable hour."""

    timestamp: datetime
    available: bool
    protected: bool
    task_id: str | None = None


class TimeSlotGrid:
    """Slots for every hour of the daily window over the planning horizon.

    A grid is built for one scheduling run, mutated as tasks are placed and then
    thrown away. Days and hours are kept in chronological order, so iterating
    date_keys() or hours() always goes forward in time.
    """

    def __init__(self, slots: dict[str, dict[str, Slot]], hours: Sequence[int]) -> None:
        self.slots = slots
        self._hours = list(hours)

    @classmethod
    def generate(
        cls,
        constraints: Iterable[SystemConstraint],
        start_day: date,
        *,
        horizon_days: int = 14,
        start_hour: int = 8,
        end_hour: int = 20,
    ) -> TimeSlotGrid:
        """Build a grid of available/protected slots.

        Args:
            constraints: Protected windows; hours they cover start out unavailable
            start_day: First day of the horizon (usually today)
            horizon_days: Number of calendar days to cover
            start_hour: First hour of each day (inclusive)
            end_hour: Last hour of each day (exclusive)

        Returns:
            A fresh grid with no task assignments
        """
        constraint_list = list(constraints)
        hours = list(range(start_hour, end_hour))
        slots: dict[str, dict[str, Slot]] = {}
        protected_count = 0

        for offset in range(horizon_days):
            day = start_day + timedelta(days=offset)
            day_slots: dict[str, Slot] = {}
            for hour in hours:
                protected = is_slot_protected(constraint_list, day, hour)
                protected_count += protected
                day_slots[hour_key(hour)] = Slot(
                    timestamp=datetime.combine(day, time(hour=hour)),
                    available=not protected,
                    protected=protected,
                )
            slots[date_key(day)] = day_slots

        logger.debug(
            f"Generated grid: {horizon_days} days from {start_day.isoformat()}, "
            f"hours {start_hour}-{end_hour}, {protected_count} protected slots"
        )
        if debug_enabled():
            for key, day_slots in slots.items():
                free = [h for h, slot in day_slots.items() if slot.available]
                logger.debug(f"  {key}: free hours {', '.join(free) or 'none'}")
        return cls(slots, hours)

    def date_keys(self) -> list[str]:
        """All day keys, chronologically."""
        return list(self.slots)

    def hours(self) -> list[int]:
        """All hours of the daily window, ascending."""
        return list(self._hours)

    def slot(self, day_key: str, hour: int) -> Slot | None:
        """Return the slot at day/hour, or None if outside the grid."""
        day_slots = self.slots.get(day_key)
        if day_slots is None:
            return None
        return day_slots.get(hour_key(hour))

    def is_available(self, day_key: str, hour: int) -> bool:
        """Return True if the hour exists in the grid and is free."""
        found = self.slot(day_key, hour)
        return found is not None and found.available

    def available_hours(self, day_key: str) -> list[int]:
        """Free hours of a day, ascending."""
        return [hour for hour in self._hours if self.is_available(day_key, hour)]

    def count_available(self, day_key: str, hours: Iterable[int]) -> int:
        """Number of the given hours still free on a day."""
        return sum(1 for hour in hours if self.is_available(day_key, hour))

    def find_consecutive(
        self, day_key: str, candidate_starts: Iterable[int], count: int
    ) -> int | None:
        """Find the first candidate start hour followed by count free hours.

        Candidates are tried in the order given. A run may extend past the
        candidate set but never beyond the day window.

        Returns:
            The start hour of the run, or None if no candidate works
        """
        for start in candidate_starts:
            if all(self.is_available(day_key, start + i) for i in range(count)):
                return start
        return None

    def occupy(self, day_key: str, start_hour: int, count: int, task_id: str) -> datetime:
        """Mark count slots from start_hour as taken by task_id.

        Returns:
            Timestamp of the first occupied slot
        """
        first = self.slot(day_key, start_hour)
        if first is None:
            raise KeyError(f"No slot {hour_key(start_hour)} on {day_key}")

        for hour in range(start_hour, start_hour + count):
            current = self.slot(day_key, hour)
            if current is None:
                break
            current.available = False
            current.task_id = task_id
        return first.timestamp

    def occupant(self, day_key: str, hour: int) -> str | None:
        """ID of the task holding a slot, if any."""
        found = self.slot(day_key, hour)
        return found.task_id if found else None
