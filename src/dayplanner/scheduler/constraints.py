"""Recurring protected time windows (lunch breaks, standing meetings, ...).

Weekdays use the 0=Sunday..6=Saturday convention throughout the planner.
"""

from collections.abc import Iterable
from datetime import date

from pydantic import BaseModel, Field, field_validator, model_validator

from dayplanner.logger import get_logger

logger = get_logger()

ALL_WEEKDAYS = [0, 1, 2, 3, 4, 5, 6]
SUNDAY = 0
FRIDAY = 5
MONDAY = 1


def weekday_index(day: date) -> int:
    """Return the weekday of day with Sunday as 0."""
    return (day.weekday() + 1) % 7


class SystemConstraint(BaseModel):
    """A weekly recurring block during which nothing may be scheduled."""

    name: str
    days: list[int] = Field(default_factory=lambda: list(ALL_WEEKDAYS))
    start_hour: float
    end_hour: float

    @field_validator("days")
    @classmethod
    def validate_days(cls, v: list[int]) -> list[int]:
        """Ensure every weekday index is in 0..6 (0 is Sunday)."""
        for day in v:
            if not 0 <= day <= 6:  # noqa: PLR2004 - weekday range
                raise ValueError(f"weekday index must be in 0..6 (0=Sunday), got {day}")
        return sorted(set(v))

    @model_validator(mode="after")
    def validate_hours(self) -> "SystemConstraint":
        """Ensure the window is non-empty and inside one day."""
        for label, hour in (("start_hour", self.start_hour), ("end_hour", self.end_hour)):
            if not 0 <= hour < 24:  # noqa: PLR2004 - hours of the day
                raise ValueError(f"{label} must be in [0, 24), got {hour}")
        if self.start_hour >= self.end_hour:
            raise ValueError(
                f"Constraint '{self.name}': start_hour ({self.start_hour}) "
                f"must be before end_hour ({self.end_hour})"
            )
        return self

    def applies_to(self, day: date, hour: int) -> bool:
        """Return True if this window blocks the given hour on the given day.

        A window whose start is not before its end (only reachable by bypassing
        validation, e.g. model_construct) blocks nothing.
        """
        if weekday_index(day) not in self.days:
            return False
        return self.start_hour <= hour < self.end_hour


def is_slot_protected(constraints: Iterable[SystemConstraint], day: date, hour: int) -> bool:
    """Return True if any constraint blocks the hour; overlapping windows simply union."""
    for constraint in constraints:
        if constraint.applies_to(day, hour):
            logger.debug(f"        {day.isoformat()} {hour}:00 protected by '{constraint.name}'")
            return True
    return False


def default_constraints() -> list[SystemConstraint]:
    """The protected windows used when no configuration provides any."""
    return [
        SystemConstraint(name="Lunch break", days=ALL_WEEKDAYS, start_hour=13, end_hour=14),
        SystemConstraint(name="Team meeting", days=[MONDAY], start_hour=9, end_hour=10.5),
        SystemConstraint(name="Accounting", days=[FRIDAY], start_hour=15, end_hour=17),
        SystemConstraint(name="Family time", days=ALL_WEEKDAYS, start_hour=18.5, end_hour=21),
        SystemConstraint(name="Weekly review", days=[FRIDAY], start_hour=17, end_hour=18),
    ]
