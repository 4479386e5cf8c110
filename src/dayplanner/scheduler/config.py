"""Configuration classes for the scheduling system."""

from enum import Enum

from pydantic import BaseModel, Field, model_validator

from .core import Energy, TimePreference

HOURS_PER_DAY = 24


class FallbackMode(str, Enum):
    """What the allocator does when no day has a long enough free run."""

    SINGLE_SLOT = "single_slot"  # Take the first free hour only (duration not reserved)
    STRICT = "strict"  # Leave the task unscheduled


def _default_energy_hours() -> dict[Energy, list[int]]:
    return {
        Energy.HIGH: [9, 10, 15, 16],
        Energy.MEDIUM: [11, 12, 14, 17],
        Energy.LOW: [8, 13, 18, 19],
    }


def _default_preference_hours() -> dict[TimePreference, list[int]]:
    # TimePreference.NONE is absent on purpose: it means every hour of the day window
    return {
        TimePreference.MORNING: [8, 9, 10, 11, 12],
        TimePreference.AFTERNOON: [14, 15, 16, 17],
        TimePreference.EVENING: [18, 19],
    }


class OverloadConfig(BaseModel):
    """Thresholds for the weekly overload check."""

    lookahead_days: int = Field(default=7, ge=1)
    working_days: int = Field(default=5, ge=1)
    hours_per_day: float = Field(default=8.0, gt=0)
    high_priority_threshold: int = Field(default=4, ge=1, le=5)
    max_high_priority_tasks: int = Field(default=5, ge=0)

    @property
    def available_hours(self) -> float:
        return self.working_days * self.hours_per_day


class CandidateConfig(BaseModel):
    """Heuristics for delegation and postponement candidates."""

    low_priority_max: int = Field(default=2, ge=1, le=5)
    far_deadline_days: int = Field(default=7, ge=0)
    administrative_keywords: list[str] = Field(default_factory=lambda: ["admin"])


class SchedulingConfig(BaseModel):
    """Configuration for the slot allocator and its analytics."""

    horizon_days: int = Field(default=14, ge=1)
    day_start_hour: int = Field(default=8, ge=0, lt=HOURS_PER_DAY)
    day_end_hour: int = Field(default=20, gt=0, le=HOURS_PER_DAY)

    energy_hours: dict[Energy, list[int]] = Field(default_factory=_default_energy_hours)
    preference_hours: dict[TimePreference, list[int]] = Field(
        default_factory=_default_preference_hours
    )

    fallback: FallbackMode = FallbackMode.SINGLE_SLOT
    buffer_minutes: int = Field(default=30, ge=0)  # Gap left by "move" alternatives
    deadline_extension_hours: float = Field(default=1.0, ge=0)
    duration_reduction_factor: float = Field(default=0.75, gt=0, le=1)
    min_duration_hours: float = Field(default=0.5, gt=0)

    overload: OverloadConfig = OverloadConfig()
    candidates: CandidateConfig = CandidateConfig()

    @model_validator(mode="after")
    def validate_day_window(self) -> "SchedulingConfig":
        """Ensure the daily window is non-empty."""
        if self.day_start_hour >= self.day_end_hour:
            raise ValueError("day_start_hour must be before day_end_hour")
        return self

    def day_hours(self) -> list[int]:
        """All hours of the daily scheduling window, ascending."""
        return list(range(self.day_start_hour, self.day_end_hour))

    def hours_for_preference(self, preference: TimePreference) -> list[int]:
        """Hours searched first for a time preference (all hours for NONE)."""
        return list(self.preference_hours.get(preference, self.day_hours()))

    def hours_for_energy(self, energy: Energy) -> list[int]:
        """Hours considered a good match for an energy level."""
        return list(self.energy_hours.get(energy, []))
