"""Pydantic schemas for YAML data validation."""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Any

from pydantic import BaseModel, Field, field_validator

from .scheduler.core import MAX_PRIORITY, MIN_PRIORITY, Category, Energy, TimePreference

END_OF_DAY = time(23, 59)


def _to_local_naive(value: datetime) -> datetime:
    """Drop timezone info, converting aware values to local wall-clock time."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


class TaskSchema(BaseModel):
    """Schema for one task entry in tasks.yaml."""

    title: str = Field(min_length=1)
    description: str = ""
    duration: float = Field(gt=0, allow_inf_nan=False)  # Hours
    deadline: datetime
    priority: int = Field(default=3, ge=MIN_PRIORITY, le=MAX_PRIORITY)
    energy: Energy = Energy.MEDIUM
    time_preference: TimePreference = TimePreference.NONE
    category: Category = Category.PROFESSIONAL
    requires: list[str] = Field(default_factory=list)
    completed: bool = False
    scheduled_start: datetime | None = None

    @field_validator("deadline", mode="before")
    @classmethod
    def date_only_deadline(cls, v: Any) -> Any:
        """A bare date means the end of that day."""
        if isinstance(v, date) and not isinstance(v, datetime):
            return datetime.combine(v, END_OF_DAY)
        return v

    @field_validator("deadline", "scheduled_start", mode="after")
    @classmethod
    def strip_timezone(cls, v: datetime | None) -> datetime | None:
        """Work in naive local time throughout."""
        if v is None:
            return None
        return _to_local_naive(v)

    @field_validator("category", mode="before")
    @classmethod
    def fold_unknown_category(cls, v: Any) -> Any:
        """Unknown categories are kept as "other"."""
        if v is None:
            return Category.PROFESSIONAL
        if isinstance(v, str) and v not in {c.value for c in Category}:
            return Category.OTHER
        return v

    @field_validator("requires", mode="before")
    @classmethod
    def ensure_list(cls, v: Any) -> list[str]:
        """Ensure value is a list."""
        if v is None:
            return []
        if isinstance(v, list):
            return [str(item) for item in v]  # type: ignore[misc]
        return [str(v)]


class TaskFileSchema(BaseModel):
    """Schema for the entire tasks.yaml file."""

    tasks: dict[str, TaskSchema] = Field(default_factory=dict)
