"""YAML parser for dayplanner task files."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ParseError, ValidationError
from .scheduler.core import Task
from .schemas import TaskFileSchema


class TaskFileParser:
    """Parser for tasks.yaml files.

    This parser only handles YAML parsing and Task creation. For loading with
    reference and cycle checks, use load_tasks() from dayplanner.loader.
    """

    def parse_file(self, file_path: Path | str) -> list[Task]:
        """Parse a YAML file into a list of tasks, in file order."""
        path = Path(file_path)
        if not path.exists():
            raise ParseError(f"File not found: {file_path}")

        try:
            with path.open(encoding="utf-8") as f:
                data: Any = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ParseError(f"Failed to parse YAML: {e}") from e

        if data is None:
            return []
        if not isinstance(data, dict):
            raise ParseError("YAML must contain a dictionary at the root level")

        return self._parse_data(data)  # type: ignore[arg-type]

    def _parse_data(self, data: dict[str, Any]) -> list[Task]:
        """Parse the loaded YAML data into tasks."""
        try:
            schema = TaskFileSchema(**data)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid YAML structure: {e}") from e

        tasks: list[Task] = []
        for task_id, entry in schema.tasks.items():
            task = Task(
                id=str(task_id),
                title=entry.title,
                description=entry.description,
                duration=entry.duration,
                deadline=entry.deadline,
                priority=entry.priority,
                energy=entry.energy,
                time_preference=entry.time_preference,
                dependencies=tuple(dict.fromkeys(entry.requires)),
                category=entry.category,
                completed=entry.completed,
                scheduled_start=entry.scheduled_start,
            )
            task.validate()
            tasks.append(task)
        return tasks
