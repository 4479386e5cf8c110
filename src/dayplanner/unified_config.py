"""Configuration file loader for protected windows and scheduler settings.

A single file (dayplanner_config.yaml) holds both sections:

    constraints:
      - name: Lunch break
        days: [0, 1, 2, 3, 4, 5, 6]
        start_hour: 13
        end_hour: 14
    scheduler:
      horizon_days: 14
      fallback: strict

When the constraints key is absent the built-in defaults apply; an explicit
empty list means no protected time at all.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ParseError, ValidationError
from .scheduler.config import SchedulingConfig
from .scheduler.constraints import SystemConstraint, default_constraints

CONFIG_FILENAME = "dayplanner_config.yaml"


class PlannerConfig(BaseModel):
    """Unified configuration: protected windows plus scheduler settings."""

    constraints: list[SystemConstraint] = Field(default_factory=default_constraints)
    scheduler: SchedulingConfig = Field(default_factory=SchedulingConfig)


def load_planner_config(config_path: Path | str) -> PlannerConfig:
    """Load the unified configuration from a YAML file.

    Args:
        config_path: Path to dayplanner_config.yaml

    Returns:
        PlannerConfig with defaults for any missing section

    Raises:
        ParseError: If the file is missing, unreadable or not a mapping
        ValidationError: If a section fails validation
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ParseError(f"Config file not found: {config_path}")

    try:
        with config_path.open(encoding="utf-8") as f:
            data: Any = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ParseError(f"Failed to parse config YAML: {e}") from e

    if not data:
        raise ParseError(f"Empty configuration file: {config_path}")
    if not isinstance(data, dict):
        raise ParseError("Config must contain a dictionary at the root level")

    unknown = set(data) - {"constraints", "scheduler"}  # type: ignore[arg-type]
    if unknown:
        raise ValidationError(f"Unknown config section(s): {', '.join(sorted(unknown))}")

    try:
        return PlannerConfig.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid configuration in {config_path}: {e}") from e
