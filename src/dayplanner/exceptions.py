"""Custom exceptions for dayplanner."""


class PlannerError(Exception):
    """Base exception for all dayplanner errors."""

    pass


class ValidationError(PlannerError):
    """Raised when task or constraint validation fails."""

    pass


class CircularDependencyError(ValidationError):
    """Raised when a circular dependency is detected."""

    pass


class MissingReferenceError(ValidationError):
    """Raised when a referenced task ID does not exist."""

    pass


class DuplicateTaskError(ValidationError):
    """Raised when a task ID is already present."""

    pass


class TaskNotFoundError(PlannerError, KeyError):
    """Raised when an operation references an unknown task ID."""

    def __init__(self, task_id: str) -> None:
        super().__init__(task_id)
        self.task_id = task_id

    def __str__(self) -> str:
        return f"Task not found: {self.task_id}"


class ParseError(PlannerError):
    """Raised when YAML parsing fails."""

    pass
