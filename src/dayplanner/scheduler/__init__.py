"""Scheduler package - greedy hourly placement of personal tasks.

This package provides:
- A weekly constraint model (protected windows such as lunch or meetings)
- An hourly slot grid rebuilt for every run
- A greedy allocator that respects priority, energy and time preference
- Conflict detection and remediation suggestions
- Read-only schedule queries and workload analytics

Main entry points:
- Scheduler: Stateful engine owning tasks, constraints and the committed schedule
- SlotAllocator: One allocation pass over a fresh grid

Configuration:
- SchedulingConfig: Day window, horizon, hour sets, fallback mode and thresholds
"""

from .allocator import SlotAllocator
from .alternatives import (
    ActionType,
    Alternative,
    AlternativeOption,
    AlternativeProposer,
    ExtendDeadline,
    Impact,
    MoveTask,
    ReduceDuration,
    RemoveDependency,
    RescheduleTasks,
    propose_alternatives,
)
from .analytics import (
    OverloadReport,
    TimeDistribution,
    analyze_time_distribution,
    can_move,
    check_overload,
    identify_delegation_candidates,
    identify_postponement_candidates,
    tasks_for_date,
    tasks_for_week,
)
from .config import CandidateConfig, FallbackMode, OverloadConfig, SchedulingConfig
from .conflicts import (
    Conflict,
    ConflictType,
    DeadlineConflict,
    DependencyConflict,
    OverlapConflict,
    find_conflicts,
)
from .constraints import SystemConstraint, default_constraints, is_slot_protected
from .core import (
    AllocationResult,
    Category,
    Energy,
    Placement,
    ScheduledTask,
    Task,
    TimePreference,
)
from .grid import TimeSlotGrid
from .ranking import rank_tasks

# High-level engine
from .service import Scheduler

__all__ = [
    # Core dataclasses
    "Task",
    "ScheduledTask",
    "AllocationResult",
    "Energy",
    "TimePreference",
    "Category",
    "Placement",
    # Configuration
    "SchedulingConfig",
    "FallbackMode",
    "OverloadConfig",
    "CandidateConfig",
    # Constraints and grid
    "SystemConstraint",
    "default_constraints",
    "is_slot_protected",
    "TimeSlotGrid",
    # Allocation
    "rank_tasks",
    "SlotAllocator",
    # Conflicts and alternatives
    "Conflict",
    "ConflictType",
    "OverlapConflict",
    "DeadlineConflict",
    "DependencyConflict",
    "find_conflicts",
    "Alternative",
    "AlternativeOption",
    "AlternativeProposer",
    "ActionType",
    "Impact",
    "MoveTask",
    "RescheduleTasks",
    "ExtendDeadline",
    "ReduceDuration",
    "RemoveDependency",
    "propose_alternatives",
    # Queries and analytics
    "tasks_for_date",
    "tasks_for_week",
    "can_move",
    "TimeDistribution",
    "analyze_time_distribution",
    "OverloadReport",
    "check_overload",
    "identify_delegation_candidates",
    "identify_postponement_candidates",
    # High-level engine
    "Scheduler",
]
