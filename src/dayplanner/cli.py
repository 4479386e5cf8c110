"""Command-line interface for dayplanner."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Annotated

import typer

from . import context
from .exceptions import PlannerError
from .export import export_icalendar, export_schedule_csv, write_scheduled_starts
from .loader import load_scheduler
from .logger import setup_logger
from .scheduler import (
    Alternative,
    Conflict,
    FallbackMode,
    OverloadReport,
    Placement,
    ScheduledTask,
    Scheduler,
    Task,
    TimeDistribution,
)

app = typer.Typer(
    name="dayplanner",
    help="Personal task scheduler - fits tasks around lunch, meetings and family time",
    add_completion=False,
)

MAX_UNSCHEDULED_TO_SHOW = 10

TasksFile = Annotated[Path, typer.Argument(help="Path to the tasks YAML file")]
PersistedOption = Annotated[
    bool,
    typer.Option(
        "--persisted",
        help="Use the scheduled_start values stored in the task file instead of rescheduling",
    ),
]


class CandidateKind(str, Enum):
    """Which candidate lists to show."""

    DELEGATION = "delegation"
    POSTPONEMENT = "postponement"
    ALL = "all"


def _parse_datetime_option(value: str, option_name: str) -> datetime:
    """Parse an ISO date-time from a CLI option (YYYY-MM-DDTHH:MM)."""
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        typer.echo(
            f"Error: Invalid {option_name} '{value}'. Use YYYY-MM-DDTHH:MM format.",
            err=True,
        )
        raise typer.Exit(1) from None


def _parse_date_option(value: str | None, option_name: str) -> date:
    """Parse a date from a CLI option, defaulting to the (possibly pinned) current date."""
    if value is None:
        return context.get_current_time().date()
    try:
        return date.fromisoformat(value)
    except ValueError:
        typer.echo(
            f"Error: Invalid {option_name} '{value}'. Use YYYY-MM-DD format.",
            err=True,
        )
        raise typer.Exit(1) from None


@app.callback()
def main_callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            help="Verbosity level: 0=silent (default), 1=show placements, 2=show all checks, "
            "3=debug",
            min=0,
            max=3,
        ),
    ] = 0,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to config file (default: dayplanner_config.yaml)",
        ),
    ] = None,
    now: Annotated[
        str | None,
        typer.Option(
            "--now",
            help="Pin the current time (YYYY-MM-DDTHH:MM). Defaults to the wall clock",
        ),
    ] = None,
) -> None:
    """Global options for dayplanner commands."""
    setup_logger(verbose)
    context.set_config_path(config)
    context.set_current_time(_parse_datetime_option(now, "--now") if now else None)


def _load_planner(file: Path, *, persisted: bool = False, strict: bool = False) -> Scheduler:
    """Load tasks and config, then schedule (or restore the stored schedule)."""
    try:
        scheduler = load_scheduler(file, current_time=context.get_current_time())
        if strict:
            scheduler.config = scheduler.config.model_copy(
                update={"fallback": FallbackMode.STRICT}
            )
        if persisted:
            scheduler.restore_schedule()
        else:
            scheduler.schedule()
    except PlannerError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None
    return scheduler


def _format_slot(st: ScheduledTask) -> str:
    if st.scheduled_start is None or st.end is None:
        return "unscheduled"
    return f"{st.scheduled_start:%Y-%m-%d %H:%M} - {st.end:%H:%M}"


def _display_schedule(scheduled: list[ScheduledTask]) -> None:
    """Display a committed schedule to stdout."""
    typer.echo("Schedule")
    typer.echo("=" * 80)
    typer.echo("")

    ordered = sorted(
        scheduled, key=lambda st: (st.scheduled_start is None, st.scheduled_start or datetime.min)
    )
    for st in ordered:
        typer.echo(f"{st.title} ({st.id})")
        typer.echo(f"  Slot:     {_format_slot(st)}")
        typer.echo(f"  Deadline: {st.deadline:%Y-%m-%d %H:%M}")
        typer.echo(f"  Priority: {st.priority}")
        if st.placement == Placement.SINGLE_SLOT:
            typer.echo("  (only the first hour could be reserved)")
        if st.end is not None and st.end > st.deadline:
            typer.echo("  ⚠️  DEADLINE VIOLATED")
        typer.echo("")


def _warn_unscheduled(scheduled: list[ScheduledTask]) -> None:
    unscheduled = [st.id for st in scheduled if st.scheduled_start is None]
    if not unscheduled:
        return
    typer.echo(
        f"\nWarning: {len(unscheduled)} task(s) could not be scheduled: "
        f"{', '.join(unscheduled[:MAX_UNSCHEDULED_TO_SHOW])}"
        + (
            f" and {len(unscheduled) - MAX_UNSCHEDULED_TO_SHOW} more"
            if len(unscheduled) > MAX_UNSCHEDULED_TO_SHOW
            else ""
        ),
        err=True,
    )


@app.command()
def schedule(
    file: TasksFile = Path("tasks.yaml"),
    *,
    strict: Annotated[
        bool,
        typer.Option(
            "--strict",
            help="Leave tasks unscheduled instead of reserving a single hour for them",
        ),
    ] = False,
    annotate_yaml: Annotated[
        bool,
        typer.Option("--annotate-yaml", help="Write scheduled_start back to the task file"),
    ] = False,
    output_csv: Annotated[
        Path | None,
        typer.Option("--output-csv", help="Export the schedule to a CSV file"),
    ] = None,
) -> None:
    """Compute a schedule and display or persist it."""
    scheduler = _load_planner(file, strict=strict)
    scheduled = scheduler.scheduled_tasks

    if output_csv:
        export_schedule_csv(scheduled, output_csv)
        typer.echo(f"Schedule exported to {output_csv}")
    if annotate_yaml:
        try:
            missing = write_scheduled_starts(file, scheduled)
        except PlannerError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1) from None
        if missing:
            typer.echo(f"Warning: tasks not found in YAML: {', '.join(missing)}", err=True)
        typer.echo(f"Scheduled start times written to {file}")
    if not output_csv and not annotate_yaml:
        _display_schedule(scheduled)

    _warn_unscheduled(scheduled)


def _display_day(day: date, tasks: list[ScheduledTask]) -> None:
    typer.echo(f"{day:%A %Y-%m-%d}")
    if not tasks:
        typer.echo("  (nothing scheduled)")
    for st in tasks:
        assert st.scheduled_start is not None and st.end is not None
        typer.echo(
            f"  {st.scheduled_start:%H:%M}-{st.end:%H:%M}  {st.title} ({st.id}, P{st.priority})"
        )


@app.command()
def day(
    file: TasksFile = Path("tasks.yaml"),
    *,
    on: Annotated[
        str | None,
        typer.Option("--date", "-d", help="Day to show (YYYY-MM-DD). Defaults to today"),
    ] = None,
    persisted: PersistedOption = False,
) -> None:
    """Show the tasks scheduled on one day."""
    target = _parse_date_option(on, "--date")
    scheduler = _load_planner(file, persisted=persisted)
    _display_day(target, scheduler.get_tasks_for_date(target))


@app.command()
def week(
    file: TasksFile = Path("tasks.yaml"),
    *,
    start: Annotated[
        str | None,
        typer.Option("--start", "-s", help="First day of the week (YYYY-MM-DD). Defaults to today"),
    ] = None,
    persisted: PersistedOption = False,
) -> None:
    """Show seven consecutive days of the schedule."""
    start_day = _parse_date_option(start, "--start")
    scheduler = _load_planner(file, persisted=persisted)
    for key, tasks in scheduler.get_tasks_for_week(start_day).items():
        _display_day(date.fromisoformat(key), tasks)
        typer.echo("")


def _display_conflicts(conflicts: list[Conflict], alternatives: list[Alternative] | None) -> None:
    typer.echo(f"Conflicts ({len(conflicts)})")
    typer.echo("=" * 80)
    for index, conflict in enumerate(conflicts, 1):
        typer.echo(f"{index}. [{conflict.type.value}] {conflict.description}")
        if alternatives is None:
            continue
        for option in alternatives[index - 1].options:
            typer.echo(f"     - {option.description} (impact: {option.impact.value})")


@app.command()
def conflicts(
    file: TasksFile = Path("tasks.yaml"),
    *,
    alternatives: Annotated[
        bool,
        typer.Option("--alternatives", "-a", help="Suggest remediation options for each conflict"),
    ] = False,
    persisted: PersistedOption = False,
) -> None:
    """Detect overlaps, missed deadlines and dependency-order violations."""
    scheduler = _load_planner(file, persisted=persisted)
    found = scheduler.identify_conflicts()
    if not found:
        typer.echo("No conflicts found.")
        return
    suggestions = scheduler.propose_alternatives(found) if alternatives else None
    _display_conflicts(found, suggestions)


@app.command(name="can-move")
def can_move(
    task_id: Annotated[str, typer.Argument(help="ID of the task to move")],
    new_start: Annotated[str, typer.Argument(help="Proposed start (YYYY-MM-DDTHH:MM)")],
    file: TasksFile = Path("tasks.yaml"),
    *,
    persisted: PersistedOption = False,
) -> None:
    """Check whether a scheduled task could start at another time."""
    start = _parse_datetime_option(new_start, "start")
    scheduler = _load_planner(file, persisted=persisted)
    try:
        allowed = scheduler.can_move_task(task_id, start)
    except PlannerError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    verdict = "can" if allowed else "cannot"
    typer.echo(f"{task_id} {verdict} start at {start:%Y-%m-%d %H:%M}")


def _display_distribution(stats: TimeDistribution) -> None:
    typer.echo("Time Distribution (hours)")
    typer.echo("=" * 80)
    typer.echo("By category:")
    for category, hours in stats.by_category.items():
        typer.echo(f"  {category.value:<15} {hours:g}")
    typer.echo("By priority:")
    for priority, hours in sorted(stats.by_priority.items()):
        typer.echo(f"  P{priority:<14} {hours:g}")
    typer.echo("By energy:")
    for energy, hours in stats.by_energy.items():
        typer.echo(f"  {energy.value:<15} {hours:g}")
    typer.echo("By status:")
    typer.echo(f"  {'completed':<15} {stats.completed:g}")
    typer.echo(f"  {'overdue':<15} {stats.overdue:g}")
    typer.echo(f"  {'upcoming':<15} {stats.upcoming:g}")
    typer.echo(f"Scheduled: {stats.total_scheduled:g}  Unscheduled: {stats.total_unscheduled:g}")


@app.command()
def stats(file: TasksFile = Path("tasks.yaml")) -> None:
    """Summarize hours of work by category, priority, energy and status."""
    scheduler = _load_planner(file, persisted=True)
    _display_distribution(scheduler.analyze_time_distribution())


def _display_overload(report: OverloadReport) -> None:
    typer.echo("Workload (next 7 days)")
    typer.echo("=" * 80)
    typer.echo(f"Tasks due:           {report.urgent_tasks_count}")
    typer.echo(f"High priority:       {report.high_priority_count}")
    typer.echo(f"Hours required:      {report.total_hours_required:g}")
    typer.echo(f"Hours available:     {report.available_hours:g}")
    if report.is_overloaded:
        typer.echo(f"⚠️  OVERLOADED by {report.overload_percentage}%")
    else:
        typer.echo("Not overloaded")


@app.command()
def overload(file: TasksFile = Path("tasks.yaml")) -> None:
    """Check whether the work due this week exceeds the available hours."""
    scheduler = _load_planner(file, persisted=True)
    _display_overload(scheduler.check_overload())


def _display_candidates(title: str, tasks: list[Task]) -> None:
    typer.echo(title)
    typer.echo("=" * 80)
    if not tasks:
        typer.echo("  (none)")
    for task in tasks:
        typer.echo(f"  P{task.priority}  {task.title} ({task.id}), due {task.deadline:%Y-%m-%d}")
    typer.echo("")


@app.command()
def candidates(
    file: TasksFile = Path("tasks.yaml"),
    *,
    kind: Annotated[
        CandidateKind,
        typer.Option("--kind", "-k", help="Which candidates to list"),
    ] = CandidateKind.ALL,
) -> None:
    """List tasks that could be delegated or postponed."""
    scheduler = _load_planner(file, persisted=True)
    if kind in (CandidateKind.DELEGATION, CandidateKind.ALL):
        _display_candidates("Delegation candidates", scheduler.identify_delegation_candidates())
    if kind in (CandidateKind.POSTPONEMENT, CandidateKind.ALL):
        _display_candidates(
            "Postponement candidates", scheduler.identify_postponement_candidates()
        )


@app.command(name="export-ical")
def export_ical(
    file: TasksFile = Path("tasks.yaml"),
    *,
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Output file path")] = None,
    persisted: PersistedOption = False,
) -> None:
    """Export the schedule as an iCalendar (.ics) file."""
    scheduler = _load_planner(file, persisted=persisted)
    calendar = export_icalendar(scheduler.scheduled_tasks, context.get_current_time())

    if output:
        output.write_bytes(calendar.encode("utf-8"))
        typer.echo(f"Calendar written to {output}")
    else:
        typer.echo(calendar, nl=False)


def main() -> int:
    """Main entry point."""
    # Typer handles sys.exit() internally
    app()
    return 0


if __name__ == "__main__":
    main()
