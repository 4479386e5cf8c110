"""Export of a committed schedule: iCalendar text, CSV, and YAML write-back."""

from __future__ import annotations

import csv
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML

from .exceptions import ParseError
from .logger import get_logger
from .scheduler.core import Category, ScheduledTask

logger = get_logger()

ICAL_LINE_END = "\r\n"
ICAL_PRODID = "-//dayplanner//EN"
UID_DOMAIN = "dayplanner"


def _ical_datetime(value: datetime) -> str:
    """Format a datetime as an iCalendar DATE-TIME.

    Aware values are converted to UTC (trailing Z); naive values are written
    as floating local time.
    """
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    return value.strftime("%Y%m%dT%H%M%S")


def _ical_text(value: str) -> str:
    """Escape a TEXT property value."""
    return (
        value.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\r\n", "\\n")
        .replace("\n", "\\n")
    )


def ical_priority(priority: int) -> int:
    """Map planner priority 1..5 (5 highest) to iCalendar PRIORITY, where lower is higher."""
    return 10 - 2 * priority


def export_icalendar(
    scheduled_tasks: Iterable[ScheduledTask], generated_at: datetime
) -> str:
    """Render scheduled tasks as a VCALENDAR document.

    Unscheduled tasks are skipped. Lines end with CRLF.

    Args:
        scheduled_tasks: Tasks from a committed schedule
        generated_at: Timestamp written as DTSTAMP on every event

    Returns:
        The calendar text
    """
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{ICAL_PRODID}",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
    ]
    stamp = _ical_datetime(generated_at)
    exported = 0

    for st in scheduled_tasks:
        if st.scheduled_start is None or st.end is None:
            continue
        task = st.task
        lines.append("BEGIN:VEVENT")
        lines.append(f"UID:{task.id}@{UID_DOMAIN}")
        lines.append(f"DTSTAMP:{stamp}")
        lines.append(f"DTSTART:{_ical_datetime(st.scheduled_start)}")
        lines.append(f"DTEND:{_ical_datetime(st.end)}")
        lines.append(f"SUMMARY:{_ical_text(task.title)}")
        if task.description:
            lines.append(f"DESCRIPTION:{_ical_text(task.description)}")
        lines.append(f"CATEGORIES:{Category(task.category).value.upper()}")
        lines.append(f"PRIORITY:{ical_priority(task.priority)}")
        lines.append("STATUS:COMPLETED" if task.completed else "STATUS:CONFIRMED")
        lines.append("END:VEVENT")
        exported += 1

    lines.append("END:VCALENDAR")
    logger.debug(f"Exported {exported} events to iCalendar")
    return ICAL_LINE_END.join(lines) + ICAL_LINE_END


def export_schedule_csv(scheduled_tasks: Iterable[ScheduledTask], output_path: Path) -> None:
    """Write the committed schedule to CSV; unscheduled rows have empty times."""
    with output_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(
            [
                "task_id",
                "title",
                "priority",
                "deadline",
                "scheduled_start",
                "scheduled_end",
                "placement",
            ]
        )
        for st in scheduled_tasks:
            writer.writerow(
                [
                    st.id,
                    st.title,
                    st.priority,
                    st.deadline.isoformat(),
                    st.scheduled_start.isoformat() if st.scheduled_start else "",
                    st.end.isoformat() if st.end else "",
                    st.placement.value if st.placement else "",
                ]
            )


def write_scheduled_starts(
    file_path: Path, scheduled_tasks: Iterable[ScheduledTask]
) -> list[str]:
    """Write scheduled_start back into a tasks YAML file, preserving formatting.

    Unscheduled tasks have any previous scheduled_start removed.

    Args:
        file_path: Path to tasks.yaml
        scheduled_tasks: Committed schedule

    Returns:
        IDs that were not found in the file
    """
    yaml_rt = YAML()
    yaml_rt.preserve_quotes = True  # type: ignore[assignment]

    with file_path.open(encoding="utf-8") as f:
        data: Any = yaml_rt.load(f)  # type: ignore[no-untyped-call]

    if not isinstance(data, dict) or "tasks" not in data:
        raise ParseError(f"No 'tasks' section found in {file_path}")

    entries = data["tasks"] or {}
    not_found: list[str] = []
    for st in scheduled_tasks:
        entry = entries.get(st.id)
        if entry is None:
            not_found.append(st.id)
            continue
        if st.scheduled_start is not None:
            entry["scheduled_start"] = st.scheduled_start.isoformat()
        elif "scheduled_start" in entry:
            del entry["scheduled_start"]

    with file_path.open("w", encoding="utf-8") as f:
        yaml_rt.dump(data, f)  # type: ignore[no-untyped-call]
    return not_found
