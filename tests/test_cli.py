"""Tests for CLI commands."""

from pathlib import Path

import pytest
from typer.testing import CliRunner

from dayplanner.cli import app
from dayplanner.parser import TaskFileParser
from dayplanner.unified_config import CONFIG_FILENAME
from tests.conftest import at

runner = CliRunner()

NOW_ARGS = ["--now", "2025-01-06T07:00"]

TASKS_YAML = """\
tasks:
  focus:
    title: Focus block
    duration: 2
    deadline: 2025-01-08 17:00
    priority: 5
    energy: high
    time_preference: morning
  email:
    title: Emails
    duration: 1
    deadline: 2025-01-10
"""

OVERLAPPING_YAML = """\
tasks:
  focus:
    title: Focus block
    duration: 2
    deadline: 2025-01-08 17:00
    scheduled_start: '2025-01-06T09:00:00'
  email:
    title: Emails
    duration: 1
    deadline: 2025-01-10
    scheduled_start: '2025-01-06T09:00:00'
"""


def write_project(tmp_path: Path, tasks_yaml: str = TASKS_YAML) -> Path:
    """Write a task file plus a config without protected time."""
    tasks_path = tmp_path / "tasks.yaml"
    tasks_path.write_text(tasks_yaml, encoding="utf-8")
    (tmp_path / CONFIG_FILENAME).write_text("constraints: []\n", encoding="utf-8")
    return tasks_path


@pytest.fixture
def tasks_file(tmp_path: Path) -> Path:
    return write_project(tmp_path)


class TestScheduleCommand:
    """Test the schedule command."""

    def test_display(self, tasks_file: Path) -> None:
        result = runner.invoke(app, [*NOW_ARGS, "schedule", str(tasks_file)])

        assert result.exit_code == 0, result.output
        assert "Schedule" in result.output
        assert "Focus block (focus)" in result.output
        assert "  Slot:     2025-01-06 09:00 - 11:00" in result.output
        assert "  Slot:     2025-01-06 11:00 - 12:00" in result.output
        assert "DEADLINE VIOLATED" not in result.output

    def test_output_csv(self, tasks_file: Path, tmp_path: Path) -> None:
        output = tmp_path / "schedule.csv"
        result = runner.invoke(
            app, [*NOW_ARGS, "schedule", str(tasks_file), "--output-csv", str(output)]
        )

        assert result.exit_code == 0, result.output
        assert f"Schedule exported to {output}" in result.output
        lines = output.read_text(encoding="utf-8").splitlines()
        assert lines[0].startswith("task_id,title,priority")
        assert lines[1].startswith("focus,Focus block,5,")

    def test_annotate_yaml(self, tasks_file: Path) -> None:
        result = runner.invoke(app, [*NOW_ARGS, "schedule", str(tasks_file), "--annotate-yaml"])

        assert result.exit_code == 0, result.output
        assert "Scheduled start times written to" in result.output
        tasks = {t.id: t for t in TaskFileParser().parse_file(tasks_file)}
        assert tasks["focus"].scheduled_start == at(9)
        assert tasks["email"].scheduled_start == at(11)

    def test_csv_and_annotate_together(self, tasks_file: Path, tmp_path: Path) -> None:
        """Both outputs are written when both are requested."""
        output = tmp_path / "schedule.csv"
        result = runner.invoke(
            app,
            [
                *NOW_ARGS,
                "schedule",
                str(tasks_file),
                "--output-csv",
                str(output),
                "--annotate-yaml",
            ],
        )

        assert result.exit_code == 0, result.output
        assert f"Schedule exported to {output}" in result.output
        assert "Scheduled start times written to" in result.output
        assert output.read_text(encoding="utf-8").startswith("task_id,title,priority")
        tasks = {t.id: t for t in TaskFileParser().parse_file(tasks_file)}
        assert tasks["focus"].scheduled_start == at(9)

    def test_unscheduled_warning(self, tmp_path: Path) -> None:
        tasks_file = write_project(
            tmp_path,
            TASKS_YAML + "  old:\n    title: Old\n    duration: 1\n    deadline: 2025-01-01\n",
        )
        result = runner.invoke(app, [*NOW_ARGS, "schedule", str(tasks_file)])

        assert result.exit_code == 0, result.output
        assert "Warning: 1 task(s) could not be scheduled: old" in result.output

    def test_strict_fallback(self, tmp_path: Path) -> None:
        """A task longer than the day window is left out in strict mode."""
        tasks_file = tmp_path / "tasks.yaml"
        tasks_file.write_text(
            "tasks:\n  long:\n    title: Long\n    duration: 3\n    deadline: 2025-01-06 20:00\n",
            encoding="utf-8",
        )
        (tmp_path / CONFIG_FILENAME).write_text(
            "constraints: []\nscheduler:\n  day_start_hour: 8\n  day_end_hour: 10\n",
            encoding="utf-8",
        )

        lenient = runner.invoke(app, [*NOW_ARGS, "schedule", str(tasks_file)])
        strict = runner.invoke(app, [*NOW_ARGS, "schedule", str(tasks_file), "--strict"])

        assert "only the first hour could be reserved" in lenient.output
        assert "could not be scheduled: long" in strict.output

    def test_verbose_shows_placements(self, tasks_file: Path) -> None:
        result = runner.invoke(app, ["-v", "1", *NOW_ARGS, "schedule", str(tasks_file)])

        assert result.exit_code == 0, result.output
        assert "focus: 2025-01-06 9:00-11:00 (preferred)" in result.output

    def test_missing_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, [*NOW_ARGS, "schedule", str(tmp_path / "nope.yaml")])

        assert result.exit_code == 1
        assert "Error: File not found" in result.output

    def test_invalid_now(self, tasks_file: Path) -> None:
        result = runner.invoke(app, ["--now", "tomorrow", "schedule", str(tasks_file)])

        assert result.exit_code == 1
        assert "Invalid --now 'tomorrow'" in result.output

    def test_explicit_config(self, tasks_file: Path, tmp_path: Path) -> None:
        """--config overrides the file next to the tasks."""
        config = tmp_path / "busy.yaml"
        config.write_text(
            "constraints:\n  - name: Blocked\n    start_hour: 8\n    end_hour: 12\n",
            encoding="utf-8",
        )
        result = runner.invoke(
            app, [*NOW_ARGS, "--config", str(config), "schedule", str(tasks_file)]
        )

        assert result.exit_code == 0, result.output
        assert "2025-01-06 09:00" not in result.output


class TestViewCommands:
    """Test the day and week views."""

    def test_day(self, tasks_file: Path) -> None:
        result = runner.invoke(app, [*NOW_ARGS, "day", str(tasks_file), "--date", "2025-01-06"])

        assert result.exit_code == 0, result.output
        assert "Monday 2025-01-06" in result.output
        assert "  09:00-11:00  Focus block (focus, P5)" in result.output
        assert "  11:00-12:00  Emails (email, P3)" in result.output

    def test_day_defaults_to_pinned_date(self, tasks_file: Path) -> None:
        result = runner.invoke(app, [*NOW_ARGS, "day", str(tasks_file)])
        assert "Monday 2025-01-06" in result.output

    def test_day_invalid_date(self, tasks_file: Path) -> None:
        result = runner.invoke(app, [*NOW_ARGS, "day", str(tasks_file), "--date", "06/01/2025"])
        assert result.exit_code == 1
        assert "Use YYYY-MM-DD format" in result.output

    def test_week(self, tasks_file: Path) -> None:
        result = runner.invoke(app, [*NOW_ARGS, "week", str(tasks_file), "--start", "2025-01-06"])

        assert result.exit_code == 0, result.output
        assert "Monday 2025-01-06" in result.output
        assert "Sunday 2025-01-12" in result.output
        assert "(nothing scheduled)" in result.output


class TestConflictsCommand:
    """Test the conflicts command."""

    def test_fresh_schedule_has_no_conflicts(self, tasks_file: Path) -> None:
        result = runner.invoke(app, [*NOW_ARGS, "conflicts", str(tasks_file)])

        assert result.exit_code == 0, result.output
        assert "No conflicts found." in result.output

    def test_persisted_overlap(self, tmp_path: Path) -> None:
        tasks_file = write_project(tmp_path, OVERLAPPING_YAML)
        result = runner.invoke(
            app, [*NOW_ARGS, "conflicts", str(tasks_file), "--persisted", "--alternatives"]
        )

        assert result.exit_code == 0, result.output
        assert "Conflicts (1)" in result.output
        assert '1. [overlap] "Focus block" and "Emails" overlap' in result.output
        assert '     - Move "Focus block" after "Emails" (impact: low)' in result.output
        assert "     - Reschedule both tasks (impact: medium)" in result.output


class TestCanMoveCommand:
    """Test the can-move command."""

    def test_allowed(self, tasks_file: Path) -> None:
        result = runner.invoke(
            app, [*NOW_ARGS, "can-move", "email", "2025-01-06T15:00", str(tasks_file)]
        )
        assert result.exit_code == 0, result.output
        assert "email can start at 2025-01-06 15:00" in result.output

    def test_overlap_refused(self, tasks_file: Path) -> None:
        result = runner.invoke(
            app, [*NOW_ARGS, "can-move", "email", "2025-01-06T10:00", str(tasks_file)]
        )
        assert result.exit_code == 0, result.output
        assert "email cannot start at 2025-01-06 10:00" in result.output

    def test_unknown_task(self, tasks_file: Path) -> None:
        result = runner.invoke(
            app, [*NOW_ARGS, "can-move", "ghost", "2025-01-06T10:00", str(tasks_file)]
        )
        assert result.exit_code == 1
        assert "Error: Task not found: ghost" in result.output


class TestAnalyticsCommands:
    """Test stats, overload and candidates."""

    def test_stats(self, tasks_file: Path) -> None:
        result = runner.invoke(app, [*NOW_ARGS, "stats", str(tasks_file)])

        assert result.exit_code == 0, result.output
        assert "Time Distribution (hours)" in result.output
        assert "Scheduled: 0  Unscheduled: 3" in result.output

    def test_overload(self, tasks_file: Path) -> None:
        result = runner.invoke(app, [*NOW_ARGS, "overload", str(tasks_file)])

        assert result.exit_code == 0, result.output
        assert "Hours required:      3" in result.output
        assert "Not overloaded" in result.output

    def test_candidates(self, tasks_file: Path) -> None:
        result = runner.invoke(app, [*NOW_ARGS, "candidates", str(tasks_file)])

        assert result.exit_code == 0, result.output
        assert "Delegation candidates" in result.output
        assert "Postponement candidates" in result.output
        assert "  P3  Emails (email), due 2025-01-10" in result.output

    def test_candidates_kind(self, tasks_file: Path) -> None:
        result = runner.invoke(
            app, [*NOW_ARGS, "candidates", str(tasks_file), "--kind", "postponement"]
        )
        assert "Delegation candidates" not in result.output
        assert "Postponement candidates" in result.output


class TestExportIcal:
    """Test the export-ical command."""

    def test_stdout(self, tasks_file: Path) -> None:
        result = runner.invoke(app, [*NOW_ARGS, "export-ical", str(tasks_file)])

        assert result.exit_code == 0, result.output
        assert "BEGIN:VCALENDAR" in result.output
        assert "UID:focus@dayplanner" in result.output
        assert "DTSTART:20250106T090000" in result.output

    def test_output_file(self, tasks_file: Path, tmp_path: Path) -> None:
        output = tmp_path / "schedule.ics"
        result = runner.invoke(
            app, [*NOW_ARGS, "export-ical", str(tasks_file), "--output", str(output)]
        )

        assert result.exit_code == 0, result.output
        assert f"Calendar written to {output}" in result.output
        data = output.read_bytes()
        assert data.startswith(b"BEGIN:VCALENDAR\r\n")
        assert data.count(b"BEGIN:VEVENT") == 2
