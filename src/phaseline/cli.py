"""Command-line interface for Phaseline."""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Annotated

import typer

from . import context
from .config import PhaselineConfig, discover_config
from .exceptions import PhaselineError
from .logger import setup_logger
from .models import BatchKind, Phase, ProjectDates, ShiftBatch
from .parser import TaskFile, load_task_file
from .state import SessionState, read_state_file, state_path_for, write_state_file
from .store import YamlTaskStore
from .timeline import (
    BatchApplyReport,
    ProjectDateTracker,
    TimelineReport,
    TimelineService,
    apply_batch,
    apply_reschedule,
    apply_status_change,
    propagate_project_start,
)

app = typer.Typer(
    name="phaseline",
    help="Phase gating, delay propagation and rescheduling for construction project tasks",
    add_completion=False,
)

TaskFileArg = Annotated[Path, typer.Argument(help="Path to the task YAML file")]
TodayOption = Annotated[
    str | None,
    typer.Option("--today", help="As-of date for delay and conflict checks (YYYY-MM-DD)"),
]
YesOption = Annotated[bool, typer.Option("--yes", "-y", help="Skip the confirmation prompt")]


@app.callback()
def main_callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            help="Verbosity level: 0=silent (default), 1=show changes, 2=show all checks, 3=debug",
            min=0,
            max=3,
        ),
    ] = 0,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to config file (default: phaseline_config.yaml)",
        ),
    ] = None,
    state: Annotated[
        Path | None,
        typer.Option(
            "--state",
            help="Path to session state file (default: <task file>.state.yaml)",
        ),
    ] = None,
) -> None:
    """Global options for phaseline commands."""
    setup_logger(verbose)
    context.configure(config_path=config, state_path=state)


def _fail(message: str) -> typer.Exit:
    typer.echo(f"Error: {message}", err=True)
    return typer.Exit(1)


def _parse_date_option(date_str: str | None, option_name: str) -> date | None:
    """Parse a date string from CLI option.

    Args:
        date_str: Date string in YYYY-MM-DD format or None
        option_name: Name of the option for error messages

    Returns:
        Parsed date object or None if date_str is None
    """
    if date_str is None:
        return None

    try:
        return date.fromisoformat(date_str)
    except ValueError:
        raise _fail(
            f"Invalid date format '{date_str}' for --{option_name}. Use YYYY-MM-DD format."
        ) from None


def _load(file: Path) -> tuple[TaskFile, PhaselineConfig]:
    try:
        task_file = load_task_file(file)
        config = discover_config(file, context.settings().config_path)
    except (PhaselineError, FileNotFoundError, ValueError) as e:
        raise _fail(str(e)) from e
    return task_file, config


def _service(file: Path, today: str | None) -> tuple[TaskFile, TimelineService]:
    task_file, config = _load(file)
    service = TimelineService(
        task_file.tasks,
        _parse_date_option(today, "today"),
        materials=task_file.materials,
        weather=task_file.weather,
        crew=task_file.crew,
        project=task_file.project,
        config=config,
    )
    return task_file, service


def _state_path(file: Path) -> Path:
    return context.settings().state_path or state_path_for(file)


def _read_state(file: Path) -> SessionState:
    try:
        return read_state_file(_state_path(file))
    except ValueError as e:
        raise _fail(str(e)) from e


def _parse_phase(value: str) -> Phase:
    try:
        return Phase(value.lower())
    except ValueError:
        raise _fail(
            f"Invalid phase '{value}'. Must be one of: {', '.join(p.value for p in Phase)}"
        ) from None


def _display_timeline(report: TimelineReport) -> None:
    """Display the phase tree to stdout."""
    typer.echo(f"Timeline as of {report.timeline.today}")
    typer.echo("=" * 80)
    for phase in report.phases:
        band = ""
        if phase.start_date and phase.end_date:
            band = f"  [{phase.start_date} .. {phase.end_date}]"
        typer.echo(f"{phase.name} - {phase.progress}%{band}")
        if phase.locked:
            typer.echo(f"  LOCKED: {phase.lock_reason}")
        for sub in phase.sub_timelines:
            span = f"{sub.start_date} .. {sub.end_date}" if sub.start_date else "unscheduled"
            typer.echo(f"  {sub.name} ({sub.id}) - {sub.progress}% - {span}")
            if sub.delayed:
                typer.echo(f"    DELAYED by {sub.delay_days} days")
            if sub.conflict.has_conflict:
                typer.echo(f"    CONFLICT ({sub.conflict.status.value}): {sub.conflict.message}")
            for task in sub.tasks:
                due = task.due_date.isoformat() if task.due_date else "-"
                typer.echo(f"    [{task.status.value}] {task.id}: {task.title} (due {due})")
        typer.echo("")


def _display_batch(batch: ShiftBatch) -> None:
    typer.echo(f"Proposed {batch.kind.value} shift: {batch.reason}")
    for proposal in batch.proposals:
        delta = "new" if proposal.shift_days is None else f"{proposal.shift_days:+d} days"
        typer.echo(f"  {proposal.task_id} -> {proposal.new_due_date} ({delta})")


def _display_apply_report(
    report: BatchApplyReport, hints: dict[str, str] | None = None
) -> None:
    typer.echo(f"Updated {len(report.succeeded)} tasks")
    for failure in report.failed:
        typer.echo(f"  Failed {failure.task_id}: {failure.error}", err=True)
        if hints and failure.task_id in hints:
            typer.echo(f"    retry with: {hints[failure.task_id]}", err=True)


def _exit_on_failure(report: BatchApplyReport | None) -> None:
    if report is not None and not report.all_ok:
        raise typer.Exit(1)


def _retry_hints(batch: ShiftBatch, file: Path) -> dict[str, str]:
    """Per-task commands that re-issue just one proposal of a batch."""
    return {
        p.task_id: f"phaseline reschedule {file} {p.task_id} --to {p.new_due_date}"
        for p in batch.proposals
    }


def _confirm_and_apply(
    batch: ShiftBatch, store: YamlTaskStore, yes: bool
) -> BatchApplyReport | None:
    """Ask for confirmation and apply the batch.

    Returns:
        The per-task report, or None if the user declined
    """
    if not yes and not typer.confirm(f"Apply {len(batch)} date changes?"):
        batch.dismiss()
        typer.echo("Dismissed; no tasks changed")
        return None
    batch.confirm()
    report = apply_batch(batch, store)
    _display_apply_report(report, _retry_hints(batch, store.path))
    return report


@app.command()
def timeline(file: TaskFileArg, *, today: TodayOption = None) -> None:
    """Show phases, sub-timelines, locks, delays and conflicts."""
    _, service = _service(file, today)
    state = _read_state(file)
    service.tracker = ProjectDateTracker(state.last_known_start)
    report = service.evaluate()

    _display_timeline(report)
    for batch in report.batches:
        _display_batch(batch)
    if report.batches:
        typer.echo("Run 'delays --apply' or 'shift-project --apply' to confirm pending shifts.")

    if report.warnings:
        typer.echo("\nWarnings:", err=True)
        for warning in report.warnings:
            typer.echo(f"  - {warning}", err=True)


@app.command()
def delays(
    file: TaskFileArg,
    *,
    today: TodayOption = None,
    apply: Annotated[bool, typer.Option("--apply", help="Apply the proposed shifts")] = False,
    yes: YesOption = False,
) -> None:
    """Propose shifting later tasks by the delay of overdue sub-timelines."""
    _, service = _service(file, today)
    report = service.evaluate()
    batch = next((b for b in report.batches if b.kind == BatchKind.DELAY), None)
    if batch is None:
        typer.echo("No delays detected")
        return

    _display_batch(batch)
    if apply:
        _exit_on_failure(_confirm_and_apply(batch, YamlTaskStore(file), yes))


@app.command(name="shift-project")
def shift_project(  # noqa: PLR0913 - CLI command needs multiple options
    file: TaskFileArg,
    *,
    start: Annotated[
        str | None, typer.Option("--start", help="New project start date (YYYY-MM-DD)")
    ] = None,
    end: Annotated[
        str | None, typer.Option("--end", help="New project end date (YYYY-MM-DD)")
    ] = None,
    apply: Annotated[bool, typer.Option("--apply", help="Apply the proposed shift")] = False,
    dismiss: Annotated[
        bool, typer.Option("--dismiss", help="Record the new dates without shifting tasks")
    ] = False,
    yes: YesOption = False,
) -> None:
    """Shift every open task when the project start date moves."""
    if apply and dismiss:
        raise _fail("Cannot specify both --apply and --dismiss")

    task_file, _ = _load(file)
    state = _read_state(file)
    new_start = _parse_date_option(start, "start") or task_file.project.start_date
    new_end = _parse_date_option(end, "end") or task_file.project.end_date
    previous_start = (
        state.last_known_start
        if state.last_known_start is not None
        else task_file.project.start_date
    )

    if new_start is None or previous_start is None:
        typer.echo("Project start date unknown; date propagation disabled")
        return

    batch = propagate_project_start(task_file.tasks, previous_start, new_start, new_end=new_end)
    store = YamlTaskStore(file)
    new_state = SessionState(
        version=state.version, last_known_start=new_start, last_known_end=new_end
    )

    if batch is None:
        typer.echo(f"No tasks to shift (start {previous_start} -> {new_start})")
    else:
        _display_batch(batch)

    if dismiss:
        if batch is not None:
            batch.dismiss()
        if start or end:
            store.update_project_dates(ProjectDates(start_date=new_start, end_date=new_end))
        write_state_file(_state_path(file), new_state)
        typer.echo("Project dates recorded; no tasks changed")
        return

    if not apply:
        return

    report: BatchApplyReport | None = None
    if batch is not None:
        report = _confirm_and_apply(batch, store, yes)
        if report is None:
            return
    # Recorded even when some task updates failed
    store.update_project_dates(ProjectDates(start_date=new_start, end_date=new_end))
    write_state_file(_state_path(file), new_state)
    _exit_on_failure(report)


@app.command(name="auto-schedule")
def auto_schedule(
    file: TaskFileArg,
    *,
    apply: Annotated[bool, typer.Option("--apply", help="Apply the proposed dates")] = False,
    yes: YesOption = False,
) -> None:
    """Give unscheduled tasks due dates spread across their phase's share of the project."""
    _, service = _service(file, None)
    batch = service.auto_schedule()
    if batch is None:
        typer.echo("No unscheduled tasks to place (or project dates missing)")
        return

    _display_batch(batch)
    if apply:
        _exit_on_failure(_confirm_and_apply(batch, YamlTaskStore(file), yes))


@app.command()
def reschedule(  # noqa: PLR0913 - CLI command needs multiple options
    file: TaskFileArg,
    task_id: Annotated[str, typer.Argument(help="Task to move")],
    *,
    pixels: Annotated[
        float | None, typer.Option("--pixels", help="Horizontal drag distance in pixels")
    ] = None,
    day_width: Annotated[
        float | None,
        typer.Option("--day-width", help="Pixels per day (default: derived from the chart)"),
    ] = None,
    to: Annotated[str | None, typer.Option("--to", help="Target calendar date (YYYY-MM-DD)")] = None,
    today: TodayOption = None,
    dry_run: Annotated[bool, typer.Option("--dry-run", help="Show the new date only")] = False,
) -> None:
    """Move one task by a drag distance or onto a calendar date."""
    if (pixels is None) == (to is None):
        raise _fail("Specify exactly one of --pixels or --to")

    _, service = _service(file, today)
    target = _parse_date_option(to, "to")
    try:
        if target is not None:
            proposal = service.reschedule_by_drop(task_id, target)
        else:
            assert pixels is not None
            proposal = service.reschedule_by_drag(task_id, pixels, day_width)
    except (KeyError, ValueError) as e:
        raise _fail(str(e).strip("'\"")) from e

    if proposal is None:
        typer.echo("No change")
        return

    typer.echo(proposal.describe())
    if dry_run:
        return
    try:
        apply_reschedule(proposal, YamlTaskStore(file))
    except PhaselineError as e:
        raise _fail(f"Failed to move task: {e}") from e


@app.command(name="complete-phase")
def complete_phase(
    file: TaskFileArg,
    phase: Annotated[str, typer.Argument(help="preparation, execution or verification")],
    *,
    category: Annotated[
        str | None, typer.Option("--category", help="Only this sub-timeline (e.g. flooring)")
    ] = None,
    reset: Annotated[bool, typer.Option("--reset", help="Mark tasks pending instead")] = False,
    today: TodayOption = None,
    yes: YesOption = False,
) -> None:
    """Mark all tasks of an unlocked phase (or one of its categories) complete."""
    target = _parse_phase(phase)
    _, service = _service(file, today)
    try:
        request = service.bulk_status_change(target, complete=not reset, category=category)
    except PhaselineError as e:
        raise _fail(str(e)) from e
    except KeyError as e:
        raise _fail(str(e).strip("'\"")) from e

    if request is None:
        typer.echo("No tasks to update")
        return

    verb = "reset" if reset else "complete"
    if not yes and not typer.confirm(f"Mark {len(request.task_ids)} tasks {verb}?"):
        typer.echo("Cancelled")
        return
    report = apply_status_change(request, YamlTaskStore(file))
    _display_apply_report(report)
    _exit_on_failure(report)


def main() -> int:
    """Main entry point."""
    app()
    return 0


if __name__ == "__main__":
    main()
