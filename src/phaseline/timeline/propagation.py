"""Project-date propagation, phase date bands and auto-scheduling.

Moving the project start date shifts every open, dated task by the same
number of days. The previously known start date is session state owned by
the caller (see ProjectDateTracker); the functions here are pure.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from datetime import date, timedelta

from phaseline.config import ClassifierConfig
from phaseline.logger import get_logger
from phaseline.models import (
    PHASE_ORDER,
    BatchKind,
    Phase,
    ProjectDates,
    ShiftBatch,
    ShiftProposal,
    Task,
)

from .classify import classify_phase

logger = get_logger()

DEFAULT_BAND_WEIGHTS = (0.4, 0.4, 0.2)
DEFAULT_AUTO_SCHEDULE_WEIGHTS = (0.2, 0.6, 0.2)


def propagate_project_start(
    tasks: Sequence[Task],
    previous_start: date | None,
    new_start: date | None,
    *,
    new_end: date | None = None,
) -> ShiftBatch | None:
    """Propose a uniform shift of all open tasks after a project start change.

    Args:
        tasks: Current task set
        previous_start: Last known project start date
        new_start: New project start date
        new_end: New project end date, carried on the batch for the caller to persist

    Returns:
        A pending ShiftBatch, or None if either date is unknown, the start did
        not move, or no task would be shifted
    """
    if previous_start is None or new_start is None:
        return None

    shift_days = (new_start - previous_start).days
    if shift_days == 0 or not tasks:
        return None

    proposals = [
        ShiftProposal(
            task_id=task.id,
            new_due_date=task.due_date + timedelta(days=shift_days),
            shift_days=shift_days,
        )
        for task in tasks
        if task.due_date is not None and not task.is_completed
    ]
    if not proposals:
        return None

    logger.proposals(
        f"Project start moved {previous_start} -> {new_start} ({shift_days:+d} days); "
        f"proposing shift for {len(proposals)} tasks"
    )
    return ShiftBatch(
        kind=BatchKind.PROJECT_DATES,
        proposals=proposals,
        reason=f"Project start moved by {shift_days:+d} days",
        project_dates=ProjectDates(start_date=new_start, end_date=new_end),
    )


class ProjectDateTracker:
    """Session-scoped memory of the last known project start date.

    The caller owns one tracker per project and feeds it every time project
    dates are (re)loaded. It never reads a clock or storage on its own.
    """

    def __init__(self, last_known_start: date | None = None):
        self.last_known_start = last_known_start

    def observe(self, project: ProjectDates | None, tasks: Sequence[Task]) -> ShiftBatch | None:
        """Record the current project dates and return a shift batch if the start moved.

        A missing start date disables propagation for this observation and
        resets the memory, matching a project whose dates were cleared.
        """
        new_start = project.start_date if project else None
        new_end = project.end_date if project else None

        if new_start is None:
            if self.last_known_start is not None:
                logger.warning("Project start date missing; date propagation disabled")
            self.last_known_start = None
            return None

        batch = propagate_project_start(
            tasks, self.last_known_start, new_start, new_end=new_end
        )
        self.last_known_start = new_start
        return batch


def _cumulative(weights: Sequence[float]) -> list[float]:
    offsets = [0.0]
    for weight in weights:
        offsets.append(round(offsets[-1] + weight, 9))
    return offsets


def phase_bands(
    project: ProjectDates | None,
    weights: Sequence[float] = DEFAULT_BAND_WEIGHTS,
) -> dict[Phase, tuple[date, date]]:
    """Split the project span into consecutive date bands per phase.

    Band i covers [start + floor(total * sum(w[:i])), start + floor(total * sum(w[:i+1]))].

    Returns:
        Mapping of phase to (start, end), empty when project dates are incomplete
    """
    if project is None or not project.is_complete:
        return {}
    assert project.start_date is not None and project.end_date is not None

    total_days = (project.end_date - project.start_date).days
    offsets = _cumulative(weights)
    bands: dict[Phase, tuple[date, date]] = {}
    for index, phase in enumerate(PHASE_ORDER):
        start_day = math.floor(total_days * offsets[index])
        end_day = math.floor(total_days * offsets[index + 1])
        bands[phase] = (
            project.start_date + timedelta(days=start_day),
            project.start_date + timedelta(days=end_day),
        )
    return bands


def auto_schedule(
    tasks: Sequence[Task],
    project: ProjectDates | None,
    weights: Sequence[float] = DEFAULT_AUTO_SCHEDULE_WEIGHTS,
    *,
    classifier: ClassifierConfig | None = None,
) -> ShiftBatch | None:
    """Place open, unscheduled tasks evenly within their phase's share of the project.

    Within a phase range [start, end) of n tasks, task i lands on
    floor(start + (end - start) * (i + 1) / (n + 1)) days after project start.

    Args:
        tasks: Current task set
        project: Project dates; both must be set
        weights: Phase shares of the project span
        classifier: Keyword rules used to place each task in a phase

    Returns:
        A pending ShiftBatch, or None when dates are missing or nothing is unscheduled
    """
    if project is None or not project.is_complete:
        logger.warning("Project start and end dates are required to auto-schedule tasks")
        return None
    assert project.start_date is not None and project.end_date is not None

    unscheduled = [t for t in tasks if t.due_date is None and not t.is_completed]
    if not unscheduled:
        return None

    total_days = (project.end_date - project.start_date).days
    offsets = _cumulative(weights)

    proposals: list[ShiftProposal] = []
    for index, phase in enumerate(PHASE_ORDER):
        range_start = math.floor(total_days * offsets[index])
        range_end = math.floor(total_days * offsets[index + 1])
        duration = range_end - range_start
        phase_tasks = [t for t in unscheduled if classify_phase(t, classifier) == phase]
        for position, task in enumerate(phase_tasks):
            if duration > 0:
                offset = math.floor(range_start + duration * (position + 1) / (len(phase_tasks) + 1))
            else:
                offset = range_start
            proposals.append(
                ShiftProposal(
                    task_id=task.id,
                    new_due_date=project.start_date + timedelta(days=offset),
                    shift_days=None,
                )
            )

    logger.proposals(f"Proposed due dates for {len(proposals)} unscheduled tasks")
    return ShiftBatch(
        kind=BatchKind.AUTO_SCHEDULE,
        proposals=proposals,
        reason=f"Schedule {len(proposals)} tasks without due dates",
    )
