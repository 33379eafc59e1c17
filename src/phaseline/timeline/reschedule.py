"""Direct rescheduling from drag and drop gestures.

The bar-chart view reports a horizontal pixel offset which is converted to
whole days with the current day-width. The calendar view reports the target
cell's date directly. Both produce the same RescheduleProposal.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from datetime import date, timedelta
from typing import TYPE_CHECKING

from phaseline.config import RescheduleConfig
from phaseline.logger import get_logger
from phaseline.models import ProjectDates, RescheduleProposal, Task

if TYPE_CHECKING:
    from .protocols import TaskStore

logger = get_logger()


def compute_day_width(
    visible_days: int,
    viewport_width: float = 800.0,
    min_width: float = 30.0,
    max_width: float = 60.0,
) -> float:
    """Pixels per calendar day: the viewport split across the visible days, clamped."""
    if visible_days <= 0:
        return max_width
    return max(min_width, min(max_width, viewport_width / visible_days))


def visible_window(
    tasks: Sequence[Task],
    today: date,
    project: ProjectDates | None = None,
    config: RescheduleConfig | None = None,
) -> tuple[date, int]:
    """Compute the first visible day and number of visible days for the chart.

    Project dates take precedence over task dates for either edge. The window
    is padded on both sides; with nothing dated it starts today.

    Returns:
        (window start date, number of visible days)
    """
    cfg = config or RescheduleConfig()
    dates = [t.due_date for t in tasks if t.due_date is not None]
    if not dates:
        return today, cfg.default_visible_days

    earliest = project.start_date if project and project.start_date else min(dates)
    latest = project.end_date if project and project.end_date else max(dates)

    start = earliest - timedelta(days=cfg.padding_before_days)
    end = latest + timedelta(days=cfg.padding_after_days)
    return start, (end - start).days + 1


def day_width_for(
    tasks: Sequence[Task],
    today: date,
    project: ProjectDates | None = None,
    config: RescheduleConfig | None = None,
) -> float:
    """Day-width for a chart showing the given tasks."""
    cfg = config or RescheduleConfig()
    _, visible_days = visible_window(tasks, today, project, cfg)
    return compute_day_width(
        visible_days, cfg.viewport_width, cfg.min_day_width, cfg.max_day_width
    )


def pixels_to_days(pixel_delta: float, day_width: float) -> int:
    """Round a pixel offset to whole days; exact halves round up."""
    if day_width <= 0:
        raise ValueError(f"day_width must be positive, got {day_width}")
    return math.floor(pixel_delta / day_width + 0.5)


def map_drag(task: Task, pixel_delta: float, day_width: float) -> RescheduleProposal | None:
    """Turn a horizontal drag of a task bar into a reschedule proposal.

    Returns:
        The proposal, or None for undated tasks and drags shorter than half a day
    """
    if task.due_date is None:
        return None
    day_delta = pixels_to_days(pixel_delta, day_width)
    if day_delta == 0:
        return None
    return RescheduleProposal(
        task_id=task.id,
        original_due_date=task.due_date,
        new_due_date=task.due_date + timedelta(days=day_delta),
        day_delta=day_delta,
    )


def map_drop(task: Task, target_date: date) -> RescheduleProposal | None:
    """Turn a drop onto a calendar cell into a reschedule proposal.

    An undated task dropped on a cell is scheduled there; its proposal has no
    original date and no delta.

    Returns:
        The proposal, or None when the task already falls on the target date
    """
    if task.due_date == target_date:
        return None
    if task.due_date is None:
        return RescheduleProposal(
            task_id=task.id,
            original_due_date=None,
            new_due_date=target_date,
            day_delta=None,
        )
    return RescheduleProposal(
        task_id=task.id,
        original_due_date=task.due_date,
        new_due_date=target_date,
        day_delta=(target_date - task.due_date).days,
    )


def apply_reschedule(proposal: RescheduleProposal | None, store: TaskStore) -> bool:
    """Persist a reschedule proposal with a single store call.

    Returns:
        True if the store was called, False for a no-op gesture

    Raises:
        StoreError: Propagated from the store so the gesture can be retried
    """
    if proposal is None or proposal.day_delta == 0:
        return False
    store.update_due_date(proposal.task_id, proposal.new_due_date)
    logger.proposals(f"Rescheduled {proposal.describe()}")
    return True
